"""Services — AssessmentService, ReviewService, AuditService."""

from policy_coverage.services.audit_service import AuditService
from policy_coverage.services.assessment_service import AssessmentService, build_assessment_service
from policy_coverage.services.review_service import ReviewService

__all__ = ["AssessmentService", "AuditService", "ReviewService", "build_assessment_service"]
