"""
Review Service — human override layered on top of the oracle's verdict.

The stored status, confidence and escalation flag are never rewritten; the
reviewer's status takes precedence through `Assessment.effective_status`.
"""

from __future__ import annotations

import logging

from policy_coverage.models.schemas import Assessment, ReviewRequest
from policy_coverage.persistence.coverage_repository import CoverageRepository
from policy_coverage.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, repository: CoverageRepository, audit: AuditService | None = None):
        self.repository = repository
        self.audit = audit or AuditService(repository)

    def submit_review(self, assessment_id: str, review: ReviewRequest) -> Assessment | None:
        """Apply the override; None if the assessment does not exist."""
        before = self.repository.get_assessment(assessment_id)
        if before is None:
            logger.warning(f"[Review] Assessment {assessment_id} not found")
            return None

        updated = self.repository.apply_review(assessment_id, review)
        if updated is None:
            return None

        self.audit.record(
            event_type="review",
            entity_type="coverage_assessment",
            entity_id=assessment_id,
            actor=review.reviewed_by,
            input_summary=f"{before.effective_status} ({before.confidence.value})",
            output_summary=f"{review.human_status.value} by {review.reviewed_by}",
            metadata={"has_notes": bool(review.review_notes), "escalated": before.escalated},
        )
        logger.info(
            f"[Review] {assessment_id}: {before.effective_status} → "
            f"{updated.effective_status} ({review.reviewed_by})"
        )
        return updated
