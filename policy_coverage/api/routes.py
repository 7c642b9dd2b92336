"""
API routes — thin HTTP layer that delegates to the services.

Routes:
  GET  /health                       → API health check
  POST /api/assess/next              → Assess the next unassessed obligation
  GET  /api/assess/progress          → Totals per status, assessed / unassessed
  POST /api/assess/{obligation_id}   → Assess one obligation by id
  GET  /api/assessments              → List assessments (?status=&human_reviewed=)
  POST /api/review                   → Submit a human override
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from policy_coverage.config import get_settings
from policy_coverage.models.schemas import Assessment, ReviewRequest
from policy_coverage.persistence.coverage_repository import build_repository
from policy_coverage.services.assessment_service import AssessmentService, build_assessment_service
from policy_coverage.services.review_service import ReviewService

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
assess_router = APIRouter()
review_router = APIRouter()


# ── Request / response schemas ───────────────────────────
class AssessNextResponse(BaseModel):
    done: bool
    assessment: Optional[Assessment] = None


class ReviewBody(ReviewRequest):
    assessment_id: str


# ── Service wiring ───────────────────────────────────────

@lru_cache()
def get_assessment_service() -> AssessmentService:
    """Process-wide service; seeds the corpus file from settings when one is set."""
    settings = get_settings()
    repository = build_repository()
    if settings.corpus_path:
        repository.load_corpus_file(settings.corpus_path)
    return build_assessment_service(repository)


def get_review_service(
    assessment_service: AssessmentService = Depends(get_assessment_service),
) -> ReviewService:
    return ReviewService(assessment_service.repository, assessment_service.audit)


# ── Health ───────────────────────────────────────────────

@health_router.get("/health")
def health_check():
    settings = get_settings()
    return {
        "status": "ok",
        "mock_mode": settings.mock_mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Assessment ───────────────────────────────────────────

@assess_router.post("/assess/next", response_model=AssessNextResponse)
def assess_next(
    run_id: str = "",
    service: AssessmentService = Depends(get_assessment_service),
):
    assessment = service.assess_next(run_id)
    return AssessNextResponse(done=assessment is None, assessment=assessment)


@assess_router.get("/assess/progress")
def assess_progress(
    run_id: Optional[str] = None,
    service: AssessmentService = Depends(get_assessment_service),
) -> dict[str, Any]:
    return service.progress(run_id)


@assess_router.post("/assess/{obligation_id}", response_model=Assessment)
def assess_obligation(
    obligation_id: str,
    run_id: str = "",
    service: AssessmentService = Depends(get_assessment_service),
):
    assessment = service.assess_by_id(obligation_id, run_id)
    if assessment is None:
        raise HTTPException(status_code=404, detail=f"Obligation {obligation_id} not found")
    return assessment


@assess_router.get("/assessments", response_model=list[Assessment])
def list_assessments(
    status: Optional[str] = None,
    human_reviewed: Optional[bool] = None,
    run_id: Optional[str] = None,
    service: AssessmentService = Depends(get_assessment_service),
):
    """List assessments, filtering on effective status and review state."""
    results = service.repository.list_assessments(run_id)
    if status:
        results = [a for a in results if a.effective_status == status.upper()]
    if human_reviewed is not None:
        results = [a for a in results if (a.human_status is not None) == human_reviewed]
    results.sort(key=lambda a: a.created_at)
    return results


# ── Review ───────────────────────────────────────────────

@review_router.post("/review", response_model=Assessment)
def submit_review(
    body: ReviewBody,
    service: ReviewService = Depends(get_review_service),
):
    review = ReviewRequest(**body.model_dump(exclude={"assessment_id"}))
    updated = service.submit_review(body.assessment_id, review)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Assessment {body.assessment_id} not found")
    return updated
