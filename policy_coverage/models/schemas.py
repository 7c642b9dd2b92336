"""
Data schemas shared by the matcher, the adjudicator and the stores.

Obligations, policies, provisions and labels are read-only inputs produced
upstream.  Candidates are ephemeral.  Assessments and audit events are the
only rows this package writes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from .enums import (
    AssessedBy,
    Confidence,
    CoverageStatus,
    ReviewStatus,
    RiskTier,
    SignalCategory,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


# ── Corpus inputs ────────────────────────────────────────


class Obligation(BaseModel):
    """A single regulatory requirement extracted from a source document."""
    id: str
    citation: str = ""
    requirement: str = ""
    topics: set[str] = Field(default_factory=set)
    risk_tier: Optional[RiskTier] = None
    source_id: str = ""


class Policy(BaseModel):
    id: str
    policy_number: str
    title: str = ""
    domain: str = ""
    sub_domain: str = ""
    citations: list[str] = []

    @field_validator("citations")
    @classmethod
    def _unique_citations(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        unique: list[str] = []
        for cit in value:
            key = cit.strip()
            if key and key not in seen:
                seen.add(key)
                unique.append(key)
        return unique


class Provision(BaseModel):
    """A discrete rule sentence extracted from a policy document."""
    id: str
    policy_id: str
    text: str
    section: str = ""
    keywords: list[str] = []
    embedding: Optional[list[float]] = None


class SubDomainLabel(BaseModel):
    prefix: str
    name: str = ""
    affinity_keywords: list[str] = []


# ── Matching ─────────────────────────────────────────────


class SignalHit(BaseModel):
    """One signal's partial score for one policy."""
    policy_id: str
    category: SignalCategory
    method: str
    score: int
    detail: str = ""


class MatchEvidence(BaseModel):
    method: str
    detail: str
    score: int


class SignalBreakdown(BaseModel):
    citation: int = 0
    sub_domain: int = 0
    keyword: int = 0
    title: int = 0
    vector: int = 0

    def total(self) -> int:
        return self.citation + self.sub_domain + self.keyword + self.title + self.vector


class Candidate(BaseModel):
    """A policy ranked as plausibly covering an obligation."""
    policy_id: str
    policy_number: str
    title: str = ""
    domain: str = ""
    sub_domain: str = ""
    score: int = 0
    signal_breakdown: SignalBreakdown = Field(default_factory=SignalBreakdown)
    methods: list[MatchEvidence] = []


# ── Adjudication ─────────────────────────────────────────


class OracleVerdict(BaseModel):
    """Validated oracle judgment (or the deterministic fallback)."""
    status: CoverageStatus
    confidence: Confidence = Confidence.MEDIUM
    covering_policy_number: Optional[str] = None
    obligation_span: Optional[str] = None
    provision_span: Optional[str] = None
    gap_detail: Optional[str] = None
    recommended_policy: Optional[str] = None
    reasoning: Optional[str] = None


# ── Persisted rows ───────────────────────────────────────


class Assessment(BaseModel):
    """One coverage determination for one obligation in one run."""
    id: str = Field(default_factory=lambda: new_id("ca"))
    obligation_id: str
    run_id: str = ""
    status: CoverageStatus
    confidence: Confidence
    covering_policy_id: Optional[str] = None
    covering_policy_number: Optional[str] = None
    gap_detail: Optional[str] = None
    recommended_policy: Optional[str] = None
    obligation_span: Optional[str] = None
    provision_span: Optional[str] = None
    reasoning: Optional[str] = None
    match_method: str = "none"
    match_score: int = 0
    vector_score: Optional[int] = None
    candidate_count: int = 0
    escalated: bool = False
    assessed_by: AssessedBy = AssessedBy.LLM
    model_id: str = ""
    prompt_version: str = ""
    attempts: int = 0

    # ── Human review (owner: review workflow) ────────────
    human_status: Optional[ReviewStatus] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_status(self) -> str:
        """Human override wins, then the safety escalation, then the oracle."""
        if self.human_status is not None:
            return self.human_status.value
        if self.escalated:
            return CoverageStatus.NEEDS_LEGAL_REVIEW.value
        return self.status.value


class AuditEvent(BaseModel):
    id: str = Field(default_factory=lambda: new_id("audit"))
    org_id: str = "default"
    event_type: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    actor: str = "system"
    model_id: Optional[str] = None
    prompt_version: Optional[str] = None
    input_summary: Optional[str] = None
    output_summary: Optional[str] = None
    metadata: dict[str, Any] = {}
    created_at: datetime = Field(default_factory=_utcnow)


# ── Review workflow ──────────────────────────────────────


class ReviewRequest(BaseModel):
    human_status: ReviewStatus
    review_notes: Optional[str] = None
    reviewed_by: str = "clo"
