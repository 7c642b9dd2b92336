"""Models — enums and pydantic schemas for the coverage engine."""

from .enums import (
    AssessedBy,
    Confidence,
    CoverageStatus,
    ORACLE_STATUSES,
    ReviewStatus,
    RiskTier,
    SignalCategory,
)
from .schemas import (
    Assessment,
    AuditEvent,
    Candidate,
    MatchEvidence,
    Obligation,
    OracleVerdict,
    Policy,
    Provision,
    ReviewRequest,
    SignalBreakdown,
    SignalHit,
    SubDomainLabel,
)

__all__ = [
    "AssessedBy",
    "Confidence",
    "CoverageStatus",
    "ORACLE_STATUSES",
    "ReviewStatus",
    "RiskTier",
    "SignalCategory",
    "Assessment",
    "AuditEvent",
    "Candidate",
    "MatchEvidence",
    "Obligation",
    "OracleVerdict",
    "Policy",
    "Provision",
    "ReviewRequest",
    "SignalBreakdown",
    "SignalHit",
    "SubDomainLabel",
]
