from enum import Enum


class CoverageStatus(str, Enum):
    COVERED = "COVERED"
    PARTIAL = "PARTIAL"
    GAP = "GAP"
    CONFLICTING = "CONFLICTING"
    NEEDS_LEGAL_REVIEW = "NEEDS_LEGAL_REVIEW"


# Statuses the oracle itself is allowed to return
ORACLE_STATUSES = frozenset({
    CoverageStatus.COVERED.value,
    CoverageStatus.PARTIAL.value,
    CoverageStatus.GAP.value,
    CoverageStatus.CONFLICTING.value,
})


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReviewStatus(str, Enum):
    COVERED = "COVERED"
    PARTIAL = "PARTIAL"
    GAP = "GAP"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class RiskTier(str, Enum):
    HIGH = "high"
    STANDARD = "standard"


class SignalCategory(str, Enum):
    CITATION = "citation"
    SUB_DOMAIN = "sub_domain"
    KEYWORD = "keyword"
    TITLE = "title"
    VECTOR = "vector"


class AssessedBy(str, Enum):
    ALGORITHM = "algorithm"
    LLM = "llm"
    FALLBACK = "fallback"
