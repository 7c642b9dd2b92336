"""
Rules Config Store — loads scoring and escalation configuration per tenant.

Each tenant (org_id) can override vocabularies, weights and limits in
MongoDB.  Falls back to the built-in defaults when MongoDB is empty, not
configured, or the app runs in mock mode.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel

from policy_coverage.config import get_settings

logger = logging.getLogger(__name__)


# ── Default vocabularies ─────────────────────────────────

DEFAULT_DOMAIN_TERMS: list[str] = [
    "assessment", "biopsychosocial", "psychiatric", "evaluation", "screening",
    "treatment plan", "treatment planning", "individualized",
    "discharge", "discharge plan", "aftercare", "transition", "continuity",
    "consent", "informed consent", "voluntary", "involuntary",
    "confidential", "hipaa", "42 cfr", "privacy", "release of information",
    "medication", "prescri", "controlled substance", "narcotic", "formulary",
    "restraint", "seclusion", "grievance", "complaint", "patient rights", "rights",
    "abuse", "neglect", "reporting", "infection", "tuberculosis", "bloodborne", "exposure",
    "credentialing", "privileging", "scope of practice",
    "training", "competency", "orientation",
    "documentation", "clinical record", "medical record", "chart",
    "detox", "withdrawal", "ciwa", "cows",
    "group therapy", "individual therapy", "counseling",
    "mat", "buprenorphine", "methadone", "naloxone", "narcan",
    "safety plan", "suicide", "homicidal", "risk",
    "emergency", "disaster", "evacuation",
    "quality", "performance improvement", "outcome",
    "staffing", "caseload", "supervision",
    "admission", "intake", "referral",
    "transportation", "visitor", "phone", "mail",
    "fire", "safety", "hazardous",
    "laboratory", "specimen", "drug screen",
    "utilization", "length of stay", "asam",
    "governance", "bylaws", "ethics", "committee",
]

DEFAULT_HIGH_VALUE_TERMS: list[str] = [
    "biopsychosocial", "psychiatric", "ciwa", "cows", "involuntary",
    "restraint", "seclusion", "buprenorphine", "methadone", "naloxone",
    "tuberculosis", "bloodborne", "hipaa", "42 cfr", "asam",
    "credentialing", "privileging", "formulary", "narcotic",
    "grievance", "suicide", "homicidal", "discharge plan",
    "informed consent", "release of information", "controlled substance",
]

DEFAULT_HIGH_RISK_TOPICS: list[str] = [
    "patient_rights", "consent", "confidential", "involuntary",
    "abuse", "neglect", "restraint", "seclusion", "medication_management",
    "controlled substance", "suicide", "reporting",
]

DEFAULT_SENSITIVE_TERMS: list[str] = [
    "involuntary", "restraint", "seclusion", "abuse", "neglect",
    "confidential", "suicide", "controlled substance",
]


# ── Config models ────────────────────────────────────────

class PopularityTier(BaseModel):
    """Citations shared by more than `above` policies keep `factor` of their score."""
    above: int
    factor: float


class PopularityPenaltyConfig(BaseModel):
    strategy: Literal["tiered", "decay"] = "tiered"
    tiers: list[PopularityTier] = [
        PopularityTier(above=10, factor=0.3),
        PopularityTier(above=5, factor=0.5),
        PopularityTier(above=2, factor=0.75),
    ]
    # decay strategy
    free_uses: int = 2
    decay_rate: float = 0.25
    floor: float = 0.2


class ScoringConfig(BaseModel):
    """Candidate scoring weights, limits and vocabularies."""
    citation_exact: int = 60
    citation_section: int = 40
    sub_domain_match: int = 35
    keyword_base: int = 15
    keyword_bonus: int = 10
    keyword_cap: int = 70
    title_base: int = 10
    title_bonus: int = 12
    title_cap: int = 50
    high_value_bonus: int = 10
    vector_weight: int = 50
    vector_top_k: int = 20
    vector_similarity_floor: float = 0.25
    max_candidates: int = 12
    min_score: int = 15
    domain_terms: list[str] = DEFAULT_DOMAIN_TERMS
    high_value_terms: list[str] = DEFAULT_HIGH_VALUE_TERMS
    popularity_penalty: PopularityPenaltyConfig = PopularityPenaltyConfig()


class EscalationConfig(BaseModel):
    """Safety-escalation vocabulary for low-confidence verdicts."""
    high_risk_topics: list[str] = DEFAULT_HIGH_RISK_TOPICS
    sensitive_terms: list[str] = DEFAULT_SENSITIVE_TERMS


# ── Store class ──────────────────────────────────────────

class RulesConfigStore:
    """
    Loads tenant configs from MongoDB. Falls back to defaults.
    Cached per (rule_type, org_id) for the lifetime of the process.
    """

    def __init__(self, org_id: str | None = None):
        self.settings = get_settings()
        self.org_id = org_id or self.settings.org_id
        self._db = None
        self._cache: dict[str, Any] = {}

    def _get_db(self):
        if self._db is not None or self.settings.mock_mode:
            return self._db
        try:
            from pymongo import MongoClient
            client = MongoClient(self.settings.mongodb_uri, serverSelectionTimeoutMS=2000)
            self._db = client[self.settings.mongodb_database]
        except Exception as e:
            logger.warning(f"MongoDB not available, using defaults: {e}")
            self._db = None
        return self._db

    def _load_config(self, rule_type: str, model_cls: type[BaseModel]) -> BaseModel:
        """Load from MongoDB or return defaults."""
        if rule_type in self._cache:
            return self._cache[rule_type]

        db = self._get_db()
        if db is not None:
            try:
                doc = db.rules_config.find_one({"rule_type": rule_type, "org_id": self.org_id})
                if doc and "config" in doc:
                    config = model_cls(**doc["config"])
                    self._cache[rule_type] = config
                    logger.info(f"Loaded {rule_type} config for org {self.org_id}")
                    return config
            except Exception as e:
                logger.warning(f"Failed loading {rule_type} from MongoDB: {e}")

        config = model_cls()
        self._cache[rule_type] = config
        return config

    def get_scoring_config(self) -> ScoringConfig:
        return self._load_config("scoring", ScoringConfig)  # type: ignore[return-value]

    def get_escalation_config(self) -> EscalationConfig:
        return self._load_config("escalation", EscalationConfig)  # type: ignore[return-value]

    def update_config(self, rule_type: str, config_dict: dict[str, Any]) -> bool:
        """Admin: save/update a tenant config in MongoDB."""
        db = self._get_db()
        if db is None:
            logger.error("Cannot update config — MongoDB not available")
            return False

        db.rules_config.update_one(
            {"rule_type": rule_type, "org_id": self.org_id},
            {"$set": {"rule_type": rule_type, "org_id": self.org_id, "config": config_dict}},
            upsert=True,
        )
        self._cache.pop(rule_type, None)
        logger.info(f"Updated {rule_type} config for org {self.org_id}")
        return True
