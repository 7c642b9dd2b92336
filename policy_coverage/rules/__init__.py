"""Rules — tenant configuration and the risk escalation safety net."""

from .escalation_rules import RiskEscalator
from .rules_config import (
    EscalationConfig,
    PopularityPenaltyConfig,
    PopularityTier,
    RulesConfigStore,
    ScoringConfig,
)

__all__ = [
    "RiskEscalator",
    "EscalationConfig",
    "PopularityPenaltyConfig",
    "PopularityTier",
    "RulesConfigStore",
    "ScoringConfig",
]
