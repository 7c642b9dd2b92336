"""
Escalation Rules — deterministic safety net over the oracle's judgment.

A low-confidence, non-COVERED verdict on a high-risk obligation is presented
downstream as NEEDS_LEGAL_REVIEW.  The raw oracle status and confidence are
left untouched; only the `escalated` flag is set.
"""

from __future__ import annotations

import logging
import re

from policy_coverage.models.enums import Confidence, CoverageStatus, RiskTier
from policy_coverage.models.schemas import Obligation, OracleVerdict
from policy_coverage.rules.rules_config import EscalationConfig

logger = logging.getLogger(__name__)


class RiskEscalator:
    """Flags uncertain verdicts on sensitive topics for legal review."""

    def __init__(self, config: EscalationConfig | None = None):
        self.config = config or EscalationConfig()
        self._topics = {t.lower() for t in self.config.high_risk_topics}
        terms = "|".join(re.escape(t.lower()) for t in self.config.sensitive_terms)
        self._pattern = re.compile(rf"\b({terms})\b") if terms else None

    def is_high_risk(self, obligation: Obligation) -> bool:
        if obligation.risk_tier == RiskTier.HIGH:
            return True
        if any(topic.lower() in self._topics for topic in obligation.topics):
            return True
        if self._pattern is None:
            return False
        return self._pattern.search((obligation.requirement or "").lower()) is not None

    def derive_risk_tier(self, obligation: Obligation) -> RiskTier:
        return RiskTier.HIGH if self.is_high_risk(obligation) else RiskTier.STANDARD

    def should_escalate(self, verdict: OracleVerdict, obligation: Obligation) -> bool:
        """
        True when confidence is low, the obligation is high-risk and the
        verdict is anything other than COVERED.
        """
        if verdict.confidence != Confidence.LOW:
            return False
        if verdict.status == CoverageStatus.COVERED:
            return False
        escalate = self.is_high_risk(obligation)
        if escalate:
            logger.info(
                f"[Escalation] {obligation.citation or obligation.id}: "
                f"{verdict.status.value} (low) on high-risk topic → NEEDS_LEGAL_REVIEW"
            )
        return escalate
