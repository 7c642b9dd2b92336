"""
Tests: risk escalation and tenant rules config.

Run with:
    pytest policy_coverage/tests/test_escalation.py -v
"""

from policy_coverage.models.enums import Confidence, CoverageStatus, RiskTier
from policy_coverage.models.schemas import Assessment, Obligation, OracleVerdict
from policy_coverage.rules.escalation_rules import RiskEscalator
from policy_coverage.rules.rules_config import EscalationConfig, RulesConfigStore, ScoringConfig


def _verdict(status, confidence):
    return OracleVerdict(status=status, confidence=confidence)


class TestRiskEscalator:
    def test_high_risk_by_topic(self):
        obligation = Obligation(id="o1", requirement="Obtain a signature.", topics={"consent"})
        assert RiskEscalator().is_high_risk(obligation)

    def test_high_risk_by_sensitive_term(self):
        obligation = Obligation(id="o1", requirement="Any use of Restraint must be documented.")
        assert RiskEscalator().derive_risk_tier(obligation) == RiskTier.HIGH

    def test_sensitive_term_needs_word_boundary(self):
        obligation = Obligation(id="o1", requirement="Unrestrainted growth of paperwork.")
        assert not RiskEscalator().is_high_risk(obligation)

    def test_high_risk_by_tier(self):
        obligation = Obligation(id="o1", requirement="Fire drills are held.", risk_tier=RiskTier.HIGH)
        assert RiskEscalator().is_high_risk(obligation)

    def test_standard(self):
        obligation = Obligation(id="o1", requirement="Fire drills are held quarterly.", topics={"safety"})
        assert RiskEscalator().derive_risk_tier(obligation) == RiskTier.STANDARD

    def test_escalates_low_confidence_gap_on_high_risk(self):
        obligation = Obligation(id="o1", requirement="Seclusion requires a physician order.")
        assert RiskEscalator().should_escalate(_verdict(CoverageStatus.GAP, Confidence.LOW), obligation)
        assert RiskEscalator().should_escalate(_verdict(CoverageStatus.PARTIAL, Confidence.LOW), obligation)

    def test_no_escalation_when_covered_or_confident(self):
        obligation = Obligation(id="o1", requirement="Seclusion requires a physician order.")
        escalator = RiskEscalator()
        assert not escalator.should_escalate(_verdict(CoverageStatus.COVERED, Confidence.LOW), obligation)
        assert not escalator.should_escalate(_verdict(CoverageStatus.GAP, Confidence.MEDIUM), obligation)

    def test_no_escalation_on_standard_risk(self):
        obligation = Obligation(id="o1", requirement="Fire drills are held quarterly.")
        assert not RiskEscalator().should_escalate(_verdict(CoverageStatus.GAP, Confidence.LOW), obligation)

    def test_empty_vocabulary_only_uses_tier(self):
        escalator = RiskEscalator(EscalationConfig(high_risk_topics=[], sensitive_terms=[]))
        assert not escalator.is_high_risk(Obligation(id="o1", requirement="Seclusion.", topics={"consent"}))
        assert escalator.is_high_risk(Obligation(id="o2", risk_tier=RiskTier.HIGH))


class TestEffectiveStatus:
    def test_escalated_presents_legal_review_but_keeps_raw(self):
        a = Assessment(obligation_id="o1", status=CoverageStatus.GAP, confidence=Confidence.LOW, escalated=True)
        assert a.effective_status == "NEEDS_LEGAL_REVIEW"
        assert a.status == CoverageStatus.GAP
        assert a.model_dump()["effective_status"] == "NEEDS_LEGAL_REVIEW"

    def test_plain(self):
        a = Assessment(obligation_id="o1", status=CoverageStatus.PARTIAL, confidence=Confidence.HIGH)
        assert a.effective_status == "PARTIAL"


class TestRulesConfigStore:
    def test_mock_mode_uses_defaults(self):
        store = RulesConfigStore(org_id="tenant-a")
        assert store.get_scoring_config() == ScoringConfig()
        assert store.get_escalation_config() == EscalationConfig()
        assert store.update_config("scoring", {"min_score": 20}) is False

    def test_tenant_override_loaded(self, monkeypatch):
        class _Collection:
            def find_one(self, query):
                assert query == {"rule_type": "scoring", "org_id": "tenant-a"}
                return {"config": {"min_score": 25, "max_candidates": 5}}

        class _Db:
            rules_config = _Collection()

        store = RulesConfigStore(org_id="tenant-a")
        monkeypatch.setattr(store, "_get_db", lambda: _Db())

        config = store.get_scoring_config()

        assert config.min_score == 25
        assert config.max_candidates == 5
        assert config.citation_exact == 60
