"""
Tests: end-to-end assessment of obligations against the in-memory store.

Run with:
    pytest policy_coverage/tests/test_assessment_service.py -v
"""

from policy_coverage.adjudication.prompt_builder import PROMPT_VERSION
from policy_coverage.config import get_settings
from policy_coverage.models.enums import AssessedBy, Confidence, CoverageStatus
from policy_coverage.services.assessment_service import NO_CANDIDATES_DETAIL, build_assessment_service


def _by_id(repository, obligation_id):
    return repository.get_obligation(obligation_id)


class TestAssess:
    def test_zero_candidates_is_algorithmic_gap(self, service, repository, oracle):
        assessment = service.assess(_by_id(repository, "obl-nothing"), "run-1")

        assert assessment.status == CoverageStatus.GAP
        assert assessment.confidence == Confidence.HIGH
        assert assessment.match_method == "none"
        assert assessment.assessed_by == AssessedBy.ALGORITHM
        assert assessment.candidate_count == 0
        assert assessment.covering_policy_id is None
        assert assessment.gap_detail == NO_CANDIDATES_DETAIL
        assert oracle.prompts == []

    def test_covered_resolves_candidate(self, service, repository):
        assessment = service.assess(_by_id(repository, "obl-assess"), "run-1")

        assert assessment.status == CoverageStatus.COVERED
        assert assessment.covering_policy_number == "CL-101"
        assert assessment.covering_policy_id == "pol-clinical"
        assert assessment.match_method == "citation"
        assert assessment.match_score == 60 + 45 + 44
        assert assessment.vector_score is None
        assert assessment.candidate_count == 1
        assert assessment.assessed_by == AssessedBy.LLM
        assert assessment.attempts == 1
        assert assessment.prompt_version == PROMPT_VERSION
        assert assessment.model_id == get_settings().llm_model
        assert not assessment.escalated
        assert assessment.effective_status == "COVERED"

    def test_low_confidence_gap_on_high_risk_escalates(self, service, repository):
        assessment = service.assess(_by_id(repository, "obl-seclusion"), "run-1")

        assert assessment.escalated
        assert assessment.status == CoverageStatus.GAP
        assert assessment.confidence == Confidence.LOW
        assert assessment.covering_policy_number is None
        assert assessment.effective_status == "NEEDS_LEGAL_REVIEW"

    def test_oracle_outage_yields_fallback_assessment(self, service, repository, oracle, sleeps):
        oracle.by_citation["65D-30.004(6)(a)"] = TimeoutError("read timed out")

        assessment = service.assess(_by_id(repository, "obl-assess"), "run-1")

        assert assessment.assessed_by == AssessedBy.FALLBACK
        assert assessment.status == CoverageStatus.GAP
        assert assessment.confidence == Confidence.LOW
        assert assessment.attempts == 3
        assert assessment.gap_detail == "Assessment failed after 3 attempts: TimeoutError: read timed out"
        assert not assessment.escalated
        assert sleeps == [1.0, 1.0]
        assert repository.list_assessments("run-1") == [assessment]

    def test_oracle_outage_on_high_risk_goes_to_legal_review(self, service, repository, oracle):
        oracle.by_citation["394.459(3)"] = ConnectionError("down")
        assessment = service.assess(_by_id(repository, "obl-seclusion"), "run-1")
        assert assessment.assessed_by == AssessedBy.FALLBACK
        assert assessment.effective_status == "NEEDS_LEGAL_REVIEW"

    def test_same_run_is_idempotent(self, service, repository):
        obligation = _by_id(repository, "obl-assess")
        first = service.assess(obligation, "run-1")
        second = service.assess(obligation, "run-1")

        assert second.id == first.id
        assert len(repository.list_assessments("run-1")) == 1

    def test_reassess_same_run_skips_oracle_and_audit(self, service, repository, oracle):
        obligation = _by_id(repository, "obl-seclusion")
        service.assess(obligation, "r1")
        service.assess(obligation, "r1")

        assert len(oracle.prompts) == 1
        assert len(repository.list_assessments("r1")) == 1
        assert len(repository.list_audit_events()) == 1

    def test_row_stored_by_another_worker_is_not_audited_twice(self, service, repository, monkeypatch):
        obligation = _by_id(repository, "obl-assess")
        first = service.assess(obligation, "run-1")
        # Simulate a worker that passed the lookup before the first row landed.
        monkeypatch.setattr(repository, "find_assessment", lambda obligation_id, run_id: None)

        second = service.assess(obligation, "run-1")

        assert second.id == first.id
        assert len(repository.list_audit_events()) == 1

    def test_new_run_gets_new_assessment(self, service, repository):
        obligation = _by_id(repository, "obl-assess")
        service.assess(obligation, "run-1")
        service.assess(obligation, "run-2")
        assert len(repository.list_assessments()) == 2


class TestAudit:
    def test_one_redacted_event_per_assessment(self, service, repository):
        obligation = _by_id(repository, "obl-assess")
        assessment = service.assess(obligation, "run-1")

        [event] = repository.list_audit_events()
        assert event.event_type == "assessment"
        assert event.entity_id == assessment.id
        assert event.input_summary == "65D-30.004(6)(a) | 1 candidates"
        assert event.output_summary == "COVERED (high) → CL-101"
        assert event.prompt_version == PROMPT_VERSION
        assert len(event.metadata["prompt_sha256"]) == 64
        assert event.metadata["attempts"] == 1
        assert obligation.requirement not in event.model_dump_json()
        assert service.audit.get_trail(assessment.id) == [event]

    def test_zero_candidate_event(self, service, repository):
        service.assess(_by_id(repository, "obl-nothing"), "run-1")
        [event] = repository.list_audit_events()
        assert event.actor == "algorithm"
        assert event.output_summary == "GAP (high) → none"
        assert "prompt_sha256" not in event.metadata

    def test_derived_risk_tier_recorded(self, service, repository):
        service.assess(_by_id(repository, "obl-seclusion"), "run-1")
        service.assess(_by_id(repository, "obl-nothing"), "run-1")

        tiers = [event.metadata["risk_tier"] for event in repository.list_audit_events()]
        assert tiers == ["high", "standard"]
        assert repository.get_obligation("obl-seclusion").risk_tier is None

    def test_audit_failure_does_not_fail_assessment(self, service, repository, monkeypatch):
        def broken(event):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(repository, "record_audit_event", broken)

        assessment = service.assess(_by_id(repository, "obl-assess"), "run-1")

        assert assessment.status == CoverageStatus.COVERED
        assert repository.get_assessment(assessment.id) is not None


class TestQueue:
    def test_assess_next_orders_by_source_then_citation(self, service):
        order = []
        while True:
            assessment = service.assess_next("run-1")
            if assessment is None:
                break
            order.append(assessment.obligation_id)
        assert order == ["obl-seclusion", "obl-assess", "obl-nothing"]

    def test_assess_by_id_unknown(self, service):
        assert service.assess_by_id("missing", "run-1") is None

    def test_batch_with_workers(self, service, repository, obligations):
        results = service.assess_batch(obligations, "run-1", workers=3)

        assert sorted(a.obligation_id for a in results) == sorted(o.id for o in obligations)
        assert len(repository.list_assessments("run-1")) == 3
        assert len(repository.list_audit_events()) == 3

    def test_assess_all_and_progress(self, service):
        service.assess_all("run-1", workers=1)
        progress = service.progress("run-1")

        assert progress["total"] == 3
        assert progress["assessed"] == 3
        assert progress["unassessed"] == 0
        assert progress["by_status"] == {"COVERED": 1, "GAP": 1, "NEEDS_LEGAL_REVIEW": 1}
        assert progress["needs_review"] == 1
        assert progress["human_reviewed"] == 0


class TestFactory:
    def test_mock_mode_wiring_without_vectors(self, repository):
        service = build_assessment_service(repository)
        assert [s.method for s in service.matcher.signals] == ["citation", "sub_domain", "keyword", "title"]
        assert service.repository is repository
