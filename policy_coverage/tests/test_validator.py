"""
Tests: oracle output validation and policy reference resolution.

Run with:
    pytest policy_coverage/tests/test_validator.py -v
"""

import pytest

from policy_coverage.adjudication.validator import resolve_policy_reference, validate_verdict
from policy_coverage.models.enums import Confidence, CoverageStatus
from policy_coverage.models.schemas import Candidate


CANDIDATES = [
    Candidate(policy_id="pol-clinical", policy_number="CL-101", score=90),
    Candidate(policy_id="pol-rights", policy_number="RR-201", score=40),
]


class TestResolvePolicyReference:
    @pytest.mark.parametrize("value, expected", [
        ("1", "CL-101"),
        ("2", "RR-201"),
        (2, "RR-201"),
        ("3", None),
        ("0", None),
        ('Policy "RR-201"', "RR-201"),
        ("policy CL-101", "CL-101"),
        ("CL-101", "CL-101"),
        ("Policy CL-101 (Biopsychosocial Assessment)", "CL-101"),
        ("RR-201 Seclusion and Restraint", "RR-201"),
        ('Policy "XX-9 Fire Safety"', "XX-9 Fire Safety"),
        ("Policy XX-9 (Fire Safety)", "XX-9"),
        ("null", None),
        ("None", None),
        ("", None),
        (None, None),
    ])
    def test_resolution(self, value, expected):
        assert resolve_policy_reference(value, CANDIDATES) == expected


class TestValidateVerdict:
    def test_covered_by_index(self):
        result = validate_verdict(
            {"status": "COVERED", "confidence": "high", "covering_policy_number": "1"},
            CANDIDATES,
        )
        assert result.valid
        assert result.verdict.status == CoverageStatus.COVERED
        assert result.verdict.covering_policy_number == "CL-101"

    def test_status_matched_exactly(self):
        result = validate_verdict({"status": "partial", "covering_policy_number": "2"}, CANDIDATES)
        assert not result.valid
        assert result.errors == ["Invalid status: partial"]

    def test_status_whitespace_trimmed(self):
        result = validate_verdict({"status": " PARTIAL ", "covering_policy_number": "2"}, CANDIDATES)
        assert result.valid
        assert result.verdict.status == CoverageStatus.PARTIAL

    def test_covered_by_descriptive_reference(self):
        result = validate_verdict(
            {"status": "COVERED", "covering_policy_number": "Policy CL-101 (Biopsychosocial Assessment)"},
            CANDIDATES,
        )
        assert result.valid
        assert result.verdict.covering_policy_number == "CL-101"

    def test_gap_forces_null_policy(self):
        result = validate_verdict(
            {"status": "GAP", "confidence": "high", "covering_policy_number": "1"},
            CANDIDATES,
        )
        assert result.valid
        assert result.verdict.covering_policy_number is None

    def test_covered_out_of_range_index_rejected(self):
        result = validate_verdict({"status": "COVERED", "covering_policy_number": "5"}, CANDIDATES)
        assert not result.valid
        assert "COVERED but no covering_policy_number" in result.errors

    def test_covered_by_non_candidate_rejected(self):
        result = validate_verdict({"status": "COVERED", "covering_policy_number": "XX-999"}, CANDIDATES)
        assert not result.valid
        assert "not a candidate" in result.errors[0]

    def test_covered_with_no_candidates_rejected(self):
        result = validate_verdict({"status": "COVERED", "covering_policy_number": "CL-101"}, [])
        assert not result.valid

    def test_unknown_status_rejected(self):
        result = validate_verdict({"status": "MAYBE"}, CANDIDATES)
        assert not result.valid
        assert result.errors == ["Invalid status: MAYBE"]

    def test_escalation_status_not_accepted_from_oracle(self):
        assert not validate_verdict({"status": "NEEDS_LEGAL_REVIEW"}, CANDIDATES).valid

    @pytest.mark.parametrize("raw, expected", [
        ("LOW", Confidence.LOW),
        ("high", Confidence.HIGH),
        ("very sure", Confidence.MEDIUM),
        (None, Confidence.MEDIUM),
    ])
    def test_confidence_normalized(self, raw, expected):
        result = validate_verdict({"status": "GAP", "confidence": raw}, CANDIDATES)
        assert result.verdict.confidence == expected

    def test_text_fields_blank_to_none(self):
        result = validate_verdict(
            {"status": "CONFLICTING", "covering_policy_number": "2", "gap_detail": "  ", "reasoning": "Contradicts 4.2"},
            CANDIDATES,
        )
        assert result.verdict.gap_detail is None
        assert result.verdict.reasoning == "Contradicts 4.2"
