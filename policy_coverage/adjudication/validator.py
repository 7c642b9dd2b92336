"""
Oracle output validation.

Normalizes what can be normalized (confidence, policy references) and
reports what cannot (unknown status, COVERED without a usable policy).
Validation errors make the orchestrator retry.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel

from policy_coverage.models.enums import Confidence, CoverageStatus, ORACLE_STATUSES
from policy_coverage.models.schemas import Candidate, OracleVerdict

logger = logging.getLogger(__name__)

_VALID_CONFIDENCE = {c.value for c in Confidence}
_POLICY_REFERENCE = re.compile(r'Policy\s+(?:"([^"]+)"|([^\s"(]+))', re.IGNORECASE)
_TEXT_FIELDS = (
    "obligation_span",
    "provision_span",
    "gap_detail",
    "recommended_policy",
    "reasoning",
)


class ValidationResult(BaseModel):
    verdict: OracleVerdict | None = None
    errors: list[str] = []

    @property
    def valid(self) -> bool:
        return not self.errors and self.verdict is not None


def resolve_policy_reference(value: Any, candidates: list[Candidate]) -> str | None:
    """
    Map the oracle's covering-policy reference onto a policy number.
    Pure digits are a 1-based index into the candidate list; out-of-range
    indices resolve to None.  Text naming a candidate's policy number, such
    as 'Policy CL-101 (Intake)', resolves to that candidate; other
    'Policy "X"' style text resolves to X.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none"):
        return None
    if text.isdigit():
        idx = int(text) - 1
        if 0 <= idx < len(candidates):
            return candidates[idx].policy_number
        return None

    # Longest number first so "CL-10" never shadows "CL-101".
    for candidate in sorted(candidates, key=lambda c: len(c.policy_number), reverse=True):
        number = candidate.policy_number
        if number and re.search(rf"(?<![\w-]){re.escape(number)}(?![\w-])", text, re.IGNORECASE):
            return number

    match = _POLICY_REFERENCE.search(text)
    if match:
        return (match.group(1) or match.group(2)).strip()
    return text


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_verdict(parsed: dict[str, Any], candidates: list[Candidate]) -> ValidationResult:
    errors: list[str] = []

    # Status labels are matched exactly; "covered" is not COVERED.
    raw_status = str(parsed.get("status") or "").strip()
    if raw_status not in ORACLE_STATUSES:
        errors.append(f"Invalid status: {parsed.get('status')}")

    raw_confidence = str(parsed.get("confidence") or "").strip().lower()
    confidence = raw_confidence if raw_confidence in _VALID_CONFIDENCE else Confidence.MEDIUM.value

    covering = resolve_policy_reference(parsed.get("covering_policy_number"), candidates)

    if raw_status == CoverageStatus.GAP.value:
        covering = None

    if raw_status == CoverageStatus.COVERED.value:
        if not covering:
            errors.append("COVERED but no covering_policy_number")
        elif covering not in {c.policy_number for c in candidates}:
            errors.append(f"COVERED by {covering}, which is not a candidate policy")

    if errors:
        logger.debug(f"[Validator] Rejected oracle output: {errors}")
        return ValidationResult(errors=errors)

    verdict = OracleVerdict(
        status=CoverageStatus(raw_status),
        confidence=Confidence(confidence),
        covering_policy_number=covering,
        **{field: _optional_text(parsed.get(field)) for field in _TEXT_FIELDS},
    )
    return ValidationResult(verdict=verdict)
