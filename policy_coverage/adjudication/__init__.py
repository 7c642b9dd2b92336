"""Adjudication — oracle prompting, tolerant parsing, validation and retries."""

from .json_repair import JSONExtractionError, extract_json_object
from .orchestrator import (
    AdjudicationOrchestrator,
    AdjudicationOutcome,
    AdjudicationRun,
    AttemptFailure,
    AttemptState,
)
from .prompt_builder import PROMPT_VERSION, build_assessment_prompt
from .validator import ValidationResult, resolve_policy_reference, validate_verdict

__all__ = [
    "AdjudicationOrchestrator",
    "AdjudicationOutcome",
    "AdjudicationRun",
    "AttemptFailure",
    "AttemptState",
    "JSONExtractionError",
    "PROMPT_VERSION",
    "ValidationResult",
    "build_assessment_prompt",
    "extract_json_object",
    "resolve_policy_reference",
    "validate_verdict",
]
