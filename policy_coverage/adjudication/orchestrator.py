"""
Adjudication Orchestrator — drives the generative oracle to a validated verdict.

Each obligation runs through an explicit attempt state machine:

    PENDING → ATTEMPTING(n) → VALIDATED
                            ↘ EXHAUSTED  (deterministic GAP / low fallback)

Transport errors wait a fixed delay before the next attempt; unparseable or
invalid output is retried immediately.  `adjudicate()` never raises.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from policy_coverage.adjudication.json_repair import JSONExtractionError, extract_json_object
from policy_coverage.adjudication.prompt_builder import build_assessment_prompt
from policy_coverage.adjudication.validator import validate_verdict
from policy_coverage.config import get_settings
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.enums import Confidence, CoverageStatus
from policy_coverage.models.schemas import Candidate, Obligation, OracleVerdict
from policy_coverage.utils.hashing import sha256_hash

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    PENDING = "PENDING"
    ATTEMPTING = "ATTEMPTING"
    VALIDATED = "VALIDATED"
    EXHAUSTED = "EXHAUSTED"


class AttemptFailure(str, Enum):
    TRANSPORT = "transport"
    PARSE = "parse"
    VALIDATION = "validation"


class AdjudicationRun(BaseModel):
    """Attempt bookkeeping for one obligation.  Illegal transitions raise RuntimeError."""

    max_attempts: int
    state: AttemptState = AttemptState.PENDING
    attempt: int = 0
    errors: list[str] = []
    failures: list[AttemptFailure] = []
    verdict: Optional[OracleVerdict] = None

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempt, 0)

    @property
    def done(self) -> bool:
        return self.state in (AttemptState.VALIDATED, AttemptState.EXHAUSTED)

    @property
    def last_error(self) -> str:
        return self.errors[-1] if self.errors else "unknown error"

    def start_attempt(self) -> int:
        if self.done:
            raise RuntimeError(f"Cannot start an attempt from {self.state.value}")
        if not self.attempts_remaining:
            raise RuntimeError("No attempts remaining")
        self.attempt += 1
        self.state = AttemptState.ATTEMPTING
        return self.attempt

    def succeed(self, verdict: OracleVerdict) -> None:
        if self.state != AttemptState.ATTEMPTING:
            raise RuntimeError(f"Cannot validate from {self.state.value}")
        self.verdict = verdict
        self.state = AttemptState.VALIDATED

    def fail(self, kind: AttemptFailure, error: str) -> None:
        if self.state != AttemptState.ATTEMPTING:
            raise RuntimeError(f"Cannot fail an attempt from {self.state.value}")
        self.failures.append(kind)
        self.errors.append(error)
        if not self.attempts_remaining:
            self.state = AttemptState.EXHAUSTED

    def abort(self, error: str) -> None:
        """Give up before any oracle call (e.g. the prompt could not be built)."""
        if self.done:
            raise RuntimeError(f"Cannot abort from {self.state.value}")
        self.errors.append(error)
        self.state = AttemptState.EXHAUSTED

    def fallback_verdict(self) -> OracleVerdict:
        return OracleVerdict(
            status=CoverageStatus.GAP,
            confidence=Confidence.LOW,
            covering_policy_number=None,
            gap_detail=f"Assessment failed after {self.attempt} attempts: {self.last_error}",
            reasoning="Error during assessment",
        )


class AdjudicationOutcome(BaseModel):
    verdict: OracleVerdict
    state: AttemptState
    attempts: int
    errors: list[str] = []
    prompt_sha256: str = ""
    response_chars: int = 0

    @property
    def fell_back(self) -> bool:
        return self.state == AttemptState.EXHAUSTED


class AdjudicationOrchestrator:
    """Calls the oracle with a bounded retry budget and validates its output."""

    def __init__(
        self,
        oracle: Callable[[str], str] | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        max_provisions: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self._oracle = oracle
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_delay = settings.retry_delay_seconds if retry_delay is None else retry_delay
        self.max_provisions = (
            settings.max_provisions_per_candidate if max_provisions is None else max_provisions
        )
        self._sleep = sleep

    def _call_oracle(self, prompt: str) -> str:
        if self._oracle is not None:
            return self._oracle(prompt)
        from policy_coverage.services import llm_service
        return llm_service.llm_text_call(prompt)

    def adjudicate(
        self,
        obligation: Obligation,
        candidates: list[Candidate],
        corpus: PolicyCorpus,
    ) -> AdjudicationOutcome:
        run = AdjudicationRun(max_attempts=self.max_retries + 1)
        tag = obligation.citation or obligation.id
        prompt = ""
        response_chars = 0

        try:
            prompt = build_assessment_prompt(obligation, candidates, corpus, self.max_provisions)
        except Exception as exc:
            logger.exception(f"[Adjudicator] {tag}: could not build prompt")
            run.abort(f"Prompt build failed: {exc}")

        while not run.done:
            attempt = run.start_attempt()
            try:
                raw = self._call_oracle(prompt)
            except Exception as exc:
                logger.warning(
                    f"[Adjudicator] {tag}: oracle call failed on attempt "
                    f"{attempt}/{run.max_attempts}: {exc}"
                )
                run.fail(AttemptFailure.TRANSPORT, f"{type(exc).__name__}: {exc}")
                if not run.done:
                    self._sleep(self.retry_delay)
                continue

            response_chars = len(raw or "")
            try:
                parsed = extract_json_object(raw)
            except JSONExtractionError as exc:
                logger.warning(f"[Adjudicator] {tag}: attempt {attempt} unparseable: {exc}")
                run.fail(AttemptFailure.PARSE, str(exc))
                continue

            result = validate_verdict(parsed, candidates)
            if not result.valid:
                logger.warning(
                    f"[Adjudicator] {tag}: attempt {attempt} failed validation: "
                    f"{', '.join(result.errors)}"
                )
                run.fail(AttemptFailure.VALIDATION, ", ".join(result.errors))
                continue

            run.succeed(result.verdict)

        if run.state == AttemptState.VALIDATED:
            verdict = run.verdict
            logger.info(
                f"[Adjudicator] {tag}: {verdict.status.value} ({verdict.confidence.value}) "
                f"→ {verdict.covering_policy_number or 'none'} after {run.attempt} attempt(s)"
            )
        else:
            verdict = run.fallback_verdict()
            logger.error(f"[Adjudicator] {tag}: falling back to GAP — {verdict.gap_detail}")

        return AdjudicationOutcome(
            verdict=verdict,
            state=run.state,
            attempts=run.attempt,
            errors=run.errors,
            prompt_sha256=sha256_hash(prompt) if prompt else "",
            response_chars=response_chars,
        )
