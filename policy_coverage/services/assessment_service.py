"""
Assessment Service — one obligation in, one stored Assessment out.

    obligation → CandidateMatcher → (no candidates: GAP / high, no oracle call)
               → AdjudicationOrchestrator → RiskEscalator
               → CoverageRepository.save_assessment → AuditService.record

Every obligation submitted ends in exactly one terminal Assessment; oracle
and embedding failures are absorbed upstream by the orchestrator and the
vector signal.
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from policy_coverage.adjudication.orchestrator import AdjudicationOrchestrator, AdjudicationOutcome
from policy_coverage.adjudication.prompt_builder import PROMPT_VERSION
from policy_coverage.config import get_settings
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.matching.matcher import CandidateMatcher, build_default_signals
from policy_coverage.models.enums import AssessedBy, Confidence, CoverageStatus
from policy_coverage.models.schemas import Assessment, Candidate, Obligation
from policy_coverage.persistence.coverage_repository import CoverageRepository, build_repository
from policy_coverage.retrieval.provision_store import InMemoryProvisionStore, ProvisionVectorStore
from policy_coverage.rules.escalation_rules import RiskEscalator
from policy_coverage.rules.rules_config import RulesConfigStore
from policy_coverage.services.audit_service import AuditService

logger = logging.getLogger(__name__)

NO_CANDIDATES_DETAIL = "No candidate policies found by matching algorithm"


class AssessmentService:
    """Glues matching, adjudication and escalation into one call per obligation."""

    def __init__(
        self,
        repository: CoverageRepository,
        matcher: CandidateMatcher | None = None,
        orchestrator: AdjudicationOrchestrator | None = None,
        escalator: RiskEscalator | None = None,
        audit: AuditService | None = None,
        corpus: PolicyCorpus | None = None,
    ):
        self.repository = repository
        if matcher is None:
            scoring = RulesConfigStore().get_scoring_config()
            matcher = CandidateMatcher(build_default_signals(scoring), scoring)
        self.matcher = matcher
        self.orchestrator = orchestrator or AdjudicationOrchestrator()
        self.escalator = escalator or RiskEscalator()
        self.audit = audit or AuditService(repository)
        self._corpus = corpus

    @property
    def corpus(self) -> PolicyCorpus:
        if self._corpus is None:
            self._corpus = self.repository.load_corpus()
        return self._corpus

    def reload_corpus(self) -> PolicyCorpus:
        self._corpus = None
        return self.corpus

    # ── Single obligation ────────────────────────────────

    def assess(self, obligation: Obligation, run_id: str = "") -> Assessment:
        tag = obligation.citation or obligation.id
        existing = self.repository.find_assessment(obligation.id, run_id)
        if existing is not None:
            logger.info(f"[Assess] {tag}: already assessed in run {run_id!r} → {existing.id}")
            return existing

        if obligation.risk_tier is None:
            obligation = obligation.model_copy(
                update={"risk_tier": self.escalator.derive_risk_tier(obligation)}
            )
        candidates = self.matcher.find_candidates(obligation, self.corpus)

        if not candidates:
            logger.info(f"[Assess] {tag}: no candidates → GAP")
            assessment = Assessment(
                obligation_id=obligation.id,
                run_id=run_id,
                status=CoverageStatus.GAP,
                confidence=Confidence.HIGH,
                gap_detail=NO_CANDIDATES_DETAIL,
                match_method="none",
                candidate_count=0,
                assessed_by=AssessedBy.ALGORITHM,
            )
            stored = self.repository.save_assessment(assessment)
            if stored.id == assessment.id:
                self._audit_assessment(obligation, stored, None)
            return stored

        outcome = self.orchestrator.adjudicate(obligation, candidates, self.corpus)
        assessment = self._build_assessment(obligation, run_id, candidates, outcome)
        stored = self.repository.save_assessment(assessment)
        # A concurrent worker may have stored this pair first; its row is already audited.
        if stored.id == assessment.id:
            self._audit_assessment(obligation, stored, outcome)
        logger.info(f"[Assess] {tag}: {stored.effective_status} ({stored.confidence.value})")
        return stored

    def _build_assessment(
        self,
        obligation: Obligation,
        run_id: str,
        candidates: list[Candidate],
        outcome: AdjudicationOutcome,
    ) -> Assessment:
        verdict = outcome.verdict
        matched = None
        if verdict.covering_policy_number:
            matched = next(
                (c for c in candidates if c.policy_number == verdict.covering_policy_number),
                None,
            )

        return Assessment(
            obligation_id=obligation.id,
            run_id=run_id,
            status=verdict.status,
            confidence=verdict.confidence,
            covering_policy_id=matched.policy_id if matched else None,
            covering_policy_number=verdict.covering_policy_number,
            gap_detail=verdict.gap_detail,
            recommended_policy=verdict.recommended_policy,
            obligation_span=verdict.obligation_span,
            provision_span=verdict.provision_span,
            reasoning=verdict.reasoning,
            match_method=matched.methods[0].method if matched and matched.methods else "none",
            match_score=matched.score if matched else 0,
            vector_score=(matched.signal_breakdown.vector or None) if matched else None,
            candidate_count=len(candidates),
            escalated=self.escalator.should_escalate(verdict, obligation),
            assessed_by=AssessedBy.FALLBACK if outcome.fell_back else AssessedBy.LLM,
            model_id=get_settings().llm_model,
            prompt_version=PROMPT_VERSION,
            attempts=outcome.attempts,
        )

    def _audit_assessment(
        self,
        obligation: Obligation,
        assessment: Assessment,
        outcome: AdjudicationOutcome | None,
    ) -> None:
        metadata: dict[str, Any] = {
            "run_id": assessment.run_id,
            "candidate_count": assessment.candidate_count,
            "escalated": assessment.escalated,
            "assessed_by": assessment.assessed_by.value,
            "risk_tier": obligation.risk_tier.value if obligation.risk_tier else None,
        }
        if outcome is not None:
            metadata.update({
                "attempts": outcome.attempts,
                "errors": len(outcome.errors),
                "prompt_sha256": outcome.prompt_sha256,
                "response_chars": outcome.response_chars,
            })
        self.audit.record(
            event_type="assessment",
            entity_type="coverage_assessment",
            entity_id=assessment.id,
            actor=assessment.assessed_by.value,
            model_id=assessment.model_id or None,
            prompt_version=assessment.prompt_version or None,
            input_summary=f"{obligation.citation} | {assessment.candidate_count} candidates",
            output_summary=(
                f"{assessment.status.value} ({assessment.confidence.value}) → "
                f"{assessment.covering_policy_number or 'none'}"
            ),
            metadata=metadata,
        )

    # ── Work queue ───────────────────────────────────────

    def assess_next(self, run_id: str = "") -> Assessment | None:
        """Assess the next unassessed obligation; None when the queue is empty."""
        obligation = self.repository.next_unassessed_obligation(run_id)
        if obligation is None:
            logger.info("[Assess] All obligations assessed")
            return None
        return self.assess(obligation, run_id)

    def assess_by_id(self, obligation_id: str, run_id: str = "") -> Assessment | None:
        obligation = self.repository.get_obligation(obligation_id)
        if obligation is None:
            return None
        return self.assess(obligation, run_id)

    def assess_batch(
        self,
        obligations: list[Obligation],
        run_id: str = "",
        workers: int | None = None,
    ) -> list[Assessment]:
        """Assess independent obligations; a thread pool when workers > 1."""
        workers = get_settings().assessment_workers if workers is None else workers
        corpus = self.corpus  # load once before fanning out
        logger.info(f"[Assess] Batch of {len(obligations)} obligations ({workers} worker(s), {len(corpus)} policies)")

        if workers <= 1:
            return [self.assess(o, run_id) for o in obligations]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda o: self.assess(o, run_id), obligations))

    def assess_all(self, run_id: str = "", workers: int | None = None) -> list[Assessment]:
        return self.assess_batch(self.repository.unassessed_obligations(run_id), run_id, workers)

    def progress(self, run_id: str | None = None) -> dict[str, Any]:
        """Totals per effective status plus assessed / unassessed counts."""
        assessments = self.repository.list_assessments(run_id)
        total = len(self.repository.list_obligations())
        assessed = len({a.obligation_id for a in assessments})
        by_status = Counter(a.effective_status for a in assessments)
        return {
            "total": total,
            "assessed": assessed,
            "unassessed": max(total - assessed, 0),
            "by_status": dict(by_status),
            "needs_review": sum(
                1 for a in assessments
                if a.human_status is None and a.effective_status == CoverageStatus.NEEDS_LEGAL_REVIEW.value
            ),
            "human_reviewed": sum(1 for a in assessments if a.human_status is not None),
        }


def build_assessment_service(repository: CoverageRepository | None = None) -> AssessmentService:
    """Wire the service from settings: in-memory stores in mock mode, Pinecone/Mongo otherwise."""
    settings = get_settings()
    repository = repository or build_repository()
    rules = RulesConfigStore()
    scoring = rules.get_scoring_config()

    store: ProvisionVectorStore | None
    if settings.mock_mode:
        memory_store = InMemoryProvisionStore()
        memory_store.embed_provisions([p for p in repository.list_provisions() if p.embedding])
        # No stored vectors: leave the vector signal out.
        store = memory_store if len(memory_store) else None
    else:
        store = ProvisionVectorStore()

    return AssessmentService(
        repository=repository,
        matcher=CandidateMatcher(build_default_signals(scoring, store=store), scoring),
        escalator=RiskEscalator(rules.get_escalation_config()),
    )
