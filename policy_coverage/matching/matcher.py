"""
Candidate Matcher — combines independent signals into a ranked shortlist.

For each policy the composite score is the sum, over signal categories, of
the best score that category produced.  Several provisions matching on
keywords never add up; only the best one counts.  Every contribution is kept
as evidence so the shortlist stays explainable.
"""

from __future__ import annotations

import logging

from policy_coverage.matching.base_signal import BaseSignal
from policy_coverage.matching.citation_signal import CitationSignal
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.matching.keyword_signal import KeywordSignal, TitleSignal
from policy_coverage.matching.sub_domain_signal import SubDomainSignal
from policy_coverage.matching.vector_signal import VectorSignal
from policy_coverage.models.schemas import (
    Candidate,
    MatchEvidence,
    Obligation,
    SignalBreakdown,
    SignalHit,
)
from policy_coverage.retrieval.embedding_model import EmbeddingModel
from policy_coverage.retrieval.provision_store import ProvisionVectorStore
from policy_coverage.rules.rules_config import ScoringConfig

logger = logging.getLogger(__name__)


def build_default_signals(
    config: ScoringConfig,
    embedder: EmbeddingModel | None = None,
    store: ProvisionVectorStore | None = None,
) -> list[BaseSignal]:
    """Vector (when a store is wired), citation, sub-domain, keyword, title."""
    signals: list[BaseSignal] = []
    if store is not None:
        signals.append(VectorSignal(config, embedder or EmbeddingModel(), store))
    signals.extend([
        CitationSignal(config),
        SubDomainSignal(config),
        KeywordSignal(config),
        TitleSignal(config),
    ])
    return signals


class CandidateMatcher:
    """Signal-agnostic aggregation: sum of per-category maxima, filtered and capped."""

    def __init__(self, signals: list[BaseSignal], config: ScoringConfig | None = None):
        self.signals = signals
        self.config = config or ScoringConfig()

    def collect_hits(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        hits: list[SignalHit] = []
        for signal in self.signals:
            signal_hits = signal.score(obligation, corpus)
            logger.debug(f"[Matcher] {signal.method}: {len(signal_hits)} hits")
            hits.extend(signal_hits)
        return hits

    def aggregate(self, hits: list[SignalHit], corpus: PolicyCorpus) -> list[Candidate]:
        """Fold hits into candidates; order follows each policy's first hit."""
        candidates: dict[str, Candidate] = {}
        for hit in hits:
            policy = corpus.get_policy(hit.policy_id)
            if policy is None:
                continue
            cand = candidates.get(hit.policy_id)
            if cand is None:
                cand = Candidate(
                    policy_id=policy.id,
                    policy_number=policy.policy_number,
                    title=policy.title,
                    domain=policy.domain,
                    sub_domain=policy.sub_domain,
                )
                candidates[hit.policy_id] = cand

            bucket = hit.category.value
            current = getattr(cand.signal_breakdown, bucket)
            setattr(cand.signal_breakdown, bucket, max(current, hit.score))
            cand.methods.append(MatchEvidence(method=hit.method, detail=hit.detail, score=hit.score))

        for cand in candidates.values():
            cand.score = cand.signal_breakdown.total()
        return list(candidates.values())

    def rank(self, candidates: list[Candidate]) -> list[Candidate]:
        kept = [c for c in candidates if c.score >= self.config.min_score]
        kept.sort(key=lambda c: c.score, reverse=True)
        return kept[: self.config.max_candidates]

    def find_candidates(self, obligation: Obligation, corpus: PolicyCorpus) -> list[Candidate]:
        hits = self.collect_hits(obligation, corpus)
        ranked = self.rank(self.aggregate(hits, corpus))
        logger.info(
            f"[Matcher] {obligation.citation or obligation.id}: {len(hits)} signal hits → "
            f"{len(ranked)} candidates"
            + (f" (top {ranked[0].policy_number}={ranked[0].score})" if ranked else "")
        )
        return ranked
