"""
Vector signal — semantic similarity between the obligation and provisions.

The embedding service and index are external; when either is unavailable
the signal logs a warning and contributes nothing, so scoring continues on
the lexical signals alone.
"""

from __future__ import annotations

import logging

from policy_coverage.matching.base_signal import BaseSignal
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.enums import SignalCategory
from policy_coverage.models.schemas import Obligation, SignalHit
from policy_coverage.retrieval.embedding_model import EmbeddingModel
from policy_coverage.retrieval.provision_store import ProvisionVectorStore
from policy_coverage.rules.rules_config import ScoringConfig

logger = logging.getLogger(__name__)


def obligation_query_text(obligation: Obligation) -> str:
    return f"{obligation.citation}: {obligation.requirement}"


class VectorSignal(BaseSignal):
    category = SignalCategory.VECTOR

    def __init__(
        self,
        config: ScoringConfig,
        embedder: EmbeddingModel,
        store: ProvisionVectorStore,
    ):
        self.config = config
        self.embedder = embedder
        self.store = store

    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        try:
            query_vector = self.embedder.embed_query(obligation_query_text(obligation))
            matches = self.store.query(query_vector, top_k=self.config.vector_top_k)
        except Exception as exc:
            logger.warning(
                f"[Vector] Vector search unavailable for {obligation.citation or obligation.id}: "
                f"{exc} — continuing without vector signal"
            )
            return []

        best: dict[str, float] = {}
        for match in matches:
            sim = float(match.get("similarity", 0.0))
            policy_id = match.get("policy_id", "")
            if sim <= self.config.vector_similarity_floor:
                continue
            if policy_id not in best or sim > best[policy_id]:
                best[policy_id] = sim

        return [
            self.hit(policy_id, sim * self.config.vector_weight, f"similarity: {sim:.3f}")
            for policy_id, sim in best.items()
            if corpus.get_policy(policy_id) is not None
        ]
