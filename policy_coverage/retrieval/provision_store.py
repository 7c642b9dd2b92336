"""
Provision Vector Store — nearest-neighbor index over provision embeddings.

Real mode keeps vectors in a Pinecone index (cosine) under one namespace.
Mock mode keeps them in memory and ranks by cosine similarity.  Both return
matches as {provision_id, policy_id, similarity, section}.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from policy_coverage.config import get_settings
from policy_coverage.models.schemas import Provision
from policy_coverage.retrieval.embedding_model import EmbeddingModel

logger = logging.getLogger(__name__)


def provision_embedding_text(provision: Provision) -> str:
    return f"{provision.section or ''}: {provision.text}"


class ProvisionVectorStore:
    """Pinecone-backed vector store for policy provisions."""

    def __init__(self, embedder: EmbeddingModel | None = None):
        self.settings = get_settings()
        self._embedder = embedder or EmbeddingModel()
        self._index = None

    def _get_index(self):
        """Lazy-init: connect to (or create) the Pinecone index."""
        if self._index is not None:
            return self._index

        from pinecone import Pinecone, ServerlessSpec

        pc = Pinecone(api_key=self.settings.pinecone_api_key)
        index_name = self.settings.pinecone_index_name

        existing = [idx.name for idx in pc.list_indexes()]
        if index_name not in existing:
            logger.info(f"Creating Pinecone index: {index_name}")
            pc.create_index(
                name=index_name,
                dimension=self._embedder.dimension,
                metric="cosine",
                spec=ServerlessSpec(
                    cloud=self.settings.pinecone_cloud,
                    region=self.settings.pinecone_region,
                ),
            )

        self._index = pc.Index(index_name)
        logger.info(f"Connected to Pinecone index: {index_name}")
        return self._index

    def _vectors_for(self, provisions: list[Provision]) -> list[tuple[str, list[float], dict[str, Any]]]:
        missing = [p for p in provisions if p.embedding is None]
        fresh = iter(self._embedder.embed_documents([provision_embedding_text(p) for p in missing]))

        vectors = []
        for prov in provisions:
            emb = prov.embedding if prov.embedding is not None else next(fresh)
            vectors.append((
                prov.id,
                emb,
                {
                    "policy_id": prov.policy_id,
                    "section": prov.section,
                    "text": prov.text[:1000],  # Pinecone metadata limit
                },
            ))
        return vectors

    def embed_provisions(self, provisions: list[Provision]) -> int:
        """
        Embed provisions that lack a vector and upsert all of them.
        Returns the number of vectors stored.
        """
        if not provisions:
            return 0
        index = self._get_index()
        vectors = self._vectors_for(provisions)

        # Upsert in batches (Pinecone limit is 100 per request)
        batch_size = 100
        for batch_start in range(0, len(vectors), batch_size):
            batch = vectors[batch_start : batch_start + batch_size]
            index.upsert(vectors=batch, namespace=self.settings.pinecone_namespace)

        logger.info(f"[Index] Embedded {len(vectors)} provisions into Pinecone")
        return len(vectors)

    def query(self, vector: list[float], top_k: int = 20) -> list[dict[str, Any]]:
        index = self._get_index()
        results = index.query(
            vector=vector,
            top_k=top_k,
            namespace=self.settings.pinecone_namespace,
            include_metadata=True,
        )
        return [
            {
                "provision_id": m["id"],
                "policy_id": m.get("metadata", {}).get("policy_id", ""),
                "similarity": float(m["score"]),
                "section": m.get("metadata", {}).get("section", ""),
            }
            for m in results.get("matches", [])
        ]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryProvisionStore(ProvisionVectorStore):
    """
    Mock-mode store: vectors live in a dict, queries rank by cosine.
    Provisions that already carry embeddings need no embedder at all.
    """

    def __init__(self, embedder: EmbeddingModel | None = None):
        super().__init__(embedder)
        self._vectors: dict[str, tuple[list[float], dict[str, Any]]] = {}

    def _get_index(self):
        return self._vectors

    def embed_provisions(self, provisions: list[Provision]) -> int:
        for vec_id, emb, meta in self._vectors_for(provisions):
            self._vectors[vec_id] = (emb, meta)
        logger.info(f"[Index] Stored {len(provisions)} provisions in memory")
        return len(provisions)

    def query(self, vector: list[float], top_k: int = 20) -> list[dict[str, Any]]:
        ranked = sorted(
            (
                {
                    "provision_id": vec_id,
                    "policy_id": meta.get("policy_id", ""),
                    "similarity": _cosine(vector, emb),
                    "section": meta.get("section", ""),
                }
                for vec_id, (emb, meta) in self._vectors.items()
            ),
            key=lambda m: m["similarity"],
            reverse=True,
        )
        return ranked[:top_k]

    def __len__(self) -> int:
        return len(self._vectors)
