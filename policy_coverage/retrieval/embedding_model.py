"""
Embedding Model — generates vector embeddings for obligations and provisions.
Uses Sentence Transformers (all-MiniLM-L6-v2 by default, 384 dimensions).

Provisions are embedded in document mode, obligations in query mode.  For
asymmetric models the two modes take different prompts (see settings).
"""

from __future__ import annotations

import logging

from policy_coverage.config import get_settings

logger = logging.getLogger(__name__)


class EmbeddingModel:
    """Generate embeddings for text. Singleton-friendly."""

    def __init__(self):
        self.settings = get_settings()
        self._model = None
        self._dimension: int | None = None

    def _load_model(self):
        """Lazy-load the embedding model on first use."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(self.settings.embedding_model)
            self._dimension = self._model.get_sentence_embedding_dimension()
            logger.info(
                f"Loaded embedding model: {self.settings.embedding_model} "
                f"(dim={self._dimension})"
            )

    @property
    def dimension(self) -> int:
        """Return the embedding vector dimension (e.g. 384 for all-MiniLM-L6-v2)."""
        self._load_model()
        return self._dimension  # type: ignore[return-value]

    def _encode(self, texts: list[str], prompt: str) -> list[list[float]]:
        self._load_model()
        kwargs = {"prompt": prompt} if prompt else {}
        embeddings = self._model.encode(
            texts,
            batch_size=self.settings.embedding_batch_size,
            show_progress_bar=False,
            **kwargs,
        )
        return embeddings.tolist()

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed provision texts (document mode)."""
        if not texts:
            return []
        return self._encode(texts, self.settings.embedding_document_prompt)

    def embed_query(self, text: str) -> list[float]:
        """Embed a single obligation text (query mode)."""
        return self._encode([text], self.settings.embedding_query_prompt)[0]
