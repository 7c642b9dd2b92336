"""Retrieval — embedding model and the provision nearest-neighbor index."""

from .embedding_model import EmbeddingModel
from .provision_store import InMemoryProvisionStore, ProvisionVectorStore

__all__ = ["EmbeddingModel", "InMemoryProvisionStore", "ProvisionVectorStore"]
