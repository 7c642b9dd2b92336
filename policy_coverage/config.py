"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Policy Coverage Engine"
    debug: bool = True
    mock_mode: bool = True  # When True, stores run in memory (no Mongo / Pinecone)
    org_id: str = "default"
    corpus_path: str = ""  # JSON corpus seeded into the in-memory store at API startup

    # ── LLM (Groq) ───────────────────────────────────────
    groq_api_key: str = ""
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 1024

    # ── Embeddings ───────────────────────────────────────
    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_query_prompt: str = ""     # e.g. "query: " for e5-style models
    embedding_document_prompt: str = ""  # e.g. "passage: "
    embedding_batch_size: int = 32

    # ── Pinecone ─────────────────────────────────────────
    pinecone_api_key: str = ""
    pinecone_index_name: str = "policy-provisions"
    pinecone_namespace: str = "provisions"
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-east-1"

    # ── MongoDB ──────────────────────────────────────────
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "policy_coverage"

    # ── Adjudication ─────────────────────────────────────
    max_retries: int = 2  # total oracle attempts = max_retries + 1
    retry_delay_seconds: float = 1.0
    max_provisions_per_candidate: int = 15
    assessment_workers: int = 1

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
