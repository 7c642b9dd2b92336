"""
LLM Service — centralized Groq Cloud LLM client (the generative oracle).

The adjudicator uses this module for its oracle calls:
  - get_llm()         → returns configured Groq ChatModel
  - llm_text_call()   → raw text response
"""

from __future__ import annotations

import logging
import time

from policy_coverage.config import get_settings

logger = logging.getLogger(__name__)

_llm_instance = None


def get_llm():
    """
    Return a configured Groq LLM client (singleton).
    Uses langchain-groq's ChatGroq.
    """
    global _llm_instance
    if _llm_instance is not None:
        return _llm_instance

    settings = get_settings()

    if not settings.groq_api_key:
        raise ValueError("GROQ_API_KEY is not set in environment / .env file")

    from langchain_groq import ChatGroq

    _llm_instance = ChatGroq(
        api_key=settings.groq_api_key,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
    logger.info(f"Initialized Groq LLM: {settings.llm_model}")
    return _llm_instance


def llm_text_call(prompt: str) -> str:
    """
    Call the LLM once and return the raw text response.
    Empty replies are returned as-is; the adjudicator treats them as parse
    failures and retries.
    """
    logger.debug(f"[LLM-TEXT] Prompt length: {len(prompt)} chars")

    llm = get_llm()
    t0 = time.perf_counter()
    response = llm.invoke(prompt)
    elapsed = time.perf_counter() - t0
    content = response.content or ""

    meta = getattr(response, "response_metadata", {}) or {}
    finish_reason = meta.get("finish_reason", "unknown")
    usage = meta.get("token_usage") or meta.get("usage", {})
    logger.info(
        f"[LLM-TEXT] Response received in {elapsed:.2f}s | "
        f"Response length: {len(content)} chars | "
        f"finish_reason={finish_reason} | "
        f"tokens={usage}"
    )
    if not content.strip():
        logger.warning(f"[LLM-TEXT] Empty response (finish_reason={finish_reason})")
    return content
