"""Centralized logging configuration.
Call setup_logging() once at application startup.
"""

from __future__ import annotations

import logging
import sys

_NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "urllib3": logging.WARNING,
    "groq": logging.WARNING,
    "langchain": logging.INFO,
    "langchain_core": logging.INFO,
    "langchain_groq": logging.INFO,
    "pinecone": logging.WARNING,
    "pymongo": logging.WARNING,
    "sentence_transformers": logging.WARNING,
    "transformers": logging.WARNING,
    "uvicorn": logging.INFO,
    "fastapi": logging.INFO,
}


def setup_logging(level: str | None = None) -> None:
    """Configure pipeline logging; level defaults to settings.log_level."""
    root = logging.getLogger()
    # Avoid duplicate handlers on repeated calls
    if root.handlers:
        return

    if level is None:
        from policy_coverage.config import get_settings
        level = get_settings().log_level

    numeric = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(funcName)s:%(lineno)d │ %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(handler)

    # Quiet noisy libraries but keep our code at the configured level
    for name, lib_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(lib_level)
