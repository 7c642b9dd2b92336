"""
Mongo Client — lazily opened pymongo connection for the coverage
repository.  Mock mode never connects.
"""

from __future__ import annotations

import logging
from typing import Any

from policy_coverage.config import get_settings

logger = logging.getLogger(__name__)


class MongoClient:
    """Opens on first use; close() releases the pool and allows reopening."""

    def __init__(self, uri: str | None = None, database: str | None = None):
        settings = get_settings()
        self.mock_mode = settings.mock_mode
        self.uri = uri or settings.mongodb_uri
        self.database = database or settings.mongodb_database
        self._client: Any = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def get_database(self) -> Any:
        """Database handle, or None in mock mode."""
        if self.mock_mode:
            return None
        if self._client is None:
            from pymongo import MongoClient as PyMongoClient

            self._client = PyMongoClient(self.uri)
            logger.info(f"[Mongo] Connected to {self.database}")
        return self._client[self.database]

    def close(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        logger.info(f"[Mongo] Closed connection to {self.database}")
