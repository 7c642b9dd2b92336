"""Persistence — MongoClient and the coverage repositories."""

from policy_coverage.persistence.mongo_client import MongoClient
from policy_coverage.persistence.coverage_repository import (
    CoverageRepository,
    InMemoryCoverageRepository,
    MongoCoverageRepository,
    build_repository,
)

__all__ = [
    "MongoClient",
    "CoverageRepository",
    "InMemoryCoverageRepository",
    "MongoCoverageRepository",
    "build_repository",
]
