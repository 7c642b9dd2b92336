"""
Base signal class that every scoring signal inherits.

Design:
  - `score()` is a pure function of (obligation, corpus).
  - It returns partial per-policy scores with a human-readable detail.
  - The matcher sums category maxima and never looks inside a signal.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.enums import SignalCategory
from policy_coverage.models.schemas import Obligation, SignalHit


def round_score(value: float) -> int:
    """Round half up, so 0.5 boundaries never flip with banker's rounding."""
    return int(math.floor(value + 0.5))


class BaseSignal(ABC):
    """Abstract base for all candidate scoring signals."""

    category: SignalCategory  # set in each subclass

    @property
    def method(self) -> str:
        return self.category.value

    def hit(self, policy_id: str, score: float, detail: str) -> SignalHit:
        return SignalHit(
            policy_id=policy_id,
            category=self.category,
            method=self.method,
            score=round_score(score),
            detail=detail,
        )

    @abstractmethod
    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        """Return zero or more hits for policies in the corpus."""
        ...
