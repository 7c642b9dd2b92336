"""
Citation signal — regulatory citation matching with a popularity penalty.

An obligation citation such as "65D-30.004(6)(a)" is widened into nested
prefixes ("65D-30.004(6)", "65D-30.004").  Accreditation citations ending in
an Element of Performance ("CTS.06.02.03 EP 3") also yield the standard
("CTS.06.02.03").  Citations listed by many policies are boilerplate, so
their score shrinks with popularity.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

from policy_coverage.matching.base_signal import BaseSignal
from policy_coverage.matching.corpus import PolicyCorpus, normalize_citation
from policy_coverage.models.enums import SignalCategory
from policy_coverage.models.schemas import Obligation, SignalHit
from policy_coverage.rules.rules_config import PopularityPenaltyConfig, ScoringConfig

logger = logging.getLogger(__name__)

_TRAILING_SUBSECTION = re.compile(r"^(.+?)\([^)]*\)\s*$")
_ELEMENT_OF_PERFORMANCE = re.compile(r"^(.+?)\s+EP\s+\d+", re.IGNORECASE)


def citation_prefixes(citation: str | None) -> list[str]:
    """Most specific first, de-duplicated."""
    if not citation or not citation.strip():
        return []
    current = citation.strip()
    prefixes = [current]
    while True:
        match = _TRAILING_SUBSECTION.match(current)
        if not match:
            break
        current = match.group(1).strip()
        prefixes.append(current)

    ep_match = _ELEMENT_OF_PERFORMANCE.match(current)
    if ep_match:
        prefixes.append(ep_match.group(1).strip())

    return list(dict.fromkeys(prefixes))


# ── Popularity penalty strategies ────────────────────────

class PopularityPenalty(ABC):
    @abstractmethod
    def factor(self, uses: int) -> float:
        """Multiplier in (0, 1] for a citation listed by `uses` policies."""
        ...


class TieredPopularityPenalty(PopularityPenalty):
    """Discrete tiers: the first tier whose threshold is exceeded applies."""

    def __init__(self, config: PopularityPenaltyConfig):
        self.tiers = sorted(config.tiers, key=lambda t: t.above, reverse=True)

    def factor(self, uses: int) -> float:
        for tier in self.tiers:
            if uses > tier.above:
                return tier.factor
        return 1.0


class DecayPopularityPenalty(PopularityPenalty):
    """Continuous hyperbolic decay after `free_uses`, bounded below by `floor`."""

    def __init__(self, config: PopularityPenaltyConfig):
        self.free_uses = config.free_uses
        self.rate = config.decay_rate
        self.floor = config.floor

    def factor(self, uses: int) -> float:
        excess = uses - self.free_uses
        if excess <= 0:
            return 1.0
        return max(self.floor, 1.0 / (1.0 + self.rate * excess))


def build_popularity_penalty(config: PopularityPenaltyConfig) -> PopularityPenalty:
    if config.strategy == "decay":
        return DecayPopularityPenalty(config)
    return TieredPopularityPenalty(config)


# ── Signal ───────────────────────────────────────────────

class CitationSignal(BaseSignal):
    category = SignalCategory.CITATION

    def __init__(self, config: ScoringConfig, penalty: PopularityPenalty | None = None):
        self.config = config
        self.penalty = penalty or build_popularity_penalty(config.popularity_penalty)

    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        prefixes = [normalize_citation(p) for p in citation_prefixes(obligation.citation)]
        if not prefixes:
            return []

        popularity = corpus.citation_popularity
        hits: list[SignalHit] = []

        for policy in corpus.policies:
            for policy_cit in policy.citations:
                p_norm = normalize_citation(policy_cit)
                if not p_norm:
                    continue
                for o_norm in prefixes:
                    is_exact = p_norm == o_norm
                    is_section = not is_exact and (
                        p_norm.startswith(o_norm) or o_norm.startswith(p_norm)
                    )
                    if not (is_exact or is_section):
                        continue

                    uses = popularity.get(p_norm, 1)
                    base = self.config.citation_exact if is_exact else self.config.citation_section
                    kind = "exact" if is_exact else "section"
                    hits.append(self.hit(
                        policy.id,
                        base * self.penalty.factor(uses),
                        f"{kind}: {policy_cit} ({uses} cite)",
                    ))
                    break

        logger.debug(f"[Citation] {obligation.citation}: {len(hits)} hits over prefixes {prefixes}")
        return hits
