"""
Keyword signals — domain vocabulary overlap.

Provision keywords: the best single provision of a policy counts, never the
sum across provisions.  Title keywords: a lower-capped score so a policy
whose title names the topic can still surface without a literal provision
match.
"""

from __future__ import annotations

import logging

from policy_coverage.matching.base_signal import BaseSignal
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.enums import SignalCategory
from policy_coverage.models.schemas import Obligation, SignalHit
from policy_coverage.rules.rules_config import ScoringConfig

logger = logging.getLogger(__name__)


def extract_keywords(text: str | None, vocabulary: list[str]) -> list[str]:
    """Vocabulary terms found in the text (case-insensitive, hyphens ignored)."""
    if not text:
        return []
    lower = text.lower().replace("-", "")
    return [term for term in vocabulary if term in lower]


class KeywordSignal(BaseSignal):
    category = SignalCategory.KEYWORD

    def __init__(self, config: ScoringConfig):
        self.config = config
        self._high_value = set(config.high_value_terms)

    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        obl_keywords = extract_keywords(obligation.requirement, self.config.domain_terms)
        if not obl_keywords:
            return []

        hits: list[SignalHit] = []
        for policy_id, provisions in corpus.provisions_by_policy.items():
            if corpus.get_policy(policy_id) is None:
                continue

            best_overlap = 0
            high_value_hits = 0
            for prov in provisions:
                prov_keywords = set(extract_keywords(prov.text, self.config.domain_terms))
                overlap = [kw for kw in obl_keywords if kw in prov_keywords]
                if len(overlap) > best_overlap:
                    best_overlap = len(overlap)
                    high_value_hits = sum(1 for kw in overlap if kw in self._high_value)

            if best_overlap < 1:
                continue
            raw = (
                self.config.keyword_base
                + best_overlap * self.config.keyword_bonus
                + high_value_hits * self.config.high_value_bonus
            )
            hits.append(self.hit(
                policy_id,
                min(raw, self.config.keyword_cap),
                f"{best_overlap} keywords ({high_value_hits} high-value)",
            ))
        return hits


class TitleSignal(BaseSignal):
    category = SignalCategory.TITLE

    def __init__(self, config: ScoringConfig):
        self.config = config
        self._high_value = set(config.high_value_terms)

    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        obl_keywords = extract_keywords(obligation.requirement, self.config.domain_terms)
        if not obl_keywords:
            return []

        hits: list[SignalHit] = []
        for policy in corpus.policies:
            title_keywords = set(extract_keywords(policy.title, self.config.domain_terms))
            overlap = [kw for kw in obl_keywords if kw in title_keywords]
            if not overlap:
                continue
            high_value_hits = sum(1 for kw in overlap if kw in self._high_value)
            raw = (
                self.config.title_base
                + len(overlap) * self.config.title_bonus
                + high_value_hits * self.config.high_value_bonus
            )
            hits.append(self.hit(
                policy.id,
                min(raw, self.config.title_cap),
                f"{len(overlap)} title keywords",
            ))
        return hits
