"""Sub-domain signal — label affinity keywords found in the obligation text."""

from __future__ import annotations

from policy_coverage.matching.base_signal import BaseSignal
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.enums import SignalCategory
from policy_coverage.models.schemas import Obligation, SignalHit
from policy_coverage.rules.rules_config import ScoringConfig


class SubDomainSignal(BaseSignal):
    category = SignalCategory.SUB_DOMAIN

    def __init__(self, config: ScoringConfig):
        self.config = config

    def matched_sub_domains(self, obligation: Obligation, corpus: PolicyCorpus) -> set[str]:
        text = (obligation.requirement or "").lower()
        matched: set[str] = set()
        for label in corpus.labels:
            if any(kw.lower() in text for kw in label.affinity_keywords if kw):
                matched.add(label.prefix)
        return matched

    def score(self, obligation: Obligation, corpus: PolicyCorpus) -> list[SignalHit]:
        matched = self.matched_sub_domains(obligation, corpus)
        if not matched:
            return []
        return [
            self.hit(policy.id, self.config.sub_domain_match, f"{policy.sub_domain} affinity")
            for policy in corpus.policies
            if policy.sub_domain and policy.sub_domain in matched
        ]
