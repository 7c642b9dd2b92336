"""
Policy corpus — the read-only snapshot every signal scores against.

Built once per assessment batch from the repository.  Lookups that every
obligation needs (provisions per policy, citation popularity) are computed
on first use and reused.
"""

from __future__ import annotations

from functools import cached_property

from policy_coverage.models.schemas import Policy, Provision, SubDomainLabel


def normalize_citation(citation: str) -> str:
    return citation.strip().lower()


class PolicyCorpus:
    """Policies, their provisions and the sub-domain affinity labels."""

    def __init__(
        self,
        policies: list[Policy],
        provisions: list[Provision] | None = None,
        labels: list[SubDomainLabel] | None = None,
    ):
        self.policies = list(policies)
        self.provisions = list(provisions or [])
        self.labels = list(labels or [])

    @cached_property
    def policies_by_id(self) -> dict[str, Policy]:
        return {p.id: p for p in self.policies}

    @cached_property
    def provisions_by_policy(self) -> dict[str, list[Provision]]:
        grouped: dict[str, list[Provision]] = {}
        for prov in self.provisions:
            grouped.setdefault(prov.policy_id, []).append(prov)
        return grouped

    @cached_property
    def citation_popularity(self) -> dict[str, int]:
        """Number of policies listing each (normalized) citation string."""
        counts: dict[str, int] = {}
        for policy in self.policies:
            for cit in {normalize_citation(c) for c in policy.citations}:
                if cit:
                    counts[cit] = counts.get(cit, 0) + 1
        return counts

    def get_policy(self, policy_id: str) -> Policy | None:
        return self.policies_by_id.get(policy_id)

    def provisions_for(self, policy_id: str) -> list[Provision]:
        return self.provisions_by_policy.get(policy_id, [])

    def __len__(self) -> int:
        return len(self.policies)
