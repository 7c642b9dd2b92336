"""Shared fixtures: a small behavioral-health corpus and a scripted oracle."""

import json

import pytest

from policy_coverage.adjudication.orchestrator import AdjudicationOrchestrator
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.matching.matcher import CandidateMatcher, build_default_signals
from policy_coverage.models.schemas import Obligation, Policy, Provision, SubDomainLabel
from policy_coverage.persistence.coverage_repository import InMemoryCoverageRepository
from policy_coverage.rules.rules_config import ScoringConfig
from policy_coverage.services.assessment_service import AssessmentService


def oracle_json(**overrides) -> str:
    payload = {
        "status": "COVERED",
        "confidence": "high",
        "covering_policy_number": "1",
        "obligation_span": "shall receive a biopsychosocial assessment",
        "provision_span": "A biopsychosocial assessment is completed",
        "gap_detail": None,
        "recommended_policy": None,
        "reasoning": "Provision addresses actor, action and timeframe.",
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def obligations():
    return [
        Obligation(
            id="obl-assess",
            citation="65D-30.004(6)(a)",
            requirement="Each client shall receive a biopsychosocial assessment within 24 hours of admission.",
            topics={"assessment"},
            source_id="fac-65d",
        ),
        Obligation(
            id="obl-nothing",
            citation="ZZZ-1",
            requirement="Quarterly xyzzy.",
            source_id="fac-zzz",
        ),
        Obligation(
            id="obl-seclusion",
            citation="394.459(3)",
            requirement="Use of seclusion requires a physician order.",
            source_id="fac-394",
        ),
    ]


@pytest.fixture
def policies():
    return [
        Policy(
            id="pol-clinical",
            policy_number="CL-101",
            title="Biopsychosocial Assessment",
            domain="Clinical",
            sub_domain="clinical",
            citations=["65D-30.004(6)(a)"],
        ),
        Policy(
            id="pol-rights",
            policy_number="RR-201",
            title="Seclusion and Restraint",
            domain="Patient Rights",
            sub_domain="rights",
            citations=["394.459"],
        ),
    ]


@pytest.fixture
def provisions():
    return [
        Provision(
            id="prov-1",
            policy_id="pol-clinical",
            section="Procedure",
            text="A biopsychosocial assessment is completed for every client within 24 hours.",
        ),
        Provision(
            id="prov-2",
            policy_id="pol-rights",
            section="Orders",
            text="Seclusion is initiated only on the written order of a physician.",
        ),
    ]


@pytest.fixture
def labels():
    return [SubDomainLabel(prefix="rights", name="Patient Rights", affinity_keywords=["seclusion"])]


@pytest.fixture
def corpus(policies, provisions, labels):
    return PolicyCorpus(policies, provisions, labels)


@pytest.fixture
def repository(obligations, policies, provisions, labels):
    repo = InMemoryCoverageRepository()
    repo.seed(obligations, policies, provisions, labels)
    return repo


class ScriptedOracle:
    """Returns canned responses per obligation citation and records prompts."""

    def __init__(self, by_citation=None, default=None):
        self.by_citation = by_citation or {}
        self.default = default if default is not None else oracle_json()
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        for citation, response in self.by_citation.items():
            if f"Citation: {citation}" in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        return self.default


@pytest.fixture
def oracle():
    return ScriptedOracle(
        by_citation={
            "394.459(3)": oracle_json(
                status="GAP",
                confidence="low",
                covering_policy_number=None,
                gap_detail="No provision requires a physician order.",
            ),
        }
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def service(repository, oracle, sleeps):
    config = ScoringConfig()
    return AssessmentService(
        repository=repository,
        matcher=CandidateMatcher(build_default_signals(config), config),
        orchestrator=AdjudicationOrchestrator(oracle=oracle, retry_delay=1.0, sleep=sleeps.append),
    )


@pytest.fixture
def make_response():
    return oracle_json
