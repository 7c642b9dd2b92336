"""Builds the coverage assessment prompt from an obligation and its candidates."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.schemas import Candidate, Obligation

PROMPT_VERSION = "assess_v1.0"

_PROMPT_PATH = Path(__file__).resolve().parent.parent / "prompts" / "assessment_prompt.txt"


@lru_cache()
def _template() -> str:
    return _PROMPT_PATH.read_text(encoding="utf-8")


def render_candidates(
    candidates: list[Candidate],
    corpus: PolicyCorpus,
    max_provisions: int,
) -> str:
    blocks = []
    for cand in candidates:
        provisions = corpus.provisions_for(cand.policy_id)[:max_provisions]
        lines = [f'--- POLICY "{cand.policy_number}" — {cand.title} ---']
        lines.extend(f"• [{p.section or 'General'}] {p.text}" for p in provisions)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_assessment_prompt(
    obligation: Obligation,
    candidates: list[Candidate],
    corpus: PolicyCorpus,
    max_provisions: int = 15,
) -> str:
    return (
        _template()
        .replace("{citation}", obligation.citation)
        .replace("{requirement}", obligation.requirement)
        .replace("{candidate_policies}", render_candidates(candidates, corpus, max_provisions))
    )
