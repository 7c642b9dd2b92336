"""
Matching — candidate retrieval over the policy corpus.

Callers import the matcher and corpus from here:
    from policy_coverage.matching import CandidateMatcher, PolicyCorpus
"""

from .base_signal import BaseSignal
from .citation_signal import CitationSignal, citation_prefixes
from .corpus import PolicyCorpus
from .keyword_signal import KeywordSignal, TitleSignal, extract_keywords
from .matcher import CandidateMatcher, build_default_signals
from .sub_domain_signal import SubDomainSignal
from .vector_signal import VectorSignal

__all__ = [
    "BaseSignal",
    "CandidateMatcher",
    "CitationSignal",
    "KeywordSignal",
    "PolicyCorpus",
    "SubDomainSignal",
    "TitleSignal",
    "VectorSignal",
    "build_default_signals",
    "citation_prefixes",
    "extract_keywords",
]
