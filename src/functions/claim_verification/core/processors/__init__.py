"""Processing components for the claim verification module."""

from .text_normalizer import normalize_text
from .entity_extractor import extract_entities
from .claim_extractor import extract_claims, score_factual_claim
from .query_builder import build_queries, merge_queries
from .relevance_matcher import score_relevance, select_relevant_sources
from .consensus_engine import ConsensusEngine
from .page_classifier import classify_page_type

__all__ = [
    "normalize_text",
    "extract_entities",
    "extract_claims",
    "score_factual_claim",
    "build_queries",
    "merge_queries",
    "score_relevance",
    "select_relevant_sources",
    "ConsensusEngine",
    "classify_page_type",
]
