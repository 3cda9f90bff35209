from src.functions.claim_verification.core.contracts import Claim
from src.functions.claim_verification.core.processors.entity_extractor import extract_entities
from src.functions.claim_verification.core.processors.query_builder import (
    GENERIC_QUERY,
    MAX_QUERIES_PER_CLAIM,
    build_queries,
    merge_queries,
)


def _claim(text: str) -> Claim:
    return Claim(text=text, factual_score=1.0, entities=extract_entities(text))


def test_entity_query_leads_with_named_entities_and_first_number():
    claim = _claim(
        "The unemployment rate fell to 3.5% in March 2023, according to the Labor Department."
    )

    queries = build_queries(claim)

    assert 1 <= len(queries) <= MAX_QUERIES_PER_CLAIM
    assert queries[0] == "Labor Department 3.5%"


def test_queries_are_unique_and_free_of_page_chrome():
    claim = _claim("Share this story: the Senate passed the infrastructure bill with 69 votes in August.")

    queries = build_queries(claim)

    assert len({query.lower() for query in queries}) == len(queries)
    assert all("share" not in query.lower().split() for query in queries)


def test_generic_fallback_when_nothing_usable():
    assert build_queries(_claim("12 34 56")) == [GENERIC_QUERY]


def test_merge_queries_dedupes_case_insensitively_and_caps():
    merged = merge_queries([["A b", "c"], ["a B", "d"], ["e", "f", "g"]], limit=5)

    assert merged == ["A b", "c", "d", "e", "f"]
