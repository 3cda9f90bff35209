import pytest

from src.functions.claim_verification.core.retrieval.cache_store import CacheStore
from src.functions.claim_verification.core.retrieval.credential_pool import CredentialPool
from src.functions.claim_verification.core.retrieval.source_reputation import get_source_score, is_reputable


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_cache_entries_expire_after_ttl():
    clock = FakeClock()
    cache = CacheStore(ttl_seconds=10, max_entries=5, clock=clock)
    cache.put("a", 1)

    clock.now = 5
    assert cache.get("a") == 1

    clock.now = 10
    assert cache.get("a") is None
    assert len(cache) == 0


def test_cache_evicts_oldest_entry_when_full():
    cache = CacheStore(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_cache_last_writer_wins():
    cache = CacheStore(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("a", 2)

    assert cache.get("a") == 2
    assert len(cache) == 1


def test_cache_rejects_invalid_bounds():
    with pytest.raises(ValueError):
        CacheStore(ttl_seconds=0)
    with pytest.raises(ValueError):
        CacheStore(max_entries=0)


def test_credential_pool_rotates_and_skips_limited_keys():
    pool = CredentialPool(["k1", "k2", "k1", " "])

    assert len(pool) == 2
    assert [pool.next_available() for _ in range(3)] == ["k1", "k2", "k1"]

    pool.mark_rate_limited("k1")
    assert pool.next_available() == "k2"
    assert pool.next_available() == "k2"


def test_credential_pool_resets_once_every_key_is_limited():
    pool = CredentialPool(["k1", "k2"])
    pool.mark_rate_limited("k1")
    pool.mark_rate_limited("k2")

    assert pool.all_limited()
    assert pool.next_available() in {"k1", "k2"}
    assert not pool.all_limited()


def test_empty_credential_pool():
    pool = CredentialPool()

    assert pool.next_available() is None
    assert not pool.all_limited()


def test_source_reputation_by_domain_and_publisher():
    assert is_reputable("https://www.reuters.com/world/story")
    assert is_reputable("https://edition.cnn.com/2024/01/01/story")
    assert is_reputable("https://news.aggregator.net/item", publisher="Associated Press")
    assert not is_reputable("https://someblog.blogspot.com/post")
    assert get_source_score("https://unknown-site.org/a") == pytest.approx(0.5)
    assert get_source_score("https://example.com/article1") == 0.0
