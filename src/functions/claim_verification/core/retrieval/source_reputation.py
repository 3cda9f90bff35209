"""Publisher reputation used to upweight evidence from established outlets.

Sources are matched by URL domain first and publisher name second, since
search APIs report publishers inconsistently.
"""

from __future__ import annotations

from urllib.parse import urlparse

REPUTABLE_DOMAINS = {
    # Wire services
    "apnews.com": 1.0,
    "reuters.com": 1.0,
    "afp.com": 0.95,
    # Public broadcasters
    "bbc.com": 0.95,
    "bbc.co.uk": 0.95,
    "npr.org": 0.9,
    "pbs.org": 0.9,
    "cbc.ca": 0.85,
    "abc.net.au": 0.85,
    "dw.com": 0.85,
    # Newspapers of record
    "nytimes.com": 0.9,
    "washingtonpost.com": 0.9,
    "wsj.com": 0.9,
    "theguardian.com": 0.9,
    "ft.com": 0.9,
    "economist.com": 0.9,
    "latimes.com": 0.85,
    "usatoday.com": 0.8,
    # Networks
    "cnn.com": 0.8,
    "nbcnews.com": 0.8,
    "cbsnews.com": 0.8,
    "abcnews.go.com": 0.8,
    "bloomberg.com": 0.9,
    "politico.com": 0.8,
    "axios.com": 0.8,
    # Science
    "nature.com": 0.95,
    "science.org": 0.95,
}

LOW_QUALITY_DOMAINS = {
    "blogspot.com": 0.2,
    "wordpress.com": 0.3,
    "medium.com": 0.3,
    "substack.com": 0.3,
    "reddit.com": 0.2,
    "example.com": 0.0,
}

REPUTABLE_PUBLISHERS = {
    "associated press": 1.0,
    "ap news": 1.0,
    "reuters": 1.0,
    "afp": 0.95,
    "bbc news": 0.95,
    "bbc": 0.95,
    "npr": 0.9,
    "the new york times": 0.9,
    "the washington post": 0.9,
    "the wall street journal": 0.9,
    "the guardian": 0.9,
    "financial times": 0.9,
    "the economist": 0.9,
    "bloomberg": 0.9,
    "los angeles times": 0.85,
    "cnn": 0.8,
    "nbc news": 0.8,
    "cbs news": 0.8,
    "abc news": 0.8,
    "politico": 0.8,
    "axios": 0.8,
    "usa today": 0.8,
}

REPUTABLE_THRESHOLD = 0.8
NEUTRAL_SCORE = 0.5


def _normalise_domain(domain: str) -> str:
    domain = domain.lower().split(":", 1)[0]
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def get_domain_score(domain: str) -> float:
    """Return a reputation score for a domain (0.0-1.0, 0.5 when unknown)."""

    domain = _normalise_domain(domain)
    if domain in REPUTABLE_DOMAINS:
        return REPUTABLE_DOMAINS[domain]
    if domain in LOW_QUALITY_DOMAINS:
        return LOW_QUALITY_DOMAINS[domain]

    # Subdomains (e.g. edition.cnn.com -> cnn.com)
    for known, score in REPUTABLE_DOMAINS.items():
        if domain.endswith("." + known):
            return score
    for known, score in LOW_QUALITY_DOMAINS.items():
        if domain.endswith("." + known):
            return score
    return NEUTRAL_SCORE


def get_source_score(url: str, publisher: str = "") -> float:
    domain_score = get_domain_score(urlparse(url).netloc) if url else NEUTRAL_SCORE
    publisher_score = REPUTABLE_PUBLISHERS.get((publisher or "").strip().lower(), NEUTRAL_SCORE)
    if domain_score == NEUTRAL_SCORE:
        return publisher_score
    return domain_score


def is_reputable(url: str, publisher: str = "", threshold: float = REPUTABLE_THRESHOLD) -> bool:
    """True when the URL's domain or the publisher name is on the allow-list."""

    return get_source_score(url, publisher) >= threshold
