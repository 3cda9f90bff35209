"""Lightweight, dependency-free named entity extraction for claims.

The extractor is deliberately shallow: capitalised phrase runs are
classified with keyword cues and a small gazetteer. It only feeds query
building and relevance matching, so recall matters more than precision.
"""

from __future__ import annotations

import re
from typing import List, Set

from ..contracts import EntityBundle

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_MONTH_ALT = "|".join(MONTHS) + r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_CAPITALISED_PHRASE = re.compile(
    r"\b[A-Z][a-zA-Z'’\-]+(?:\s+(?:of|for|and|the|de|von|van|al)?\s*[A-Z][a-zA-Z'’\-]+)*"
)
_ACRONYM = re.compile(r"\b[A-Z]{2,6}\b")
_FULL_DATE = re.compile(
    rf"\b(?:(?:{_MONTH_ALT})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?\s+(?:{_MONTH_ALT})\.?(?:,?\s+\d{{4}})?"
    rf"|(?:{_MONTH_ALT})\.?\s+\d{{4}}"
    r"|\d{4}-\d{2}-\d{2})\b"
)
_YEAR = re.compile(r"\b(?:1[89]\d{2}|20\d{2})\b")
_NUMERIC = re.compile(
    r"(?:[$€£]\s?\d[\d,]*(?:\.\d+)?(?:\s?(?:million|billion|trillion|thousand))?"
    r"|\b\d[\d,]*(?:\.\d+)?\s?(?:%|percent\b|per cent\b)"
    r"|\b\d[\d,]*(?:\.\d+)?\s?(?:million|billion|trillion|thousand|km|miles|kg|tons|tonnes|people|deaths|cases)\b"
    r"|\b\d[\d,]*(?:\.\d+)?\b)"
)

# Words that are capitalised only because they open a sentence or clause.
_LEADING_STOPWORDS = {
    "A", "An", "The", "This", "That", "These", "Those", "In", "On", "At", "By", "For",
    "From", "With", "But", "And", "Or", "If", "As", "After", "Before", "During", "While",
    "According", "However", "Meanwhile", "Also", "It", "Its", "He", "She", "They", "We",
    "Our", "Their", "His", "Her", "There", "Here", "When", "Where", "Why", "How", "What",
    "Last", "Next", "Since", "Despite", "Under", "Over", "Officials", "Researchers",
}

_ORGANIZATION_CUES = {
    "Inc", "Inc.", "Corp", "Corp.", "Corporation", "Company", "Co.", "Ltd", "LLC", "Group",
    "University", "Institute", "College", "School", "Ministry", "Department", "Agency",
    "Council", "Bank", "Association", "Commission", "Committee", "Organization",
    "Organisation", "Foundation", "Party", "Court", "Senate", "Congress", "Parliament",
    "Police", "Administration", "Authority", "Bureau", "Office", "Service", "Board",
    "Fund", "Union", "Times", "Post", "News", "Press", "Network", "Center", "Centre",
}

_KNOWN_ORGANIZATIONS = {
    "Google", "Apple", "Microsoft", "Amazon", "Meta", "Facebook", "Tesla", "Twitter",
    "Reuters", "Pfizer", "Moderna", "Boeing", "Netflix", "Nvidia", "OpenAI", "Samsung",
}

_PLACES = {
    "Afghanistan", "Africa", "America", "Argentina", "Asia", "Australia", "Austria",
    "Bangladesh", "Beijing", "Belgium", "Berlin", "Brazil", "Britain", "California",
    "Canada", "Chicago", "Chile", "China", "Colombia", "Egypt", "England", "Europe",
    "Florida", "France", "Gaza", "Germany", "Greece", "India", "Indonesia", "Iran", "Iraq",
    "Ireland", "Israel", "Italy", "Japan", "Kenya", "Kyiv", "London", "Los Angeles",
    "Madrid", "Mexico", "Moscow", "Mumbai", "Netherlands", "New Delhi", "New York",
    "Nigeria", "North Korea", "Norway", "Ohio", "Pakistan", "Paris", "Poland", "Portugal",
    "Rome", "Russia", "Saudi Arabia", "Scotland", "Seoul", "South Africa", "South Korea",
    "Spain", "Sweden", "Switzerland", "Sydney", "Syria", "Taiwan", "Texas", "Tokyo",
    "Turkey", "Ukraine", "United Kingdom", "United States", "Venezuela", "Vietnam",
    "Washington", "Wales", "Yemen",
}

_PERSON_TITLES = {
    "President", "Prime Minister", "Minister", "Senator", "Sen.", "Governor", "Gov.",
    "Mayor", "Dr.", "Dr", "Mr.", "Mrs.", "Ms.", "Prof.", "Professor", "Judge", "CEO",
    "Chancellor", "Secretary", "Representative", "Rep.", "King", "Queen", "Pope",
    "General", "Gen.", "Chairman", "Chair", "Director", "Spokesperson", "Spokesman",
}
_TITLE_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(title) for title in sorted(_PERSON_TITLES, key=len, reverse=True))
    + r")\s+((?:[A-Z][a-zA-Z'’\-]+)(?:\s+[A-Z][a-zA-Z'’\-]+){0,2})"
)
_PLACE_CUE = re.compile(r"\b(?:in|from|across|near|throughout)\s+((?:[A-Z][a-z]+)(?:\s+[A-Z][a-z]+)?)")

_ACRONYM_STOPLIST = {"I", "II", "III", "IV", "AM", "PM", "OK", "TV"}


def extract_entities(text: str) -> EntityBundle:
    """Extract people, places, organisations, dates, numbers and acronyms."""

    if not text:
        return EntityBundle()

    dates = _extract_dates(text)
    numeric_values = _extract_numbers(text, dates)
    acronyms = [match for match in _ACRONYM.findall(text) if match not in _ACRONYM_STOPLIST]

    people: List[str] = []
    places: List[str] = []
    organizations: List[str] = []
    claimed: Set[str] = set()

    for match in _TITLE_PATTERN.finditer(text):
        name = match.group(1).strip()
        if name and not _is_calendar_word(name):
            people.append(name)
            claimed.add(name)

    for match in _PLACE_CUE.finditer(text):
        candidate = match.group(1).strip()
        if candidate in _PLACES:
            places.append(candidate)
            claimed.add(candidate)

    for phrase in _capitalised_phrases(text):
        if phrase in claimed or phrase in acronyms:
            continue
        tokens = phrase.split()
        if phrase in _PLACES:
            places.append(phrase)
        elif phrase in _KNOWN_ORGANIZATIONS or any(token in _ORGANIZATION_CUES for token in tokens):
            organizations.append(phrase)
        elif 2 <= len(tokens) <= 3:
            people.append(phrase)
        claimed.add(phrase)

    return EntityBundle(
        people=tuple(people),
        places=tuple(places),
        organizations=tuple(organizations),
        dates=tuple(dates),
        numeric_values=tuple(numeric_values),
        acronyms=tuple(acronyms),
    )


def _capitalised_phrases(text: str) -> List[str]:
    phrases: List[str] = []
    for match in _CAPITALISED_PHRASE.finditer(text):
        tokens = match.group(0).split()
        while tokens and (
            tokens[0] in _LEADING_STOPWORDS or tokens[0] in _PERSON_TITLES or _is_calendar_word(tokens[0])
        ):
            tokens = tokens[1:]
        while tokens and (tokens[-1].lower() in {"of", "for", "and", "the"} or _is_calendar_word(tokens[-1])):
            tokens = tokens[:-1]
        if not tokens:
            continue
        phrase = " ".join(tokens).strip("'’-")
        if len(phrase) > 1 and not phrase.isupper():
            phrases.append(phrase)
    return phrases


def _extract_dates(text: str) -> List[str]:
    dates = [match.group(0).strip() for match in _FULL_DATE.finditer(text)]
    for match in _YEAR.finditer(text):
        year = match.group(0)
        if not any(year in date for date in dates):
            dates.append(year)
    return dates


def _extract_numbers(text: str, dates: List[str]) -> List[str]:
    values: List[str] = []
    date_spans = [match.span() for match in _FULL_DATE.finditer(text)]
    for match in _NUMERIC.finditer(text):
        start, end = match.span()
        if any(start >= low and end <= high for low, high in date_spans):
            continue
        value = match.group(0).strip()
        if value in dates and _YEAR.fullmatch(value):
            continue
        values.append(value)
    return values


def _is_calendar_word(token: str) -> bool:
    cleaned = token.rstrip(".,")
    return cleaned in MONTHS or cleaned in WEEKDAYS
