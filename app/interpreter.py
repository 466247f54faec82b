"""
Query interpretation for the Loop hospital network assistant

This module handles:
- The QueryParser interface shared by the remote and local strategies
- Rule-based intent classification and slot extraction
- Strategy selection with fallback, and the intent upgrade rule
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from app.config import settings
from app.models import Intent, QueryInfo

# Configure logging
logger = logging.getLogger(__name__)


class QueryParsingError(Exception):
    """Raised when a parser cannot turn an utterance into a QueryInfo."""
    pass


class QueryParser(ABC):
    """A strategy that converts free text into a structured query."""

    name = "parser"

    def is_available(self) -> bool:
        return True

    @abstractmethod
    async def parse(self, text: str) -> QueryInfo:
        """Interpret a single utterance."""


# Off-topic requests the assistant hands over to a human
OUT_OF_SCOPE_KEYWORDS = [
    "appointment", "booking", "book", "reschedule", "weather", "price", "cost",
    "fee", "bill", "refund", "doctor", "insurance claim", "prescription", "medicine",
    "movie", "news", "sports", "cricket", "recipe", "joke", "stock", "restaurant",
    "flight", "hotel",
]

# Presence of any of these keeps an utterance in scope
HOSPITAL_KEYWORDS = [
    "hospital", "clinic", "network", "medical center", "medical centre",
    "nursing home", "healthcare",
]

NEARBY_KEYWORDS = ["around", "near", "nearby"]

# Ordered longest-first so "new delhi" wins over "delhi"
KNOWN_CITIES = [
    ("new delhi", "New Delhi"),
    ("bangalore", "Bangalore"),
    ("bengaluru", "Bangalore"),
    ("mumbai", "Mumbai"),
    ("delhi", "Delhi"),
    ("chennai", "Chennai"),
    ("kolkata", "Kolkata"),
    ("hyderabad", "Hyderabad"),
    ("pune", "Pune"),
    ("ahmedabad", "Ahmedabad"),
    ("jaipur", "Jaipur"),
    ("lucknow", "Lucknow"),
    ("kochi", "Kochi"),
    ("mysore", "Mysore"),
    ("noida", "Noida"),
    ("gurgaon", "Gurgaon"),
]

# Alternate spellings folded onto the directory's spelling
CITY_ALIASES = {"bengaluru": "Bangalore"}

# Words after "in"/"near" that never start a city name
_NOT_A_CITY = r"(?!(?:my|our|your|the|a|an|this|that|me|us|network)\b)"

CITY_PATTERNS = [
    re.compile(r"\bin\s+" + _NOT_A_CITY + r"([a-z][a-z .'-]*?)\s+(?:is|are|in|within)\b", re.IGNORECASE),
    re.compile(
        r"\b(?:in|around|near|nearby)\s+" + _NOT_A_CITY
        + r"([a-z][a-z .'-]*?)(?=\s+(?:in|that|which|with|within)\b|\s*(?:[?.!,]|$))",
        re.IGNORECASE,
    ),
]

HOSPITAL_NAME_PATTERNS = [
    re.compile(r"\bconfirm\s+(?:if|whether)\s+(.+?)\s+in\b", re.IGNORECASE),
    re.compile(r"\bconfirm\s+(?!if\b|whether\b)(.+?)\s+in\b", re.IGNORECASE),
    re.compile(r"\b(?:if|whether)\s+(.+?)\s+in\b", re.IGNORECASE),
    re.compile(r"^\s*(?:can you\s+)?(?:tell me\s+)?is\s+(.+?)\s+in\b", re.IGNORECASE),
]

CITY_TRAILING_WORDS = {"please", "city", "area", "region", "today", "now"}
NAME_TRAILING_WORDS = {"is", "are", "was", "the", "located", "present", "listed", "there", "still"}


def _strip_trailing_words(value: str, stray_words: set) -> str:
    words = value.strip(" ?.!,").split()
    while words and words[-1].lower().strip("?.!,") in stray_words:
        words.pop()
    return " ".join(words).strip(" ?.!,")


def is_out_of_scope(text: str) -> bool:
    """Off-topic keyword present and no hospital-domain keyword."""
    lower = text.lower()
    off_topic = any(re.search(r"\b" + re.escape(keyword) + r"\b", lower) for keyword in OUT_OF_SCOPE_KEYWORDS)
    on_topic = any(keyword in lower for keyword in HOSPITAL_KEYWORDS)
    return off_topic and not on_topic


def classify_intent(text: str) -> Intent:
    lower = text.lower()
    if is_out_of_scope(text):
        return Intent.OUT_OF_SCOPE
    if any(keyword in lower for keyword in NEARBY_KEYWORDS):
        return Intent.FIND_NEARBY
    if "confirm" in lower or "in my network" in lower or (re.search(r"\bis\b", lower) and "network" in lower):
        return Intent.CONFIRM_IN_NETWORK
    return Intent.IN_SCOPE


def extract_city(text: str) -> str:
    """
    Pull a city out of the utterance.

    Regex patterns are tried in order; if none matches, the text is scanned
    for a known city name.
    """
    for pattern in CITY_PATTERNS:
        match = pattern.search(text)
        if match:
            city = _strip_trailing_words(match.group(1), CITY_TRAILING_WORDS)
            if city:
                return CITY_ALIASES.get(city.lower(), city)

    lower = text.lower()
    for needle, canonical in KNOWN_CITIES:
        if re.search(r"\b" + re.escape(needle) + r"\b", lower):
            return canonical
    return ""


def extract_hospital_name(text: str) -> str:
    for pattern in HOSPITAL_NAME_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        name = _strip_trailing_words(match.group(1), NAME_TRAILING_WORDS)
        if len(name) > 2:
            return name
    return ""


class RuleBasedQueryParser(QueryParser):
    """Keyword and regular-expression parser used when the LLM is unavailable."""

    name = "rule-based"

    def __init__(self, max_results: Optional[int] = None):
        self.max_results = max_results or settings.default_max_results

    async def parse(self, text: str) -> QueryInfo:
        return self.parse_text(text)

    def parse_text(self, text: str) -> QueryInfo:
        intent = classify_intent(text)
        if intent == Intent.OUT_OF_SCOPE:
            return QueryInfo(intent=intent, max_results=self.max_results, out_of_scope=True)

        city = extract_city(text)
        hospital_name = extract_hospital_name(text) if intent == Intent.CONFIRM_IN_NETWORK else ""

        return QueryInfo(
            intent=intent,
            city=city,
            hospital_name=hospital_name,
            max_results=self.max_results,
            out_of_scope=False,
        )


def apply_upgrade_rule(info: QueryInfo) -> QueryInfo:
    """Route an unclassified query to a concrete intent when its slots allow it."""
    if info.intent != Intent.IN_SCOPE or not info.city:
        return info
    if info.hospital_name:
        return info.model_copy(update={"intent": Intent.CONFIRM_IN_NETWORK})
    return info.model_copy(update={"intent": Intent.FIND_NEARBY})


class QueryInterpreter:
    """Runs parsing strategies in order until one succeeds."""

    def __init__(self, parsers: Sequence[QueryParser]):
        if not parsers:
            raise ValueError("QueryInterpreter needs at least one parser")
        self.parsers: List[QueryParser] = list(parsers)

    async def extract_query_info(self, text: str) -> QueryInfo:
        """
        Interpret an utterance.

        Args:
            text: Raw user text

        Returns:
            QueryInfo: Intent and slots after the upgrade rule

        Raises:
            QueryParsingError: If every available parser failed
        """
        for parser in self.parsers:
            if not parser.is_available():
                continue
            try:
                info = await parser.parse(text)
            except Exception as e:
                logger.error(f"{parser.name} parsing failed, trying next parser: {e}")
                continue

            logger.info(f"[{parser.name}] '{text}' -> {info.intent.value} city={info.city!r} hospital={info.hospital_name!r}")
            return apply_upgrade_rule(info)

        raise QueryParsingError("No query parser could interpret the input")
