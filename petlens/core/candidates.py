"""
Candidate discovery - find URL-like substrings in pasted text and unpack
percent-encoded parameter values
"""
from __future__ import annotations

import re
from collections import deque
from typing import Dict, Iterable, Iterator, List, Pattern
from urllib.parse import unquote

from .sanitizer import normalize_token, sanitize

MAX_CANDIDATE_COUNT = 48

HTML_ATTR_URL_PATTERN = re.compile(
    r"\b(?:src|href|content|data-src|data-original|data-image)\s*=\s*[\"']([^\"']+)[\"']",
    re.IGNORECASE,
)
CSS_URL_PATTERN = re.compile(r"url\(([^)]+)\)", re.IGNORECASE)
JSON_URL_FIELD_PATTERN = re.compile(
    r"\"(?:url|src|image|image_url|imageUrl|thumbnail|thumbnailUrl)\"\s*:\s*\"([^\"]+)\"",
    re.IGNORECASE,
)
MARKDOWN_LINK_PATTERN = re.compile(r"\[[^\[\]]*\]\(([^)]+)\)")
SRCSET_VALUE_PATTERN = re.compile(r"\bsrcset\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
HTTP_URL_IN_TEXT_PATTERN = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)
WWW_URL_IN_TEXT_PATTERN = re.compile(r"\bwww\.[^\s\"'<>]+", re.IGNORECASE)
MALFORMED_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")


class CandidateSet:
    """Insertion-ordered set of strings that stops growing at a fixed size"""

    def __init__(self, limit: int = MAX_CANDIDATE_COUNT):
        self.limit = limit
        self._items: Dict[str, None] = {}

    @property
    def full(self) -> bool:
        return len(self._items) >= self.limit

    def add(self, value: str) -> bool:
        """Add a value; returns False when it was empty, known, or the set is full"""
        if not value or self.full or value in self._items:
            return False
        self._items[value] = None
        return True

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> List[str]:
        return list(self._items)


def collect_pattern_matches(source: str, pattern: Pattern[str], group: int = 0) -> List[str]:
    matches: List[str] = []
    for match in pattern.finditer(source):
        value = match.group(group) if group else match.group(0)
        if value is None:
            value = match.group(0)
        if value:
            matches.append(value)
    return matches


def split_srcset_urls(srcset: str) -> List[str]:
    """Take the URL token of each `srcset` entry, dropping width/density descriptors"""
    urls: List[str] = []
    for entry in srcset.split(","):
        parts = entry.strip().split()
        token = normalize_token(parts[0] if parts else "")
        if token:
            urls.append(token)
    return urls


def extract_inline_candidates(text: str) -> List[str]:
    """
    Scan text for embedded URL-like substrings

    The sanitized input always comes first; matches of the HTML attribute,
    CSS url(), JSON field, Markdown link, srcset, bare http(s) and bare www.
    rules follow in that order.

    Args:
        text: Raw text, URL or markup snippet

    Returns:
        Ordered, de-duplicated candidates (at most MAX_CANDIDATE_COUNT)
    """
    source = sanitize(text)
    if not source:
        return []

    candidates = CandidateSet()

    def push_all(values: Iterable[str]) -> None:
        for value in values:
            candidates.add(normalize_token(value))

    push_all([source])
    push_all(collect_pattern_matches(source, HTML_ATTR_URL_PATTERN, 1))
    push_all(collect_pattern_matches(source, CSS_URL_PATTERN, 1))
    push_all(collect_pattern_matches(source, JSON_URL_FIELD_PATTERN, 1))
    for target in collect_pattern_matches(source, MARKDOWN_LINK_PATTERN, 1):
        parts = target.strip().split()
        push_all([parts[0] if parts else target])
    for srcset in collect_pattern_matches(source, SRCSET_VALUE_PATTERN, 1):
        push_all(split_srcset_urls(srcset))
    push_all(collect_pattern_matches(source, HTTP_URL_IN_TEXT_PATTERN))
    push_all(collect_pattern_matches(source, WWW_URL_IN_TEXT_PATTERN))

    return candidates.to_list()


def decode_component(value: str) -> str:
    """
    Strictly percent-decode a string

    Raises:
        ValueError: On a malformed escape or bytes that are not UTF-8
    """
    if MALFORMED_ESCAPE_PATTERN.search(value):
        raise ValueError(f"Malformed percent-escape in {value[:80]!r}")
    return unquote(value, encoding="utf-8", errors="strict")


def expand_param_candidates(value: str) -> List[str]:
    """
    Breadth-first percent-decoding of a parameter value

    Each newly decoded form is queued for another round, so doubly or
    triply encoded URLs surface as their own candidates. `+` is tried both
    literally and as an encoded space.

    Args:
        value: Raw parameter value or candidate

    Returns:
        The value followed by its decoded forms (at most MAX_CANDIDATE_COUNT)
    """
    queue = deque([value])
    candidates = CandidateSet()

    while queue and not candidates.full:
        current = normalize_token(queue.popleft())
        if not current or current in candidates:
            continue

        candidates.add(current)

        for decode_input in (current, current.replace("+", "%20")):
            try:
                decoded = decode_component(decode_input)
            except ValueError:
                continue
            normalized = normalize_token(decoded)
            if normalized and normalized not in candidates:
                queue.append(normalized)

    return candidates.to_list()
