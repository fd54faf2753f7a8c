"""
Input sanitizing - strip markup and escape noise around pasted URLs
"""
from __future__ import annotations

import re

_REPLACEMENTS = (
    (re.compile(r"&amp;", re.IGNORECASE), "&"),
    (re.compile(r"&quot;", re.IGNORECASE), '"'),
    (re.compile(r"&#39;", re.IGNORECASE), "'"),
    (re.compile(r"&lt;", re.IGNORECASE), "<"),
    (re.compile(r"&gt;", re.IGNORECASE), ">"),
    (re.compile(r"\\u0026", re.IGNORECASE), "&"),
    (re.compile(r"\\u003d", re.IGNORECASE), "="),
    (re.compile(r"\\u002f", re.IGNORECASE), "/"),
    (re.compile(r"\\/"), "/"),
)

QUOTE_CHARS = "\"'`"
LEADING_NOISE_PATTERN = re.compile(r"^[\"'`(\[{<\s]+")
TRAILING_NOISE_PATTERN = re.compile(r"[>\"'`)\]}.,;!?\s]+\Z")


def sanitize(raw: str) -> str:
    """
    Remove entity/escape noise and surrounding quotes from a raw string

    Args:
        raw: Untrusted user input

    Returns:
        Cleaned string, possibly empty
    """
    value = raw or ""
    for pattern, replacement in _REPLACEMENTS:
        value = pattern.sub(replacement, value)
    return value.strip().strip(QUOTE_CHARS)


def normalize_token(value: str) -> str:
    """Sanitize a candidate and drop the brackets/punctuation wrapping it in prose"""
    cleaned = sanitize(value)
    cleaned = LEADING_NOISE_PATTERN.sub("", cleaned)
    return TRAILING_NOISE_PATTERN.sub("", cleaned)
