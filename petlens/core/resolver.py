"""
Image URL resolution - unwrap redirect/viewer URLs and pasted snippets into
the single best direct image URL
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple
from urllib.parse import parse_qsl

from .candidates import (
    CandidateSet,
    expand_param_candidates,
    extract_inline_candidates,
)
from .models import ERROR_MESSAGES, ErrorKind, PreparedImageUrl
from .sanitizer import normalize_token, sanitize
from .urls import (
    IMAGE_EXTENSION_PATTERN,
    ParsedUrl,
    looks_like_image,
    normalize_known_host,
    parse_http_url,
)

logger = logging.getLogger("petlens")

MAX_URL_EXTRACTION_DEPTH = 4

WRAPPER_PARAM_KEYS = frozenset(
    {
        "mediaurl",
        "imgurl",
        "imageurl",
        "image_url",
        "image",
        "img",
        "url",
        "u",
        "r",
        "redirect",
        "redirect_url",
        "redirecturl",
        "target",
        "destination",
        "dest",
        "src",
        "source",
        "media",
        "photo",
        "picture",
        "original",
    }
)
EMBEDDED_URL_PATTERN = re.compile(r"(?:https?://|www\.|https?%3A%2F%2F)", re.IGNORECASE)


@dataclass
class Resolution:
    """Outcome of one wrapper-resolution step"""
    url: Optional[ParsedUrl]
    extracted_from_wrapper: bool = False


def collect_search_like_params(url: ParsedUrl) -> List[List[Tuple[str, str]]]:
    """Query parameters, plus the fragment's when it is shaped like a query string"""
    params = [url.search_params]
    fragment = url.fragment or ""
    if not fragment:
        return params

    fragment_query = fragment[1:] if fragment.startswith("?") else fragment
    if re.search(r"[=&]", fragment_query):
        params.append(parse_qsl(fragment_query, keep_blank_values=True))
    return params


def collect_nested_candidates(url: ParsedUrl) -> List[str]:
    """
    Gather candidate URLs nested inside a wrapper URL

    Values of known wrapper parameters come first. Other parameters that
    carry an embedded URL or an image file name, then inline candidates of
    the fragment and the path, are fallbacks.
    """
    prioritized: List[str] = []
    fallback: List[str] = []
    seen = CandidateSet()

    def push_candidates(bucket: List[str], value: str) -> None:
        for candidate in expand_param_candidates(value):
            if seen.full:
                return
            if seen.add(candidate):
                bucket.append(candidate)

    for params in collect_search_like_params(url):
        for raw_key, raw_value in params:
            if raw_key.lower() in WRAPPER_PARAM_KEYS:
                push_candidates(prioritized, raw_value)
                continue
            if EMBEDDED_URL_PATTERN.search(raw_value) or IMAGE_EXTENSION_PATTERN.search(raw_value):
                push_candidates(fallback, raw_value)

    for candidate in extract_inline_candidates(url.hash):
        push_candidates(fallback, candidate)
    for candidate in extract_inline_candidates(url.path):
        push_candidates(fallback, candidate)

    return prioritized + fallback


def resolve_wrapped_url(
    candidate: str,
    depth: int = 0,
    visited: Optional[Set[str]] = None,
) -> Resolution:
    """
    Resolve a candidate to the most specific URL nested inside it

    A nested URL replaces the wrapper only when it differs from it and
    either changes host, looks like an image, or was itself unwrapped.
    Recursion stops past MAX_URL_EXTRACTION_DEPTH, and a URL already in
    `visited` is returned as-is.

    Args:
        candidate: Candidate string (URL or snippet)
        depth: Current nesting depth
        visited: Canonical URLs seen during this resolution

    Returns:
        Resolution with the chosen URL (None if the candidate does not parse)
    """
    if depth > MAX_URL_EXTRACTION_DEPTH:
        return Resolution(url=None)

    parsed_url = parse_http_url(candidate)
    if parsed_url is None:
        return Resolution(url=None)

    if visited is None:
        visited = set()

    canonical_url = parsed_url.href
    if canonical_url in visited:
        return Resolution(url=parsed_url)
    visited.add(canonical_url)

    for nested_candidate in collect_nested_candidates(parsed_url):
        nested = resolve_wrapped_url(nested_candidate, depth + 1, visited)
        if nested.url is None or nested.url.href == canonical_url:
            continue

        host_changed = nested.url.hostname != parsed_url.hostname
        if host_changed or looks_like_image(nested.url) or nested.extracted_from_wrapper:
            return Resolution(url=nested.url, extracted_from_wrapper=True)

    return Resolution(url=parsed_url)


def build_input_candidates(cleaned_input: str) -> List[str]:
    """The input itself, its inline candidates, then their decoded forms"""
    candidates = CandidateSet()
    candidates.add(normalize_token(cleaned_input))
    for candidate in extract_inline_candidates(cleaned_input):
        candidates.add(normalize_token(candidate))

    for candidate in candidates.to_list():
        for expanded in expand_param_candidates(candidate):
            candidates.add(normalize_token(expanded))

    return candidates.to_list()


def _failure(kind: ErrorKind) -> PreparedImageUrl:
    return PreparedImageUrl(
        normalized_url=None,
        ok=False,
        error_kind=kind,
        message=ERROR_MESSAGES[kind],
    )


def prepare_image_url(raw_input: str) -> PreparedImageUrl:
    """
    Turn raw user input into a normalized absolute image URL

    The first input candidate whose resolved URL looks like an image wins.
    When none does, the first parseable URL is returned as a best effort,
    since many image URLs carry no recognizable extension.

    Args:
        raw_input: Pasted URL, redirect link or markup snippet

    Returns:
        PreparedImageUrl; `ok` is False with `invalid_url` when nothing parses
    """
    cleaned_input = sanitize(raw_input)
    if not cleaned_input:
        return _failure(ErrorKind.INVALID_URL)

    fallback: Optional[PreparedImageUrl] = None
    for candidate in build_input_candidates(cleaned_input):
        resolved = resolve_wrapped_url(candidate, 0, set())
        if resolved.url is None:
            continue

        normalized_url = normalize_known_host(resolved.url)
        extracted_from_wrapper = (
            resolved.extracted_from_wrapper
            or candidate != cleaned_input
            or normalized_url.href != resolved.url.href
        )
        prepared = PreparedImageUrl(
            normalized_url=normalized_url.href,
            ok=True,
            extracted_from_wrapper=extracted_from_wrapper,
        )

        if looks_like_image(normalized_url):
            logger.debug("Resolved %r to image URL %s", raw_input[:200], prepared.normalized_url)
            return prepared

        if fallback is None:
            fallback = prepared

    if fallback is None:
        logger.debug("No http(s) URL found in %r", raw_input[:200])
        return _failure(ErrorKind.INVALID_URL)

    logger.debug(
        "No image-like URL in %r; falling back to %s",
        raw_input[:200],
        fallback.normalized_url,
    )
    return fallback
