"""
URL parsing - structural http(s) URLs, image-likeness hints and known-host
canonicalization
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple
from urllib.parse import parse_qsl, quote, unquote

import idna

from .candidates import decode_component, extract_inline_candidates

ALLOWED_SCHEMES = {"http", "https"}
DEFAULT_PORTS = {"http": "80", "https": "443"}

IMAGE_EXTENSION_PATTERN = re.compile(
    r"\.(avif|bmp|gif|heic|heif|jfif|jpe?g|png|svg|webp)(?:\Z|[/?#])",
    re.IGNORECASE,
)
IMAGE_FORMAT_HINTS = (
    "avif", "bmp", "gif", "heic", "heif", "jfif", "jpg", "jpeg", "png", "svg", "webp",
)
FORMAT_PARAM_KEYS = ("fm", "format", "ext", "mime", "type")

SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*:")
WWW_PREFIX_PATTERN = re.compile(r"^www\.", re.IGNORECASE)
BARE_HOST_PATTERN = re.compile(r"^(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}(?:[/:?#]|\Z)")

WIKI_HOSTS = ("commons.wikimedia.org",)
WIKI_HOST_SUFFIXES = (".wikimedia.org", ".wikipedia.org")
WIKI_FILE_PATH_PATTERN = re.compile(r"^/wiki/Special:FilePath/(.+)\Z", re.IGNORECASE)
WIKI_FILE_PAGE_PATTERN = re.compile(r"^/wiki/File:(.+)\Z", re.IGNORECASE)

_AUTHORITY_PATTERN = re.compile(r"[^/\\?#]*")
_STRIPPED_CHARS = "".join(chr(code) for code in range(0x21))
_FORBIDDEN_HOST_CHARS = set(" #%/:<>?@[\\]^|\x7f") | {chr(code) for code in range(0x20)}
_PATH_ENCODE = set(' "#<>?`{}')
_QUERY_ENCODE = set(" \"#<>'")
_FRAGMENT_ENCODE = set(' "<>`')
_USERINFO_ENCODE = _PATH_ENCODE | set("/;=@[\\]^|")
_DOT_SEGMENTS = {".", "%2e"}
_DOUBLE_DOT_SEGMENTS = {"..", ".%2e", "%2e.", "%2e%2e"}


def _percent_encode(text: str, encode_set: set) -> str:
    pieces: List[str] = []
    for char in text:
        if char in encode_set or ord(char) < 0x21 or ord(char) > 0x7E:
            pieces.append(quote(char, safe="", errors="surrogatepass"))
        else:
            pieces.append(char)
    return "".join(pieces)


def _remove_dot_segments(path: str) -> str:
    segments = path.split("/")[1:]
    output: List[str] = []
    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        lowered = segment.lower()
        if lowered in _DOUBLE_DOT_SEGMENTS:
            if output:
                output.pop()
            if is_last:
                output.append("")
        elif lowered in _DOT_SEGMENTS:
            if is_last:
                output.append("")
        else:
            output.append(segment)
    return "/" + "/".join(output)


_IPV4_NUMBER_PATTERNS = (
    (re.compile(r"0[xX]([0-9a-fA-F]*)\Z"), 16),
    (re.compile(r"0([0-7]+)\Z"), 8),
    (re.compile(r"([1-9][0-9]*|0)\Z"), 10),
)


def _parse_ipv4_number(part: str) -> Optional[int]:
    """Read one dotted IPv4 part as hex (0x), octal (leading 0) or decimal"""
    if not part:
        return None
    for pattern, radix in _IPV4_NUMBER_PATTERNS:
        match = pattern.match(part)
        if match:
            digits = match.group(1)
            return int(digits, radix) if digits else 0
    return None


def _ipv4_parts(host: str) -> List[str]:
    parts = host.split(".")
    if len(parts) > 1 and parts[-1] == "":
        parts = parts[:-1]
    return parts


def _ends_in_number(host: str) -> bool:
    last = _ipv4_parts(host)[-1]
    if last and last.isdigit():
        return True
    return _parse_ipv4_number(last) is not None


def _parse_ipv4(host: str) -> Optional[str]:
    """
    Serialize a numeric host the way browsers do

    Shorthand forms are expanded: `0x7f.1` is 127.0.0.1, `010.0.0.1` is
    8.0.0.1 and `3232235777` is 192.168.1.1.
    """
    parts = _ipv4_parts(host)
    if len(parts) > 4:
        return None

    numbers: List[int] = []
    for part in parts:
        number = _parse_ipv4_number(part)
        if number is None:
            return None
        numbers.append(number)

    if any(number > 255 for number in numbers[:-1]):
        return None
    if numbers[-1] >= 256 ** (5 - len(numbers)):
        return None

    address = numbers[-1]
    for index, number in enumerate(numbers[:-1]):
        address += number * 256 ** (3 - index)
    return ".".join(str((address >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def _parse_host(raw_host: str) -> Optional[str]:
    if raw_host.startswith("["):
        if not re.fullmatch(r"\[[0-9a-fA-F:.]+\]", raw_host):
            return None
        return raw_host.lower()

    host = unquote(raw_host)
    if not host:
        return None
    if not host.isascii():
        try:
            host = idna.encode(host, uts46=True, transitional=False).decode("ascii")
        except idna.IDNAError:
            return None
    host = host.lower()
    if any(char in _FORBIDDEN_HOST_CHARS for char in host):
        return None

    if _ends_in_number(host):
        return _parse_ipv4(host)
    return host


def _split_host_port(hostport: str) -> Tuple[str, str]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            return hostport, ""
        host, rest = hostport[: end + 1], hostport[end + 1:]
        return host, rest[1:] if rest.startswith(":") else rest
    host, sep, port = hostport.rpartition(":")
    if not sep:
        return hostport, ""
    return host, port


@dataclass(frozen=True)
class ParsedUrl:
    """Structural absolute http(s) URL"""
    scheme: str
    host: str
    path: str = "/"
    query: Optional[str] = None
    fragment: Optional[str] = None
    port: str = ""
    userinfo: str = ""

    @classmethod
    def parse(cls, text: str) -> Optional["ParsedUrl"]:
        """
        Parse text as an absolute http(s) URL

        Args:
            text: Candidate URL string

        Returns:
            ParsedUrl, or None when the text is not an absolute http(s) URL
        """
        value = (text or "").strip(_STRIPPED_CHARS)
        value = re.sub(r"[\t\n\r]", "", value)

        scheme_match = SCHEME_PATTERN.match(value)
        if not scheme_match:
            return None
        scheme = scheme_match.group(0)[:-1].lower()
        if scheme not in ALLOWED_SCHEMES:
            return None

        rest = value[scheme_match.end():].lstrip("/\\")
        authority = _AUTHORITY_PATTERN.match(rest).group(0)
        remainder = rest[len(authority):]

        userinfo, _, hostport = authority.rpartition("@")
        raw_host, port = _split_host_port(hostport)
        if port and not port.isdigit():
            return None
        if port:
            if int(port) > 65535:
                return None
            port = str(int(port))
            if port == DEFAULT_PORTS[scheme]:
                port = ""

        host = _parse_host(raw_host)
        if host is None:
            return None

        fragment: Optional[str] = None
        if "#" in remainder:
            remainder, fragment = remainder.split("#", 1)
            fragment = _percent_encode(fragment, _FRAGMENT_ENCODE)

        query: Optional[str] = None
        if "?" in remainder:
            remainder, query = remainder.split("?", 1)
            query = _percent_encode(query, _QUERY_ENCODE)

        path = remainder.replace("\\", "/") or "/"
        path = _remove_dot_segments(_percent_encode(path, _PATH_ENCODE))

        return cls(
            scheme=scheme,
            host=host,
            path=path,
            query=query,
            fragment=fragment,
            port=port,
            userinfo=_percent_encode(userinfo, _USERINFO_ENCODE - {":"}),
        )

    @property
    def hostname(self) -> str:
        return self.host

    @property
    def origin(self) -> str:
        port = f":{self.port}" if self.port else ""
        return f"{self.scheme}://{self.host}{port}"

    @property
    def hash(self) -> str:
        return f"#{self.fragment}" if self.fragment else ""

    @property
    def href(self) -> str:
        userinfo = f"{self.userinfo}@" if self.userinfo else ""
        port = f":{self.port}" if self.port else ""
        query = f"?{self.query}" if self.query is not None else ""
        fragment = f"#{self.fragment}" if self.fragment is not None else ""
        return f"{self.scheme}://{userinfo}{self.host}{port}{self.path}{query}{fragment}"

    @property
    def search_params(self) -> List[Tuple[str, str]]:
        return parse_qsl(self.query or "", keep_blank_values=True)

    def get_param(self, key: str) -> Optional[str]:
        """First value of a query parameter, or None"""
        for name, value in self.search_params:
            if name == key:
                return value
        return None

    def with_path(self, path: str) -> "ParsedUrl":
        """Same origin with a new path and no userinfo, query or fragment"""
        normalized = _remove_dot_segments(_percent_encode(path, _PATH_ENCODE))
        return replace(self, path=normalized, query=None, fragment=None, userinfo="")

    def __str__(self):
        return self.href


def ensure_protocol(value: str) -> str:
    """Infer a scheme for protocol-relative, www. and bare host.tld candidates"""
    if value.startswith("//"):
        return f"https:{value}"
    if SCHEME_PATTERN.match(value):
        return value
    if WWW_PREFIX_PATTERN.match(value):
        return f"https://{value}"
    if BARE_HOST_PATTERN.match(value):
        return f"https://{value}"
    return value


def parse_http_url(candidate: str) -> Optional[ParsedUrl]:
    """
    Parse the first http(s) URL found in a candidate

    The candidate may itself be a snippet, so inline extraction runs again
    and each sub-candidate is tried in order.
    """
    for sub_candidate in extract_inline_candidates(candidate):
        parsed = ParsedUrl.parse(ensure_protocol(sub_candidate))
        if parsed is not None:
            return parsed
    return None


def looks_like_image(url: ParsedUrl) -> bool:
    """True if the path has an image extension or a format parameter names one"""
    if IMAGE_EXTENSION_PATTERN.search(url.path):
        return True

    for key in FORMAT_PARAM_KEYS:
        value = url.get_param(key)
        if not value:
            continue
        lower_value = value.lower()
        if any(hint in lower_value for hint in IMAGE_FORMAT_HINTS):
            return True

    return False


def is_wiki_family_host(hostname: str) -> bool:
    host = hostname.lower()
    return host in WIKI_HOSTS or host.endswith(WIKI_HOST_SUFFIXES)


def normalize_known_host(url: ParsedUrl) -> ParsedUrl:
    """
    Canonicalize Wikimedia file pages to their direct-file form

    `/wiki/File:<title>` and `/wiki/Special:FilePath/<title>` both become
    `/wiki/Special:FilePath/<Title_with_underscores>`. Other URLs are
    returned unchanged.
    """
    if not is_wiki_family_host(url.hostname):
        return url

    try:
        decoded_path = decode_component(url.path)
    except ValueError:
        return url

    match = WIKI_FILE_PATH_PATTERN.match(decoded_path) or WIKI_FILE_PAGE_PATTERN.match(
        decoded_path
    )
    file_title = match.group(1).strip() if match else ""
    if not file_title:
        return url

    normalized_title = quote(re.sub(r"\s+", "_", file_title), safe="-_.!~*'()/")
    return url.with_path(f"/wiki/Special:FilePath/{normalized_title}")
