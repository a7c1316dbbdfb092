"""
URL Helpers
===========

Fail-soft URL algebra used when rewriting feed markup, plus the display
name heuristic applied to feed hosts.
"""

import re
from urllib.parse import urljoin, urlparse


ABSOLUTE_PREFIXES = ("http://", "https://")

HOST_PREFIX_PATTERN = re.compile(r"^(www\.|feeds\.|feed\.|rss\.)")
HOST_SUFFIX_PATTERN = re.compile(r"\.(com|net|org|io|co|me|info)$")
CAMEL_CASE_PATTERN = re.compile(r"([a-z])([A-Z])")
SEPARATOR_PATTERN = re.compile(r"[-_]")


def _is_absolute_base(parsed) -> bool:
    return bool(parsed.scheme) and bool(parsed.netloc)


def resolve_url(reference: str, base: str) -> str:
    """Resolve a possibly relative reference against a base URL.

    Absolute http(s) references are returned unchanged and protocol-relative
    ones are pinned to https. Anything that cannot be composed is returned
    as given; this function never raises.

    Args:
        reference: URL or relative reference found in markup
        base: Base URL to resolve against

    Returns:
        Resolved URL, or the reference itself when resolution is impossible
    """
    if not reference:
        return ""
    if reference.startswith(ABSOLUTE_PREFIXES):
        return reference
    if reference.startswith("//"):
        return "https:" + reference

    try:
        parsed_base = urlparse(base or "")
        if not _is_absolute_base(parsed_base):
            return reference
        return urljoin(base, reference)
    except ValueError:
        return reference


def origin_of(url: str) -> str:
    """Return ``scheme://host`` for a URL, or the URL itself if malformed."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return url

    if not parsed.scheme or not hostname:
        return url
    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"
    return f"{parsed.scheme}://{hostname}"


def derive_display_name(url: str) -> str:
    """Best-effort human label for a feed URL.

    ``https://www.example-comic.com/rss`` becomes ``Example Comic``;
    feedburner feeds are named after their last path segment and blogspot
    blogs after their subdomain. Returns the URL itself when nothing
    usable can be derived.
    """
    try:
        parsed = urlparse(url)
        name = parsed.hostname
    except ValueError:
        return url

    if not parsed.scheme or not name:
        return url

    name = HOST_PREFIX_PATTERN.sub("", name, count=1)

    if "feedburner.com" in name:
        path_parts = [part for part in parsed.path.split("/") if part]
        if path_parts:
            name = path_parts[-1]

    if "blogspot.com" in name:
        name = name.replace(".blogspot.com", "", 1)

    name = HOST_SUFFIX_PATTERN.sub("", name)

    name = SEPARATOR_PATTERN.sub(" ", name)
    name = CAMEL_CASE_PATTERN.sub(r"\1 \2", name)
    name = " ".join(word[:1].upper() + word[1:].lower() for word in name.split(" "))

    return name or url
