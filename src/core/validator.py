"""Candidate URL normalization and syntactic validation (core domain).

Three outcomes are kept apart: a usable http(s) URL, an attempted but
malformed URL, and nothing usable at all (empty input or a non-web scheme).
"""

from __future__ import annotations

import ipaddress
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from core.models import ValidatedCandidate

WEB_SCHEMES = ("http", "https")

# A trailing digit after the colon is a port ("example.com:8080"), not a scheme.
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:(?!\d)")
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_TLD_RE = re.compile(r"^(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$")

ABSENT = ValidatedCandidate(url=None, invalid=False)
INVALID = ValidatedCandidate(url=None, invalid=True)


def has_explicit_scheme(value: str) -> bool:
    return _SCHEME_RE.match(value) is not None


def _ascii_host(host: str) -> Optional[str]:
    """Return the ASCII (punycode) form of a host, or None if it is not a host."""

    if host == "localhost":
        return host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError:
        return None

    labels = ascii_host.rstrip(".").split(".")
    if len(labels) < 2:
        return None
    if not all(_LABEL_RE.match(label) for label in labels):
        return None
    if not _TLD_RE.match(labels[-1]):
        return None
    return ascii_host


def validate_candidate(raw: Optional[str]) -> ValidatedCandidate:
    """Normalize a raw candidate into a canonical http(s) URL.

    Strings without a scheme get ``https://``. A parse failure or an
    implausible host is reported as invalid; a parsed URL with a non-web
    scheme is treated as absent rather than rejected.
    """

    if not raw:
        return ABSENT
    candidate = raw.strip()
    if not candidate:
        return ABSENT
    if not has_explicit_scheme(candidate):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError:
        return INVALID

    scheme = parts.scheme.lower()
    if scheme not in WEB_SCHEMES:
        return ABSENT

    host = parts.hostname
    if not host:
        return INVALID
    ascii_host = _ascii_host(host)
    if ascii_host is None:
        return INVALID

    netloc = f"[{ascii_host}]" if ":" in ascii_host else ascii_host
    if port is not None:
        netloc = f"{netloc}:{port}"
    userinfo, at, _ = parts.netloc.rpartition("@")
    if at:
        netloc = f"{userinfo}@{netloc}"

    path = parts.path or "/"
    return ValidatedCandidate(url=urlunsplit((scheme, netloc, path, parts.query, parts.fragment)))
