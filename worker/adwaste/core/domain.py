"""Hostname normalization for SERP text fragments."""

from __future__ import annotations

import ipaddress
import re
from typing import Optional
from urllib.parse import urlsplit

UNPARSEABLE = "unparseable"

_SCHEME_REGEX = re.compile(r"^https?://", re.IGNORECASE)
_LABEL_REGEX = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")


def normalize_domain(text: Optional[str]) -> Optional[str]:
    """Return the lowercase hostname found in *text*, or ``None`` when it cannot be parsed.

    Text without an ``http``/``https`` prefix is parsed as ``http://<text>``.
    Internationalized names are returned as written; they are validated in
    their IDNA form.
    """
    if not text:
        return None
    candidate = text.strip()
    if not candidate:
        return None
    if not _SCHEME_REGEX.match(candidate):
        candidate = f"http://{candidate}"

    try:
        parsed = urlsplit(candidate)
        # .port validates the port component and raises ValueError on garbage.
        parsed.port
    except ValueError:
        return None

    if parsed.scheme not in {"http", "https"}:
        return None
    hostname = parsed.hostname
    if not hostname or not _is_valid_host(hostname):
        return None
    return hostname


def domain_or_unparseable(text: Optional[str]) -> str:
    return normalize_domain(text) or UNPARSEABLE


def metric_safe(domain: str) -> str:
    """Dots are metric path separators, so they become underscores."""
    return domain.replace(".", "_")


def is_dotted_host(domain: str) -> bool:
    """True for IP literals and for names with at least two labels."""
    try:
        ipaddress.ip_address(domain)
        return True
    except ValueError:
        pass
    return "." in domain.strip(".")


def _is_valid_host(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass

    try:
        ascii_host = hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    if len(ascii_host) > 253:
        return False
    labels = ascii_host.rstrip(".").split(".")
    return all(_LABEL_REGEX.match(label) for label in labels)
