"""Turn a parsed SERP document into paid (SEA) and organic (SEO) result entries."""

from __future__ import annotations

import logging
from typing import Dict, List

from bs4 import BeautifulSoup, Tag

from adwaste.core.domain import UNPARSEABLE, domain_or_unparseable, is_dotted_host, normalize_domain
from adwaste.core.session import ScrapeSession
from adwaste.core.user_agents import DESKTOP, MOBILE

logger = logging.getLogger(__name__)

AD_MARKER_TAG = "span"
ORGANIC_CONTAINER = "div[id=ires]"
# Organic links are rendered in <cite> on desktop and in plain <span> on mobile.
ORGANIC_TAG_BY_DEVICE: Dict[str, str] = {DESKTOP: "cite", MOBILE: "span"}
NOT_FOUND = "not found"


def is_ad_marker(element: Tag, ad_label: str) -> bool:
    return element.get_text() == ad_label


def _marker_siblings(marker: Tag) -> List[Tag]:
    """Every element sharing the marker's parent, in document order, minus the marker."""
    if marker.parent is None:
        return list(marker.find_next_siblings())
    return [child for child in marker.parent.find_all(recursive=False) if child is not marker]


def extract_paid_listings(soup: BeautifulSoup, session: ScrapeSession, ad_label: str) -> int:
    """Append one SEA entry per ad marker and return how many were found.

    The first sibling of the marker (before or after it) whose text parses as
    a hostname gives the advertised domain; when none does, an
    ``unparseable`` entry keeps the slot.
    """
    markers = [span for span in soup.find_all(AD_MARKER_TAG) if is_ad_marker(span, ad_label)]
    for marker in markers:
        for sibling in _marker_siblings(marker):
            text = sibling.get_text()
            domain = normalize_domain(text)
            if domain:
                session.append_sea(text, AD_MARKER_TAG, domain)
                break
        else:
            logger.debug("No domain found next to ad marker %r", marker.get_text())
            session.append_sea(NOT_FOUND, AD_MARKER_TAG, UNPARSEABLE)
    return len(markers)


def extract_organic_listings(soup: BeautifulSoup, session: ScrapeSession) -> int:
    """Append SEO entries for candidates whose first token parses as a dotted hostname."""
    tag = ORGANIC_TAG_BY_DEVICE.get(session.device, ORGANIC_TAG_BY_DEVICE[DESKTOP])
    found = 0
    for container in soup.select(ORGANIC_CONTAINER):
        for candidate in container.find_all(tag):
            text = candidate.get_text()
            tokens = text.split()
            domain = normalize_domain(tokens[0]) if tokens else None
            # Organic cites also carry dates ("Il y a 3 jours"), whose first word parses as a bare host.
            if not domain or not is_dotted_host(domain):
                logger.debug("Skipping organic %s without a parseable url: %r", tag, text[:80])
                continue
            session.append_seo(text, ORGANIC_CONTAINER, domain)
            found += 1
    return found


def extract_unranked_ads(soup: BeautifulSoup, session: ScrapeSession, ad_label: str) -> int:
    """Older ad scan: the first <cite> under each marker's parent, without ranking."""
    found = 0
    for marker in soup.find_all(AD_MARKER_TAG):
        if not is_ad_marker(marker, ad_label) or marker.parent is None:
            continue
        cite = marker.parent.find("cite")
        text = cite.get_text() if cite is not None else ""
        session.append_unranked(text, AD_MARKER_TAG, domain_or_unparseable(text))
        found += 1
    return found


def extract_all(
    soup: BeautifulSoup,
    session: ScrapeSession,
    *,
    ad_label: str,
    legacy_ad_scan: bool = False,
) -> Dict[str, int]:
    counts = {
        "sea": extract_paid_listings(soup, session, ad_label),
        "seo": extract_organic_listings(soup, session),
    }
    if legacy_ad_scan:
        counts["sea_unranked"] = extract_unranked_ads(soup, session, ad_label)
    if not counts["sea"]:
        logger.info("No paid listings found for keywords=%s", session.keywords)
    if not counts["seo"]:
        logger.warning("No organic listings found for keywords=%s device=%s", session.keywords, session.device)
    return counts
