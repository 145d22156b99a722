"""Google SERP fetching and traversal for the ad-waste pipeline."""

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode, urlsplit

import requests
from bs4 import BeautifulSoup

from adwaste.core.config import Settings, get_settings
from adwaste.core.session import ScrapeCancelled, ScrapeSession, SessionClosed
from adwaste.core.user_agents import random_user_agent
from adwaste.etl.extract import extract_all
from adwaste.models import SearchResultSet

logger = logging.getLogger(__name__)

RETRY_LIMIT = 2
RETRY_DELAY_SECONDS = 1.2
REQUEST_TIMEOUT = 10

_SESSION = requests.Session()
_traversal_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="serp-traversal")


class SerpFetchError(RuntimeError):
    """Raised when the SERP cannot be downloaded from an allowed domain."""


def build_search_url(keywords: str, base_url: str) -> str:
    """Build the search URL for *keywords*."""
    if not keywords or not keywords.strip():
        raise ValueError("Keywords must be provided for a SERP scrape.")
    return f"{base_url}?{urlencode({'q': keywords.strip()})}"


def is_allowed_host(url: str, allowed_domains: Iterable[str]) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    return host in set(allowed_domains)


def fetch_serp(url: str, user_agent: str, allowed_domains: Iterable[str]) -> Tuple[str, str]:
    """Download the SERP with retry logic and return ``(final_url, html)``.

    Redirects are followed, but the final page must live on one of
    *allowed_domains*.
    """
    allowed = tuple(allowed_domains)
    if not is_allowed_host(url, allowed):
        raise SerpFetchError(f"refusing to fetch {url}: host is not in {', '.join(allowed)}")

    headers: Dict[str, str] = {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml",
    }
    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info("Fetching SERP (attempt %s): %s", attempt, url)
            response = _SESSION.get(url, headers=headers, timeout=REQUEST_TIMEOUT, allow_redirects=True)
            response.raise_for_status()
            break
        except requests.RequestException as exc:
            logger.warning("SERP request failed (attempt %s/%s): %s", attempt, RETRY_LIMIT + 1, exc)
            if attempt > RETRY_LIMIT:
                logger.error("SERP request exhausted retries for %s", url)
                raise SerpFetchError(f"failed to fetch {url}: {exc}") from exc
            time.sleep(RETRY_DELAY_SECONDS + random.uniform(0, 0.8))

    final_url = response.url or url
    if not is_allowed_host(final_url, allowed):
        raise SerpFetchError(f"redirected off the allowed domains to {final_url}")
    return final_url, response.text


def run_traversal(session: ScrapeSession, html: str, settings: Settings) -> Dict[str, int]:
    """Parse *html*, feed every match to *session* and fire its completion signal."""
    soup = BeautifulSoup(html, "html.parser")
    try:
        counts = extract_all(
            soup,
            session,
            ad_label=settings.ad_label,
            legacy_ad_scan=settings.legacy_ad_scan,
        )
    except SessionClosed:
        logger.info("Traversal stopped: session for keywords=%s is %s", session.keywords, session.state)
        raise
    except Exception:
        logger.exception("Traversal failed for keywords=%s", session.keywords)
        session.cancel()
        raise
    session.complete()
    logger.info("Finished traversal for keywords=%s: %s", session.keywords, counts)
    return counts


def scrape_serp(
    keywords: str,
    settings: Optional[Settings] = None,
    *,
    device: Optional[str] = None,
    user_agent: Optional[str] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> SearchResultSet:
    """Scrape the SERP for *keywords* and return the finalized result set.

    ``device`` overrides ``settings.device_override``. Raises
    :class:`~adwaste.core.session.DeviceMismatch` before anything is fetched when
    the user agent does not match the forced device, and
    :class:`~adwaste.core.session.TraversalTimeout` /
    :class:`~adwaste.core.session.ScrapeCancelled` when the traversal is abandoned.
    """
    settings = settings or get_settings()
    forced = device if device is not None else settings.device_override
    timeout = settings.scrape_timeout if timeout is None else timeout

    url = build_search_url(keywords, settings.search_base_url)
    agent = user_agent or random_user_agent(forced)
    session = ScrapeSession(keywords, device_override=forced)
    session.start(url, agent)

    if cancel is not None and cancel.is_set():
        session.cancel()
        raise ScrapeCancelled(f"scrape for keywords={keywords!r} was cancelled before fetching")

    try:
        _, html = fetch_serp(url, agent, settings.allowed_domains)
    except Exception:
        session.cancel()
        raise

    future = _traversal_pool.submit(run_traversal, session, html, settings)
    try:
        return session.wait(timeout, cancel=cancel)
    except ScrapeCancelled:
        if cancel is None or not cancel.is_set():
            try:
                error = future.exception(timeout=1.0)
            except FuturesTimeout:
                error = None
            if error is not None and not isinstance(error, SessionClosed):
                raise error
        raise
