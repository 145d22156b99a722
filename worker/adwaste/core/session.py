"""Scrape session: owns the result set while the SERP document is traversed.

A session goes through three phases. ``start()`` records the outbound request
and classifies the device; the extractor then appends entries (positions are
assigned under the session lock); ``complete()`` fires the completion signal,
after which the result set is read-only. ``cancel()`` abandons the session and
drops whatever was collected.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional

from adwaste.core.user_agents import classify_device
from adwaste.models import ResultEntry, SearchResultSet

logger = logging.getLogger(__name__)

PENDING = "pending"
OPEN = "open"
COMPLETE = "complete"
CANCELLED = "cancelled"

CANCEL_POLL_INTERVAL = 0.05


class SessionError(RuntimeError):
    """Base class for errors that abort a whole scrape session."""


class DeviceMismatch(SessionError):
    """The user agent's device class disagrees with the configured device override."""

    def __init__(self, user_agent: str, detected: str, configured: Optional[str]) -> None:
        self.user_agent = user_agent
        self.detected = detected
        self.configured = configured
        super().__init__(
            f"user agent is {detected} but DEVICE is configured as {configured or 'desktop'}; "
            f"user agent: {user_agent}"
        )


class TraversalTimeout(SessionError):
    """The completion signal did not fire in time."""


class ScrapeCancelled(SessionError):
    """The session was cancelled before the traversal finished."""


class SessionClosed(SessionError):
    """An entry was appended outside the open phase."""


class ScrapeSession:
    def __init__(self, keywords: str, device_override: Optional[str] = None) -> None:
        self._result = SearchResultSet(keywords=keywords)
        self._device_override = device_override
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._state = PENDING

    @property
    def state(self) -> str:
        return self._state

    @property
    def keywords(self) -> str:
        return self._result.keywords

    @property
    def device(self) -> str:
        return self._result.device

    @property
    def result(self) -> SearchResultSet:
        """The finalized result set; only available once the session completed."""
        if self._state != COMPLETE:
            raise SessionError(f"result set is not final (session is {self._state})")
        return self._result

    def start(self, url: str, user_agent: str) -> str:
        """Record the outbound request and classify the device.

        Raises :class:`DeviceMismatch` when a forced device disagrees with the
        user agent, which leaves the session unusable.
        """
        detected = classify_device(user_agent)
        forced = self._device_override
        if (forced == "mobile") != (detected == "mobile"):
            logger.error(
                "Device mismatch for keywords=%s: detected=%s configured=%s user_agent=%s",
                self.keywords,
                detected,
                forced,
                user_agent,
            )
            with self._lock:
                self._state = CANCELLED
            raise DeviceMismatch(user_agent, detected, forced)

        with self._lock:
            if self._state != PENDING:
                raise SessionError(f"session already started (state={self._state})")
            self._result.url = url
            self._result.user_agent = user_agent
            self._result.device = detected
            self._state = OPEN
        logger.info("Request: %s device=%s user_agent=%s", url, detected, user_agent)
        return detected

    def append_sea(self, raw: str, css_selector: str, domain: str) -> ResultEntry:
        return self._append(self._result.sea, raw, css_selector, domain, ranked=True)

    def append_seo(self, raw: str, css_selector: str, domain: str) -> ResultEntry:
        return self._append(self._result.seo, raw, css_selector, domain, ranked=True)

    def append_unranked(self, raw: str, css_selector: str, domain: str) -> ResultEntry:
        return self._append(self._result.sea_unranked, raw, css_selector, domain, ranked=False)

    def _append(
        self,
        bucket: List[ResultEntry],
        raw: str,
        css_selector: str,
        domain: str,
        *,
        ranked: bool,
    ) -> ResultEntry:
        with self._lock:
            if self._state != OPEN:
                raise SessionClosed(f"cannot append to a {self._state} session")
            entry = ResultEntry(
                position=len(bucket) if ranked else -1,
                raw=raw,
                css_selector=css_selector,
                domain=domain,
            )
            bucket.append(entry)
        return entry

    def complete(self) -> None:
        """Fire the completion signal. Only the first call has an effect."""
        with self._lock:
            if self._state != OPEN:
                logger.debug("Ignoring completion of a %s session", self._state)
                return
            self._state = COMPLETE
        self._done.set()

    def cancel(self) -> None:
        with self._lock:
            if self._state == COMPLETE:
                return
            self._state = CANCELLED
            self._result.sea.clear()
            self._result.seo.clear()
            self._result.sea_unranked.clear()
        self._done.set()

    def wait(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None) -> SearchResultSet:
        """Block until the traversal completes and return the finalized result set.

        Raises :class:`TraversalTimeout` once *timeout* seconds have passed and
        :class:`ScrapeCancelled` when *cancel* is set or the session was cancelled.
        Both discard the partial results.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._done.is_set():
            if cancel is not None and cancel.is_set():
                logger.info("Cancelling scrape for keywords=%s", self.keywords)
                self.cancel()
                break
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                self.cancel()
                if self._state == COMPLETE:
                    return self._result
                raise TraversalTimeout(
                    f"traversal for keywords={self.keywords!r} did not complete within {timeout}s"
                )
            if cancel is not None:
                remaining = CANCEL_POLL_INTERVAL if remaining is None else min(CANCEL_POLL_INTERVAL, remaining)
            self._done.wait(remaining)
        if self._state == CANCELLED:
            raise ScrapeCancelled(f"scrape for keywords={self.keywords!r} was cancelled")
        return self.result
