"""Graphite telemetry sinks."""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple, Union

import graphyte

from adwaste.core.config import Settings

logger = logging.getLogger(__name__)

Value = Union[int, float]
REQUEST_TIMEOUT = 10


class GraphiteError(RuntimeError):
    """Raised when a metric cannot be delivered to carbon."""


class GraphiteSink:
    """Sends ``<prefix>.<metric> <value> <timestamp>`` to carbon through :mod:`graphyte`.

    Metrics are sent synchronously, one TCP message each, so a delivery error
    surfaces on the ``send`` call that caused it.
    """

    def __init__(self, host: str, port: int, prefix: str = "", *, timeout: float = REQUEST_TIMEOUT) -> None:
        self.host = host
        self.port = port
        self.prefix = prefix
        self._sender = graphyte.Sender(
            host,
            port=port,
            prefix=prefix or None,
            timeout=timeout,
            raise_send_errors=True,
        )

    def send(self, metric: str, value: Value, timestamp: Optional[int] = None) -> None:
        try:
            self._sender.send(metric, value, timestamp=timestamp)
        except OSError as exc:
            raise GraphiteError(f"failed to send {metric} to graphite at {self.host}:{self.port}: {exc}") from exc

    def close(self) -> None:
        return None

    def __enter__(self) -> "GraphiteSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class NopSink:
    """Logs metrics locally instead of transmitting them."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self.sent: List[Tuple[str, Value, int]] = []

    def send(self, metric: str, value: Value, timestamp: Optional[int] = None) -> None:
        path = f"{self.prefix}.{metric}" if self.prefix else metric
        ts = int(timestamp if timestamp is not None else time.time())
        self.sent.append((path, value, ts))
        logger.info("metric %s=%s", path, value)

    def close(self) -> None:
        return None

    def __enter__(self) -> "NopSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def make_sink(settings: Settings, prefix: str):
    """Real carbon sink when MODE=prod, otherwise a log-only sink."""
    if settings.transmit_metrics:
        logger.info("Metrics sent to graphite %s:%s (prefix: %s)", settings.graphite_host, settings.graphite_port, prefix)
        return GraphiteSink(settings.graphite_host, settings.graphite_port, prefix)
    logger.info("Metrics logged locally (prefix: %s)", prefix)
    return NopSink(prefix)
