"""Flatten a finished scrape into named metric observations and ship them to the sinks."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, Union

from adwaste.core.domain import metric_safe
from adwaste.models import MetricObservation, SearchResultSet, WasteAssessment
from adwaste.vendors.csv_dump import CsvDump

logger = logging.getLogger(__name__)


class MetricSink(Protocol):
    def send(self, metric: str, value: Union[int, float], timestamp: Optional[int] = None) -> None:
        ...


def metric_prefix(namespace: str, device: str) -> str:
    return f"{namespace}.{device}"


def first_occurrences(result_set: SearchResultSet) -> Dict[str, int]:
    """Organic domains mapped to the position where they first appear, in order of appearance."""
    positions: Dict[str, int] = {}
    for entry in result_set.seo:
        if entry.domain not in positions:
            positions[entry.domain] = entry.position
    return positions


def paid_observations(result_set: SearchResultSet) -> List[MetricObservation]:
    """One observation per SEA entry, in position order."""
    return [MetricObservation(f"sea.{metric_safe(entry.domain)}", entry.position) for entry in result_set.sea]


def build_observations(result_set: SearchResultSet, assessment: WasteAssessment) -> List[MetricObservation]:
    observations = [
        MetricObservation("sea.count", len(result_set.sea)),
        MetricObservation("seo.count", len(result_set.seo)),
        MetricObservation("waste", 1 if assessment.waste else 0),
    ]
    if assessment.density is None:
        logger.warning("Skipping seo.density for keywords=%s: no organic results", result_set.keywords)
    else:
        observations.append(MetricObservation("seo.density", assessment.density))

    observations.extend(paid_observations(result_set))
    for domain, position in first_occurrences(result_set).items():
        observations.append(MetricObservation(f"seo.{metric_safe(domain)}", position))
    return observations


class MetricsEmitter:
    """Hands observations to a telemetry sink and, optionally, SEA rows to the CSV dump."""

    def __init__(self, sink: MetricSink, dump: Optional[CsvDump] = None) -> None:
        self.sink = sink
        self.dump = dump

    def emit(self, observations: List[MetricObservation], dumped: Sequence[MetricObservation] = ()) -> int:
        """Send *observations* to the sink and write *dumped* to the CSV dump, if any."""
        now = datetime.now()
        timestamp = int(time.mktime(now.timetuple()))
        for name, value in observations:
            self.sink.send(name, value, timestamp)
        if self.dump is not None:
            for name, value in dumped:
                self.dump.write(name, value, now)
        logger.info("Emitted %s metric observations", len(observations))
        return len(observations)

    def emit_session(self, result_set: SearchResultSet, assessment: WasteAssessment) -> List[MetricObservation]:
        observations = build_observations(result_set, assessment)
        self.emit(observations, paid_observations(result_set))
        return observations
