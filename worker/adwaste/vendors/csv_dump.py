"""Local CSV capture of emitted metrics (``DUMP=local``)."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO, Union

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class CsvDump:
    """Appends ``[timestamp, metric-key, value]`` rows, creating the file if needed."""

    def __init__(self, path: Union[str, Path], prefix: str = "") -> None:
        self.path = Path(path)
        self.prefix = prefix
        self._handle: Optional[TextIO] = None

    def _writer(self):
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8", newline="")
            logger.info("Dumping metrics to %s", str(self.path))
        return csv.writer(self._handle)

    def write(self, metric: str, value, when: Optional[datetime] = None) -> None:
        key = f"{self.prefix}.{metric}" if self.prefix else metric
        row = [(when or datetime.now()).strftime(TIMESTAMP_FORMAT), key, str(value)]
        self._writer().writerow(row)
        self._handle.flush()
        logger.debug("write -> %s", ";".join(row))

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "CsvDump":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
