"""Re-send rows of a local CSV metric dump to Graphite."""

import argparse
import csv
import logging
import time
from datetime import datetime
from typing import Union

from adwaste.core.config import get_settings
from adwaste.vendors.csv_dump import TIMESTAMP_FORMAT
from adwaste.vendors.graphite import GraphiteError, GraphiteSink

logger = logging.getLogger(__name__)


def parse_value(text: str) -> Union[int, float]:
    try:
        return int(text)
    except ValueError:
        return float(text)


def replay(path: str, sink: GraphiteSink) -> int:
    sent = 0
    with open(path, "r", encoding="utf-8", newline="") as fh:
        for row in csv.reader(fh):
            if len(row) != 3:
                logger.warning("Skipping malformed row: %s", row)
                continue
            stamp, key, value = row
            try:
                when = int(time.mktime(datetime.strptime(stamp, TIMESTAMP_FORMAT).timetuple()))
                number = parse_value(value)
            except ValueError:
                logger.warning("Skipping row with bad timestamp or value: %s", row)
                continue
            sink.send(key, number, when)
            sent += 1
    return sent


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Replay a CSV metric dump to Graphite")
    parser.add_argument("path", nargs="?", default=settings.dump_path)
    args = parser.parse_args()

    try:
        with GraphiteSink(settings.graphite_host, settings.graphite_port) as sink:
            sent = replay(args.path, sink)
    except (OSError, GraphiteError) as exc:
        logger.error("Replay of %s failed: %s", args.path, exc)
        raise SystemExit(1) from exc
    logger.info("Replayed %d rows from %s", sent, args.path)


if __name__ == "__main__":
    main()
