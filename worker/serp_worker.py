"""Worker entrypoint: scrape a SERP, assess ad waste for the tracked domain and emit metrics."""

from __future__ import annotations

import argparse
import json
import logging
import threading
from contextlib import ExitStack
from dataclasses import asdict
from typing import Any, Dict, Optional

from adwaste.core.config import DEVICES, ConfigError, Settings, get_settings
from adwaste.core.session import SessionError
from adwaste.etl.analyze import assess_waste, describe_ranking
from adwaste.etl.metrics import MetricSink, MetricsEmitter, metric_prefix
from adwaste.vendors.csv_dump import CsvDump
from adwaste.vendors.graphite import make_sink
from serp_client import SerpFetchError, scrape_serp

logger = logging.getLogger(__name__)


def run_scrape(
    keywords: str,
    *,
    device: Optional[str] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    settings: Optional[Settings] = None,
    sink: Optional[MetricSink] = None,
) -> Dict[str, Any]:
    """Full pipeline: scrape the SERP, compute the waste assessment, then emit metrics.

    Session-level failures (device mismatch, timeout, cancellation) propagate
    before anything is emitted.
    """
    settings = settings or get_settings()
    logger.info("Starting SERP scrape for keywords=%s device=%s", keywords, device or settings.device_override)

    result_set = scrape_serp(keywords, settings, device=device, timeout=timeout, cancel=cancel)
    for line in result_set.summary_lines():
        logger.info(line)

    assessment = assess_waste(
        result_set,
        settings.tracked_domain,
        settings.parent_domain,
        density_includes_parent=settings.density_includes_parent,
    )
    logger.info("%s (waste=%s)", describe_ranking(assessment), assessment.waste)

    prefix = metric_prefix(settings.metric_namespace, result_set.device)
    with ExitStack() as stack:
        if sink is None:
            sink = stack.enter_context(make_sink(settings, prefix))
        dump = None
        if settings.dump_enabled:
            dump = stack.enter_context(CsvDump(settings.dump_path, prefix))
        observations = MetricsEmitter(sink, dump).emit_session(result_set, assessment)

    return {
        "result": result_set.to_dict(),
        "assessment": asdict(assessment),
        "observations": [list(observation) for observation in observations],
    }


def _parse_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SERP paid vs organic overlap worker.")
    parser.add_argument("keywords", help="Search query, e.g. 'billet train paris lyon'")
    parser.add_argument("--device", choices=DEVICES, default=None, help="Force a desktop or mobile user agent")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the traversal")
    parser.add_argument("--json", action="store_true", help="Print the result set and assessment as JSON")
    return parser.parse_args()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = _parse_cli_args()
    try:
        output = run_scrape(args.keywords, device=args.device, timeout=args.timeout)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (SessionError, SerpFetchError) as exc:
        logger.error("Scrape aborted: %s", exc)
        raise SystemExit(1) from exc
    except Exception as exc:  # pragma: no cover - CLI fallback
        logger.error("SERP worker failed: %s", exc, exc_info=True)
        raise SystemExit(1) from exc
    if args.json:
        print(json.dumps(output, ensure_ascii=False, indent=2))
