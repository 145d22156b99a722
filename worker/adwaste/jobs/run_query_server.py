"""HTTP entrypoint that triggers SERP ad-waste scrapes."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from flask import Flask, jsonify, request

from adwaste.core.config import DEVICES, get_settings
from adwaste.core.session import SessionError
from serp_client import SerpFetchError
from serp_worker import run_scrape

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
_executor = ThreadPoolExecutor(max_workers=4)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint reporting the ENV-based configuration."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "device_override": settings.device_override,
                "tracked_domain": settings.tracked_domain,
                "transmit_metrics": settings.transmit_metrics,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/scrape")
def enqueue_scrape() -> Any:
    """
    Enqueue a SERP scrape.
    Required JSON fields: keywords
    Optional: device ("desktop" | "mobile"), timeout (seconds)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    keywords = str(payload.get("keywords") or "").strip()
    if not keywords:
        return jsonify({"error": "missing fields: keywords"}), 400

    device = payload.get("device")
    if device is not None and device not in DEVICES:
        return jsonify({"error": f"device must be one of {', '.join(DEVICES)}"}), 400

    timeout_raw = payload.get("timeout")
    timeout = None
    if timeout_raw is not None:
        try:
            timeout = float(timeout_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "timeout must be numeric"}), 400
        if timeout <= 0:
            return jsonify({"error": "timeout must be positive"}), 400

    job_args = dict(keywords=keywords, device=device, timeout=timeout)

    logger.info("Queueing SERP scrape job: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued"}}), 202


# ---------- Internals ----------


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        run_scrape(**job_args)
    except (SessionError, SerpFetchError) as exc:
        logger.error("Scrape aborted for %s: %s", job_args, exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scrape job failed: %s", exc)


def main() -> None:
    port = int(os.getenv("PORT") or 8080)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
