"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEVICES = ("desktop", "mobile")
_TRUTHY = {"1", "true", "yes"}


class ConfigError(RuntimeError):
    """Raised when an environment value cannot be used."""


@dataclass(frozen=True)
class Settings:
    device_override: Optional[str] = None
    mode: str = ""
    dump: str = ""
    dump_path: str = "result.csv"
    graphite_host: str = "10.98.208.116"
    graphite_port: int = 52630
    metric_namespace: str = "DT.hackhaton.2018.adwords"
    tracked_domain: str = "www.oui.sncf"
    parent_domain: Optional[str] = "www.sncf.com"
    density_includes_parent: bool = False
    ad_label: str = "Annonce"
    legacy_ad_scan: bool = False
    search_base_url: str = "http://www.google.com/search"
    allowed_domains: Tuple[str, ...] = ("google.com", "www.google.com")
    scrape_timeout: float = 30.0
    worker_port: int = 9000

    @property
    def transmit_metrics(self) -> bool:
        return self.mode == "prod"

    @property
    def dump_enabled(self) -> bool:
        return self.dump == "local"


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _get_bool(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in _TRUTHY


def parse_device(raw: Optional[str]) -> Optional[str]:
    """Validate a device override; empty means "not forced"."""
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value not in DEVICES:
        raise ConfigError(f"DEVICE must be one of {', '.join(DEVICES)}, got {raw!r}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    defaults = Settings()
    device_override = parse_device(os.getenv("DEVICE"))
    mode = os.getenv("MODE", "").strip().lower()
    dump = os.getenv("DUMP", "").strip().lower()
    parent_raw = os.getenv("PARENT_DOMAIN")
    parent_domain = defaults.parent_domain if parent_raw is None else (parent_raw.strip().lower() or None)
    allowed_raw = os.getenv("ALLOWED_DOMAINS")
    if allowed_raw:
        allowed_domains = tuple(part.strip().lower() for part in allowed_raw.split(",") if part.strip())
    else:
        allowed_domains = defaults.allowed_domains

    settings = Settings(
        device_override=device_override,
        mode=mode,
        dump=dump,
        dump_path=os.getenv("DUMP_PATH") or defaults.dump_path,
        graphite_host=os.getenv("GRAPHITE_HOST") or defaults.graphite_host,
        graphite_port=_get_int("GRAPHITE_PORT", defaults.graphite_port),
        metric_namespace=os.getenv("METRIC_NAMESPACE") or defaults.metric_namespace,
        tracked_domain=(os.getenv("TRACKED_DOMAIN") or defaults.tracked_domain).strip().lower(),
        parent_domain=parent_domain,
        density_includes_parent=_get_bool("DENSITY_INCLUDES_PARENT"),
        ad_label=os.getenv("AD_LABEL") or defaults.ad_label,
        legacy_ad_scan=_get_bool("LEGACY_AD_SCAN"),
        search_base_url=os.getenv("SEARCH_BASE_URL") or defaults.search_base_url,
        allowed_domains=allowed_domains,
        scrape_timeout=_get_float("SCRAPE_TIMEOUT", defaults.scrape_timeout),
        worker_port=_get_int("WORKER_PORT", defaults.worker_port),
    )

    if mode and mode != "prod":
        logger.warning("MODE=%s is not 'prod'; metrics will only be logged locally.", mode)
    if dump and dump != "local":
        logger.warning("DUMP=%s is not 'local'; CSV dump stays disabled.", dump)
    if settings.transmit_metrics and os.getenv("GRAPHITE_HOST") is None:
        logger.warning("GRAPHITE_HOST is not set; sending metrics to %s.", settings.graphite_host)

    return settings
