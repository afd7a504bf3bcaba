# path: cable-fault-map/app/config.py

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


def _csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # Remote cable data service
    cable_api_base_url: str = os.getenv("CABLE_API_BASE_URL", "http://localhost:8081")
    # No timeout unless configured; a hung request is superseded by the next poll tick.
    cable_api_timeout: float | None = _optional_float(os.getenv("CABLE_API_TIMEOUT"))

    # Polling
    poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "2.0"))

    # Map view
    fly_to_zoom: float = float(os.getenv("FLY_TO_ZOOM", "7.7"))
    fly_to_duration_seconds: float = float(os.getenv("FLY_TO_DURATION_SECONDS", "0.5"))
    popup_close_delay_seconds: float = float(os.getenv("POPUP_CLOSE_DELAY_SECONDS", "0.1"))

    # Local fallback cache for simulated faults
    fault_cache_path: str = os.getenv("FAULT_CACHE_PATH", "data/cable_cuts.json")
    fault_cache_key: str = os.getenv("FAULT_CACHE_KEY", "cableCuts")

    # Dashboard
    enabled_segments: tuple[str, ...] = _csv(os.getenv("ENABLED_SEGMENTS"))
    allow_cut_delete: bool = _flag(os.getenv("ALLOW_CUT_DELETE"))
    dashboard_autostart: bool = _flag(os.getenv("DASHBOARD_AUTOSTART", "true"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _flag(os.getenv("LOG_JSON"))


settings = Settings()
