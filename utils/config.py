"""Environment-backed settings.

Values are read once at startup (after `load_dotenv()` in `main.py`) into an
immutable `Settings` instance that is attached to `app.state`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SCOUT_MODEL = "gpt-5-mini"
DEFAULT_SNIPER_MODEL = "gpt-5"
DEFAULT_CONFIDENCE_THRESHOLD = 85
DEFAULT_BUCKET = "vehicle_images"
DEFAULT_AFFILIATE_TAG = "visualfitment-20"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the service.

    Attributes:
        openai_api_key: Key for the inference API. Required to serve requests.
        scout_model: Model id used for the cheap screening pass.
        sniper_model: Model id used when the scout is not confident enough.
        confidence_threshold: Scout scores at or below this value escalate.
        enable_code_execution: Request the code interpreter tool on each call.
        fetch_timeout: Seconds allowed for downloading one image.
        inference_timeout: Seconds allowed for one inference call.
        storage_url: Base URL of the object store project.
        storage_service_key: Key used to mint signed upload URLs.
        storage_bucket: Bucket receiving uploads.
        database_dir: Directory holding the SQLite file.
        affiliate_tag: Tag appended to outbound shopping links.
        log_level: Root log level name.
    """

    openai_api_key: Optional[str] = None
    scout_model: str = DEFAULT_SCOUT_MODEL
    sniper_model: str = DEFAULT_SNIPER_MODEL
    confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD
    enable_code_execution: bool = True
    fetch_timeout: float = 15.0
    inference_timeout: float = 60.0
    storage_url: Optional[str] = None
    storage_service_key: Optional[str] = None
    storage_bucket: str = DEFAULT_BUCKET
    database_dir: Optional[str] = None
    affiliate_tag: str = DEFAULT_AFFILIATE_TAG
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if env is None else env
        return cls(
            openai_api_key=_blank_to_none(env.get("OPENAI_API_KEY")),
            scout_model=env.get("SCOUT_MODEL") or DEFAULT_SCOUT_MODEL,
            sniper_model=env.get("SNIPER_MODEL") or DEFAULT_SNIPER_MODEL,
            confidence_threshold=_parse_int(env, "CONFIDENCE_THRESHOLD", DEFAULT_CONFIDENCE_THRESHOLD),
            enable_code_execution=_parse_bool(env.get("ENABLE_CODE_EXECUTION"), default=True),
            fetch_timeout=_parse_float(env, "FETCH_TIMEOUT_SECONDS", 15.0),
            inference_timeout=_parse_float(env, "INFERENCE_TIMEOUT_SECONDS", 60.0),
            storage_url=_blank_to_none(env.get("STORAGE_URL")),
            storage_service_key=_blank_to_none(env.get("STORAGE_SERVICE_KEY")),
            storage_bucket=env.get("STORAGE_BUCKET") or DEFAULT_BUCKET,
            database_dir=_blank_to_none(env.get("DATABASE_DIR")),
            affiliate_tag=env.get("AFFILIATE_TAG") or DEFAULT_AFFILIATE_TAG,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value
