"""
Process-wide configuration for the PRISM gateway.

Built once at startup by load_config() and handed to the client, the
pipeline and the upload gateway. Nothing reads os.environ after that.
"""

import os
import logging
from typing import Optional

from pydantic import BaseModel, Field

from .errors import ConfigError

logger = logging.getLogger(__name__)

# ── Defaults ─────────────────────────────────────────────────────────────────

DEFAULT_API_URL = "https://prismai.ap-southeast-1.elasticbeanstalk.com"
DEFAULT_REQUEST_TIMEOUT = 300.0   # video generation is synchronous upstream
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_MAX_UPLOAD_MB = 10

PIPELINE_MODES = ("character_video", "video_only")


class PrismConfig(BaseModel):
    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    pipeline_mode: str = "character_video"
    video_max_attempts: int = Field(default=3, ge=1)
    character_max_attempts: int = Field(default=1, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    max_upload_mb: int = Field(default=DEFAULT_MAX_UPLOAD_MB, ge=1)
    video_loop: bool = True

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/")

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigError if it was never set."""
        if not self.api_key:
            raise ConfigError(
                "PRISM API key not configured. Please set PRISM_API_KEY in environment variables."
            )
        return self.api_key


def _env(name: str, environ: dict) -> Optional[str]:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_number(name: str, raw: str, cast):
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _parse_bool(raw: str) -> bool:
    return raw.lower() in ("1", "true", "yes", "on")


def load_config(environ: Optional[dict] = None) -> PrismConfig:
    """
    Build a PrismConfig from environment variables.

    The API key may be missing here; requests report it as a ConfigError so the
    service can still boot and answer /health.
    """
    environ = os.environ if environ is None else environ
    values = {}

    api_url = _env("PRISM_API_URL", environ) or _env("NEXT_PUBLIC_PRISM_API_URL", environ)
    if api_url:
        values["api_url"] = api_url

    api_key = _env("PRISM_API_KEY", environ)
    if api_key:
        values["api_key"] = api_key

    numeric = {
        "PRISM_REQUEST_TIMEOUT": ("request_timeout", float),
        "PRISM_CONNECT_TIMEOUT": ("connect_timeout", float),
        "PRISM_VIDEO_MAX_ATTEMPTS": ("video_max_attempts", int),
        "PRISM_CHARACTER_MAX_ATTEMPTS": ("character_max_attempts", int),
        "PRISM_RETRY_BASE_DELAY": ("retry_base_delay", float),
        "PRISM_MAX_UPLOAD_MB": ("max_upload_mb", int),
    }
    for env_name, (field, cast) in numeric.items():
        raw = _env(env_name, environ)
        if raw is not None:
            values[field] = _parse_number(env_name, raw, cast)

    mode = _env("PRISM_PIPELINE_MODE", environ)
    if mode:
        if mode not in PIPELINE_MODES:
            raise ConfigError(
                f"PRISM_PIPELINE_MODE must be one of {', '.join(PIPELINE_MODES)}, got {mode!r}"
            )
        values["pipeline_mode"] = mode

    loop = _env("PRISM_VIDEO_LOOP", environ)
    if loop is not None:
        values["video_loop"] = _parse_bool(loop)

    try:
        config = PrismConfig(**values)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        raise ConfigError(f"Invalid PRISM configuration: {e}")

    logger.info(
        f"PRISM config loaded: url={config.base_url}, mode={config.pipeline_mode}, "
        f"key_set={bool(config.api_key)}, video_attempts={config.video_max_attempts}"
    )
    return config
