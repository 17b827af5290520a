"""Configuration utilities for infrastructure layer.

All settings come from the process environment. A local ``.env`` is
loaded once at application start (see ``calai.app``); values already set
in the environment win.
"""

import os
from typing import Optional

from calai.domain.analysis.image import MAX_IMAGE_BYTES


def get_openai_api_key() -> Optional[str]:
    """OpenAI secret credential, None if not configured."""
    return os.getenv("OPENAI_API_KEY") or None


def get_vision_provider_mode() -> str:
    """
    Vision provider selection.

    Returns:
        "openai" (default) or "stub"
    """
    return os.getenv("VISION_PROVIDER", "openai").strip().lower()


def get_vision_model() -> str:
    return os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")


def get_analysis_timeout_s() -> float:
    """Hard deadline for the provider call (seconds, default 25)."""
    return float(os.getenv("ANALYSIS_TIMEOUT_S", "25"))


def get_max_image_bytes() -> int:
    return int(os.getenv("MAX_IMAGE_BYTES", str(MAX_IMAGE_BYTES)))


def get_rate_limit_count() -> int:
    """Requests allowed per client in one window (default 5)."""
    return int(os.getenv("RATE_LIMIT_COUNT", "5"))


def get_rate_limit_window_s() -> int:
    """Fixed window length in seconds (default 60)."""
    return int(os.getenv("RATE_LIMIT_WINDOW_S", "60"))


def get_rate_limit_backend() -> str:
    """
    Rate limiter selection.

    Returns:
        "memory" (default, process-local) or "redis" (shared, needs REDIS_URL)
    """
    return os.getenv("RATE_LIMIT_BACKEND", "memory").strip().lower()


def get_redis_url() -> Optional[str]:
    return os.getenv("REDIS_URL") or None


def get_redis_password() -> Optional[str]:
    return os.getenv("REDIS_PASSWORD") or None


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_app_version() -> str:
    # Docker build ARG -> ENV APP_VERSION
    return os.getenv("APP_VERSION", "0.0.0-dev")


def get_api_url() -> str:
    """Base URL of the analysis server, used by the client."""
    return os.getenv("CALAI_API_URL", "http://localhost:8000").rstrip("/")


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Mask a secret for logging: first/last 4 chars only."""
    if not value:
        return None
    if len(value) > 8:
        return value[:4] + "..." + value[-4:]
    return "***"
