"""
Centralized configuration with environment variable overrides.

Business hours, collaborator backends, and timeouts are configurable
here. Nothing is hardcoded in the conversation or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

CONSISTENCY_MODES = ("strict", "lenient")
CALENDAR_BACKENDS = ("memory", "google")
STORE_BACKENDS = ("memory", "supabase")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Opening hours and the single operating time zone."""

    name: str = os.getenv("BUSINESS_NAME", "Barbearia Central")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")
    opening_hour: int = _safe_int("OPENING_HOUR", "8")
    closing_hour: int = _safe_int("CLOSING_HOUR", "18")
    slot_minutes: int = _safe_int("SLOT_MINUTES", "60")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class CalendarConfig:
    """Shared calendar collaborator settings."""

    backend: str = os.getenv("CALENDAR_BACKEND", "memory")
    calendar_id: str = os.getenv("CALENDAR_ID", "primary")
    credentials_file: str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
    oauth_token_file: str = os.getenv("GOOGLE_OAUTH_TOKEN", "")


@dataclass(frozen=True)
class StoreConfig:
    """Durable booking record store settings."""

    backend: str = os.getenv("STORE_BACKEND", "memory")
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    table: str = os.getenv("BOOKINGS_TABLE", "bookings")


@dataclass(frozen=True)
class CollaboratorConfig:
    """Timeouts and consistency policy for calendar/store calls."""

    timeout_sec: float = _safe_float("COLLABORATOR_TIMEOUT", "10.0")
    consistency_mode: str = os.getenv("CONSISTENCY_MODE", "strict")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    collaborators: CollaboratorConfig = field(default_factory=CollaboratorConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    bot_name: str = os.getenv("BOT_NAME", "salon-booking-bot")
    # seconds of silence before an unfinished chat is dropped; 0 disables eviction
    session_idle_sec: float = _safe_float("SESSION_IDLE_TIMEOUT", "3600")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    biz = config.business
    if not 0 <= biz.opening_hour <= 23:
        raise ValueError(f"OPENING_HOUR must be between 0 and 23, got {biz.opening_hour}")
    if not biz.opening_hour <= biz.closing_hour <= 23:
        raise ValueError(
            f"CLOSING_HOUR must be between OPENING_HOUR and 23, got {biz.closing_hour}"
        )
    if biz.slot_minutes < 1:
        raise ValueError(f"SLOT_MINUTES must be >= 1, got {biz.slot_minutes}")
    try:
        ZoneInfo(biz.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown BUSINESS_TIMEZONE: {biz.timezone!r}") from None

    if config.collaborators.timeout_sec <= 0:
        raise ValueError(
            f"COLLABORATOR_TIMEOUT must be > 0, got {config.collaborators.timeout_sec}"
        )
    if config.collaborators.consistency_mode not in CONSISTENCY_MODES:
        raise ValueError(
            f"CONSISTENCY_MODE must be one of {CONSISTENCY_MODES}, "
            f"got {config.collaborators.consistency_mode!r}"
        )

    if config.session_idle_sec < 0:
        raise ValueError(f"SESSION_IDLE_TIMEOUT must be >= 0, got {config.session_idle_sec}")

    if config.calendar.backend not in CALENDAR_BACKENDS:
        raise ValueError(
            f"CALENDAR_BACKEND must be one of {CALENDAR_BACKENDS}, got {config.calendar.backend!r}"
        )
    if config.store.backend not in STORE_BACKENDS:
        raise ValueError(
            f"STORE_BACKEND must be one of {STORE_BACKENDS}, got {config.store.backend!r}"
        )
    if config.store.backend == "supabase" and not (
        config.store.supabase_url and config.store.supabase_key
    ):
        raise ValueError("STORE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_KEY")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
