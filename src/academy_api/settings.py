"""Academy API settings (Pydantic v2 + pydantic-settings)."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Literal, TypeVar

from pydantic import Field, SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---- Defaults ---------------------------------------------------------------

ALLOWED_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
ALLOWED_LOG_FORMATS = frozenset({"console", "json"})

DEFAULT_DATABASE_URL = "sqlite:///./data/academy.sqlite"
DEFAULT_CORS_ORIGINS: list[str] = []
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}

_DURATION_PATTERN = re.compile(
    r"^(?P<value>\d+(?:\.\d+)?)(?:\s*(?P<unit>[a-zA-Z]+))?$",
    re.IGNORECASE,
)
_DURATION_UNITS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


def academy_settings_config() -> SettingsConfigDict:
    """Return the standard ``BaseSettings`` config dict."""

    return SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ACADEMY_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        enable_decoding=False,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


T = TypeVar("T")


def create_settings_accessors(
    settings_type: type[T],
) -> tuple[Callable[[], T], Callable[[], T]]:
    """Create ``get_settings`` and ``reload_settings`` helpers for a settings class."""

    @lru_cache(maxsize=1)
    def _build() -> T:
        return settings_type()

    def get_settings() -> T:
        return _build()

    def reload_settings() -> T:
        _build.cache_clear()
        return _build()

    return get_settings, reload_settings


def normalize_log_format(value: str, *, env_var: str = "ACADEMY_LOG_FORMAT") -> str:
    normalized = value.strip().lower()
    if normalized not in ALLOWED_LOG_FORMATS:
        allowed = ", ".join(sorted(ALLOWED_LOG_FORMATS))
        raise ValueError(f"{env_var} must be one of: {allowed}.")
    return normalized


def normalize_log_level(value: str | None, *, env_var: str) -> str | None:
    if value is None:
        return None
    normalized = value.strip().upper()
    if normalized not in ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(ALLOWED_LOG_LEVELS))
        raise ValueError(f"{env_var} must be one of: {allowed}.")
    return normalized


def parse_duration(value: object, *, env_var: str) -> timedelta:
    """Accept a ``timedelta``, plain seconds, or a value such as ``"5m"`` or ``"7 days"``."""

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"{env_var} must be numeric seconds or a value like '15m' or '7d'.")
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        match = _DURATION_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"{env_var} must be numeric seconds or a value like '15m' or '7d'.")
        unit = match.group("unit")
        multiplier = _DURATION_UNITS.get(unit.lower()) if unit else 1
        if multiplier is None:
            raise ValueError(
                f"Unsupported duration unit for {env_var}. "
                "Use seconds (s), minutes (m), hours (h), or days (d)."
            )
        seconds = float(match.group("value")) * multiplier
    else:
        raise ValueError(f"{env_var} must be provided as a number or string.")

    if seconds <= 0:
        raise ValueError(f"{env_var} must be greater than zero.")
    return timedelta(seconds=seconds)


def parse_flag(value: object) -> bool:
    """Parse the loose boolean spellings accepted for feature toggles."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    raw = str(value).strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY or raw == "":
        return False
    raise ValueError(f"Expected a boolean flag, got {value!r}.")


# ---- Settings ---------------------------------------------------------------


class Settings(BaseSettings):
    """FastAPI settings loaded from ACADEMY_* environment variables."""

    model_config = academy_settings_config()

    # Core
    app_name: str = "Academy Marketplace API"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "test"] = "development"
    default_locale: Literal["en", "hi"] = "en"
    api_docs_enabled: bool = False
    log_format: str = "console"
    log_level: str = "INFO"
    request_log_level: str | None = None
    database_log_level: str | None = None

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = Field(3001, ge=1, le=65535)
    api_processes: int = Field(1, ge=1)
    server_cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # Database
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    database_pool_size: int = Field(5, ge=1)
    database_max_overflow: int = Field(10, ge=0)
    database_pool_timeout: int = Field(30, gt=0)
    database_auto_migrate: bool = False

    # JWT
    jwt_secret: SecretStr = Field(..., min_length=32)
    jwt_refresh_secret: SecretStr = Field(..., min_length=32)
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = Field(default=timedelta(minutes=15))
    refresh_token_ttl_web: timedelta = Field(default=timedelta(days=7))
    refresh_token_ttl_mobile: timedelta = Field(default=timedelta(days=90))
    registration_token_ttl: timedelta = Field(default=timedelta(minutes=30))

    # OTP
    otp_length: int = Field(6, ge=4, le=8)
    otp_ttl: timedelta = Field(default=timedelta(minutes=5))
    otp_max_attempts: int = Field(5, ge=1)
    otp_debug_echo: bool = False

    # SMS (Twilio REST)
    sms_enabled: bool = False
    twilio_account_sid: str | None = None
    twilio_auth_token: SecretStr | None = None
    twilio_from_number: str | None = None
    twilio_base_url: str = "https://api.twilio.com/2010-04-01"

    # Email (SMTP)
    email_enabled: bool = False
    smtp_host: str | None = None
    smtp_port: int = Field(587, ge=1, le=65535)
    smtp_username: str | None = None
    smtp_password: SecretStr | None = None
    smtp_from: str = "no-reply@example.com"
    smtp_use_tls: bool = True

    # Razorpay
    razorpay_key_id: str | None = None
    razorpay_key_secret: SecretStr | None = None
    razorpay_webhook_secret: SecretStr | None = None
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    razorpay_timeout_seconds: float = Field(10.0, gt=0)

    # Booking defaults (overridden by platform settings)
    booking_platform_fee: float = Field(0.0, ge=0)
    booking_gst_percentage: float = Field(18.0, ge=0, le=100)
    booking_gst_enabled: bool = True
    booking_commission_rate: float = Field(0.0, ge=0, le=100)
    booking_currency: str = "INR"

    # Firebase identity tokens
    firebase_project_id: str | None = None
    firebase_credentials_path: Path | None = None
    firebase_jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    # Bootstrap
    super_admin_email: str | None = None
    super_admin_password: SecretStr | None = None

    # ---- Validators ----

    @field_validator("server_cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value: object) -> object:
        if value is None:
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, list):
                    return parsed
            return [item.strip() for item in raw.split(",") if item.strip()]
        if isinstance(value, tuple):
            return list(value)
        return value

    @field_validator(
        "access_token_ttl",
        "refresh_token_ttl_web",
        "refresh_token_ttl_mobile",
        "registration_token_ttl",
        "otp_ttl",
        mode="before",
    )
    @classmethod
    def _parse_ttl(cls, value: object, info: ValidationInfo) -> timedelta:
        return parse_duration(value, env_var=f"ACADEMY_{info.field_name.upper()}")

    @field_validator("sms_enabled", "email_enabled", "booking_gst_enabled", mode="before")
    @classmethod
    def _parse_delivery_flags(cls, value: object) -> bool:
        return parse_flag(value)

    @field_validator("booking_currency", mode="before")
    @classmethod
    def _upper_currency(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        self.log_format = normalize_log_format(self.log_format)

        normalized_log_level = normalize_log_level(self.log_level, env_var="ACADEMY_LOG_LEVEL")
        if normalized_log_level is None:
            raise ValueError("ACADEMY_LOG_LEVEL must not be empty.")
        self.log_level = normalized_log_level
        self.request_log_level = normalize_log_level(
            self.request_log_level,
            env_var="ACADEMY_REQUEST_LOG_LEVEL",
        )
        self.database_log_level = normalize_log_level(
            self.database_log_level,
            env_var="ACADEMY_DATABASE_LOG_LEVEL",
        )

        if self.jwt_algorithm != "HS256":
            raise ValueError("ACADEMY_JWT_ALGORITHM must be HS256.")
        for name in ("jwt_secret", "jwt_refresh_secret"):
            secret: SecretStr = getattr(self, name)
            if len(secret.get_secret_value().encode("utf-8")) < 32:
                raise ValueError(f"ACADEMY_{name.upper()} must be at least 32 bytes.")
        if self.jwt_secret.get_secret_value() == self.jwt_refresh_secret.get_secret_value():
            raise ValueError("ACADEMY_JWT_REFRESH_SECRET must differ from ACADEMY_JWT_SECRET.")
        self.razorpay_base_url = self.razorpay_base_url.rstrip("/")
        return self

    # ---- Convenience ----

    @property
    def effective_request_log_level(self) -> str:
        return self.request_log_level or self.log_level

    @property
    def jwt_secret_value(self) -> str:
        return self.jwt_secret.get_secret_value()

    @property
    def jwt_refresh_secret_value(self) -> str:
        return self.jwt_refresh_secret.get_secret_value()

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


get_settings, reload_settings = create_settings_accessors(Settings)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "Settings",
    "get_settings",
    "parse_duration",
    "parse_flag",
    "reload_settings",
]
