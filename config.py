"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The GeeTest secret is held as a SecretStr so it never shows up in reprs,
logs or serialized settings. Settings objects are built once at startup and
treated as read-only afterwards.
"""

from __future__ import annotations

import ipaddress
from typing import Literal, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from errors import ConfigurationError
from shared.crypto import DigestMod


class GeetestSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    geetest_captcha_id: str = Field(min_length=1)
    geetest_captcha_secret: SecretStr
    geetest_digest_mod: DigestMod = DigestMod.MD5

    geetest_register_url: str = "https://api.geetest.com/register.php"
    geetest_validate_url: str = "https://api.geetest.com/validate.php"
    geetest_status_url: str = "https://bypass.geetest.com/v1/bypass_status.php"

    # Enforced by the transport, never by the verification flow itself
    geetest_http_timeout: float = Field(default=5.0, gt=0)

    # One wire encoding per deployment for POST /validate
    geetest_validate_encoding: Literal["form", "json"] = "form"

    @field_validator("geetest_captcha_secret")
    @classmethod
    def _secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("captcha secret must not be blank")
        return value

    @property
    def captcha_id(self) -> str:
        return self.geetest_captcha_id

    @property
    def captcha_secret(self) -> str:
        return self.geetest_captcha_secret.get_secret_value()

    @property
    def digest_mod(self) -> DigestMod:
        return self.geetest_digest_mod


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    bind_host: str = "127.0.0.1"
    bind_port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("bind_host")
    @classmethod
    def _host_is_ip_address(cls, value: str) -> str:
        try:
            ipaddress.ip_address(value)
        except ValueError:
            raise ValueError(f"invalid bind address: {value!r}") from None
        return value


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "geetest-relay"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    geetest: Optional[GeetestSettings] = None
    server: Optional[ServerSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.geetest is None:
            self.geetest = GeetestSettings()
        if self.server is None:
            self.server = ServerSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def load_settings() -> AppSettings:
    """Build AppSettings from the environment.

    Raises:
        ConfigurationError: if any setting is missing or invalid. This is
            fatal and must happen before the first request is served.
    """
    try:
        # Sub-configs built explicitly so errors carry their own field names
        return AppSettings(geetest=GeetestSettings(), server=ServerSettings())
    except ValidationError as e:
        fields = sorted(
            ".".join(str(part) for part in err["loc"]) or err["type"]
            for err in e.errors()
        )
        # Input values are left out: they may include the captcha secret
        raise ConfigurationError(
            f"invalid configuration: {', '.join(fields)}"
        ) from None
