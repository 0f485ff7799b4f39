# provider_gateway/config.py
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import BaseModel, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import provider_gateway.common.bootstrap_env  # noqa: F401  (loads .env before settings are read)
from provider_gateway.resilience.errors import ConfigurationError
from provider_gateway.voip.soap_client import DEFAULT_ENDPOINT, DEFAULT_NAMESPACE


class VoipApiSettings(BaseSettings):
    """VoIP Innovations back-office credentials and call policy (VOIP_*)."""

    model_config = SettingsConfigDict(env_prefix="VOIP_", env_file=".env", extra="ignore", frozen=True)

    login: str = ""
    secret: str = ""
    request_timeout_seconds: int = 30
    max_retry_attempts: int = 3
    default_campaign_id: str = "1"
    endpoint_url: str = DEFAULT_ENDPOINT
    namespace: str = DEFAULT_NAMESPACE
    circuit_failure_threshold: int = 5
    circuit_recovery_seconds: float = 30.0

    @model_validator(mode="after")
    def check_bounds(self) -> "VoipApiSettings":
        errors: List[str] = []
        if not self.login:
            errors.append("Login cannot be empty.")
        if not self.secret:
            errors.append("Secret cannot be empty.")
        if self.request_timeout_seconds <= 0:
            errors.append("RequestTimeoutSeconds must be greater than 0.")
        if self.max_retry_attempts <= 0:
            errors.append("MaxRetryAttempts must be greater than 0.")
        if errors:
            raise ValueError(" ".join(errors))
        return self


class BooksySettings(BaseSettings):
    """Booksy business API access (BOOKSY_*)."""

    model_config = SettingsConfigDict(env_prefix="BOOKSY_", env_file=".env", extra="ignore", frozen=True)

    base_url: str = "https://us.booksy.com/api/us/2/"
    api_key: str = ""
    access_token: str = ""
    request_timeout_seconds: int = 30
    max_retry_attempts: int = 3
    circuit_failure_threshold: int = 5
    circuit_recovery_seconds: float = 30.0

    @model_validator(mode="after")
    def check_keys(self) -> "BooksySettings":
        if not self.api_key or not self.access_token:
            raise ValueError("API keys are missing from configuration.")
        if self.request_timeout_seconds <= 0 or self.max_retry_attempts <= 0:
            raise ValueError("Booksy timeout and retry attempts must be greater than 0.")
        return self


class AppSettings(BaseSettings):
    """Token issuing and web settings (APP_*)."""

    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore", frozen=True)

    secret: str = ""
    issuer: str = "provider-gateway"
    audience: str = "provider-gateway-dashboard"
    access_token_validity_in_days: int = 1
    refresh_token_validity_in_days: int = 7
    cors_origins: List[str] = ["http://localhost:58795"]
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_secret(self) -> "AppSettings":
        if not self.secret:
            raise ValueError("AppSettings: Secret cannot be empty.")
        return self


class Settings(BaseModel):
    voip: VoipApiSettings
    booksy: BooksySettings
    app: AppSettings


@lru_cache
def get_settings() -> Settings:
    """Load and validate every settings section once; raise ConfigurationError on bad input."""
    try:
        return Settings(voip=VoipApiSettings(), booksy=BooksySettings(), app=AppSettings())
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
