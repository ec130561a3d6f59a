"""Process configuration: secrets and runtime settings read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)


class ConfigError(Exception):
    """Raised when a required environment variable is missing or invalid."""

    def __init__(self, variable: str, reason: str = "is not set") -> None:
        self.variable = variable
        super().__init__(f"Environment variable {variable} {reason}")


class Credentials(BaseModel):
    """The three secrets the bridge needs. Masked in reprs and dumps."""

    model_config = ConfigDict(frozen=True)

    channel_secret: SecretStr
    channel_access_token: SecretStr
    transcription_api_key: SecretStr

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Credentials:
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name, variable in (
            ("channel_secret", "CHANNEL_SECRET"),
            ("channel_access_token", "CHANNEL_ACCESS_TOKEN"),
            ("transcription_api_key", "TRANSCRIPTION_API_KEY"),
        ):
            value = env.get(variable, "")
            if not value:
                raise ConfigError(variable)
            values[field_name] = value
        return cls(**values)  # type: ignore[arg-type]


class Settings(BaseModel):
    """Non-secret runtime settings."""

    model_config = ConfigDict(frozen=True)

    webhook_path: str = "/webhook"
    line_api_base: str = "https://api.line.me"
    line_data_api_base: str = "https://api-data.line.me"
    transcription_api_base: str = "https://api.elevenlabs.io"
    transcription_model_id: str = "scribe_v1"
    http_timeout_seconds: float = Field(default=30.0, gt=0)
    transcription_timeout_seconds: float = Field(default=120.0, gt=0)
    # LINE accepts 5..60 in steps of 5; None leaves the platform default
    loading_seconds: int | None = None
    audit_log_path: str | None = None

    @field_validator("webhook_path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("webhook_path must start with '/'")
        return value

    @field_validator("loading_seconds")
    @classmethod
    def _loading_seconds_in_range(cls, value: int | None) -> int | None:
        if value is not None and (value < 5 or value > 60 or value % 5):
            raise ValueError("loading_seconds must be a multiple of 5 between 5 and 60")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for field_name, variable in _SETTINGS_ENV.items():
            value = env.get(variable)
            if value:
                overrides[field_name] = value
        try:
            return cls.model_validate(overrides)
        except ValidationError as exc:
            first = exc.errors()[0]
            field_name = str(first["loc"][0]) if first["loc"] else ""
            variable = _SETTINGS_ENV.get(field_name, field_name)
            raise ConfigError(variable, f"is invalid: {first['msg']}") from exc


_SETTINGS_ENV: dict[str, str] = {
    "webhook_path": "WEBHOOK_PATH",
    "line_api_base": "LINE_API_BASE",
    "line_data_api_base": "LINE_DATA_API_BASE",
    "transcription_api_base": "TRANSCRIPTION_API_BASE",
    "transcription_model_id": "TRANSCRIPTION_MODEL_ID",
    "http_timeout_seconds": "HTTP_TIMEOUT_SECONDS",
    "transcription_timeout_seconds": "TRANSCRIPTION_TIMEOUT_SECONDS",
    "loading_seconds": "LOADING_SECONDS",
    "audit_log_path": "AUDIT_LOG_PATH",
}
