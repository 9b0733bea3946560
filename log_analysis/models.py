# log_analysis/models.py
"""
Pydantic models for the inbound push envelope and the log record it carries,
plus the settings class shared by every pipeline component.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Manages env vars using Pydantic BaseSettings, reading a local .env file too.

    Credentials are optional here on purpose: a component raises ConfigError
    only when it actually needs a value that is missing.
    """
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        frozen=True,
        populate_by_name=True,
    )

    # Slack
    slack_bot_token: Optional[str] = Field(None, alias='SLACK_BOT_TOKEN')
    slack_channel: Optional[str] = Field(None, alias='SLACK_CHANNEL')

    # GitHub
    github_token: Optional[str] = Field(None, alias='GITHUB_TOKEN')
    github_repository: Optional[str] = Field(None, alias='GITHUB_REPOSITORY')
    github_branch: str = Field("main", alias='GITHUB_BRANCH')
    github_api_url: str = Field("https://api.github.com", alias='GITHUB_API_URL')

    # Anthropic
    anthropic_api_key: Optional[str] = Field(None, alias='ANTHROPIC_API_KEY')
    anthropic_model: str = Field("claude-sonnet-4-20250514", alias='ANTHROPIC_MODEL')
    anthropic_max_tokens: int = Field(2048, alias='ANTHROPIC_MAX_TOKENS')

    # None means outbound calls may block forever.
    http_timeout_seconds: Optional[float] = Field(None, alias='HTTP_TIMEOUT_SECONDS')

    # Server
    port: int = Field(8080, alias='PORT')
    log_level: str = Field("INFO", alias='LOG_LEVEL')


class _NullAsEmptyModel(BaseModel):
    """Reads an explicit JSON null the same way as a missing field, except for Optional fields."""

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is not None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required() or (field.default is None and field.default_factory is None):
            return value
        return field.get_default(call_default_factory=True)


class ResourceDescriptor(_NullAsEmptyModel):
    """The monitored resource that emitted the log entry."""
    model_config = ConfigDict(frozen=True)

    type: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)


class LogRecord(_NullAsEmptyModel):
    """
    A single structured log entry as exported by the log sink.
    Fields missing from the JSON, or set to null, fall back to empty values.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    severity: str = ""
    text_payload: str = Field("", alias='textPayload')
    json_payload: Optional[Dict[str, Any]] = Field(None, alias='jsonPayload')
    # kept as the source sent it, never reparsed
    timestamp: str = ""
    resource: ResourceDescriptor = Field(default_factory=ResourceDescriptor)
    labels: Dict[str, str] = Field(default_factory=dict)


class PushMessage(BaseModel):
    """The `message` object of a Pub/Sub push request."""
    data: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_id: Optional[str] = Field(None, alias='messageId')
    publish_time: Optional[str] = Field(None, alias='publishTime')


class PushEnvelope(BaseModel):
    """Outer JSON wrapper delivered to the push endpoint."""
    message: PushMessage
    subscription: Optional[str] = None
