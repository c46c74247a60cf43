"""Forwarder configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars,
which is how Lambda functions receive their settings.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from .addresses import parse_address
from .errors import AddressError


class S3Config(BaseSettings):
    """S3 bucket the SES receipt rule deposits raw messages into."""

    model_config = {"env_prefix": "S3_", "populate_by_name": True}

    bucket: str = Field(
        validation_alias=AliasChoices("S3_BUCKET", "SOURCE_CONTAINER"),
        description="S3 bucket holding the raw inbound messages",
    )
    prefix: str = Field(
        default="",
        description="Object key prefix configured on the SES receipt rule",
    )
    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (e.g. for MinIO)",
    )
    chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Bytes per read when streaming the message body",
    )


class SESConfig(BaseSettings):
    """SES settings for raw message submission."""

    model_config = {"env_prefix": "SES_"}

    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom SES endpoint URL (e.g. for localstack)",
    )
    configuration_set: str | None = Field(
        default=None,
        description="SES configuration set applied to forwarded messages",
    )


class ForwarderConfig(BaseSettings):
    """Root configuration for the forwarder process.

    Nested configs are populated from their own env-var prefixes.
    """

    model_config = {"env_prefix": ""}

    forward_to: str = Field(description="Mailbox every inbound message is forwarded to")
    log_level: str = Field(default="INFO", description="Root log level name")
    log_json: bool = Field(default=True, description="Render log lines as JSON")

    s3: S3Config = Field(default_factory=S3Config)
    ses: SESConfig = Field(default_factory=SESConfig)

    @field_validator("forward_to")
    @classmethod
    def _check_forward_to(cls, value: str) -> str:
        try:
            parse_address(value)
        except AddressError as exc:
            raise ValueError(str(exc)) from exc
        return value
