"""Data models for inbound SES notifications and the forwarding pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ForwardStage(str, Enum):
    """Position of one record in the forwarding state machine."""

    FETCHING = "fetching"
    PARSING = "parsing"
    RESOLVING = "resolving"
    COMPOSING = "composing"
    SUBMITTING = "submitting"
    DONE = "done"
    FAILED = "failed"


class InboundRecord(BaseModel):
    """One SES receipt notification (the ``ses.mail`` block of a record).

    The raw message itself lives in S3 under ``message_id``; the
    notification only carries the envelope.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    message_id: str = Field(
        alias="messageId",
        min_length=1,
        description="SES message ID, also the S3 object key of the raw message",
    )
    source: str = Field(default="", description="Envelope sender (MAIL FROM)")
    destination: list[str] = Field(
        default_factory=list,
        description="Envelope recipients (RCPT TO)",
    )
    timestamp: datetime | None = Field(
        default=None,
        description="Time SES received the message (UTC)",
    )

    @classmethod
    def from_ses_record(cls, record: dict[str, Any]) -> InboundRecord:
        """Build from one entry of an SES event's ``Records`` list."""
        return cls.model_validate(record.get("ses", {}).get("mail"))


def parse_event(event: dict[str, Any]) -> list[InboundRecord]:
    """Extract every inbound record from an SES Lambda event.

    An event without ``Records`` is an empty batch.
    """
    return [InboundRecord.from_ses_record(record) for record in event.get("Records") or []]


@dataclass(frozen=True)
class ResolvedAddresses:
    """Outbound address headers computed for one forwarded message."""

    from_address: str
    to_address: str
    reply_to: str
