"""SES submission of composed raw messages."""

from __future__ import annotations

from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .config import SESConfig
from .errors import DeliveryError

logger = structlog.get_logger()


class SESRelay:
    """Send fully-formed RFC 822 messages with ``SendRawEmail``.

    Envelope recipients are taken by SES from the message's own headers.
    Nothing is retried here; redelivery belongs to the event source.
    """

    def __init__(self, config: SESConfig, client: Any = None) -> None:
        self._config = config
        self._client = client

    def start(self) -> None:
        """Create the boto3 SES client unless one was injected."""
        if self._client is not None:
            return
        kwargs: dict = {"region_name": self._config.region}
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        self._client = boto3.client("ses", **kwargs)
        logger.info("ses_relay_started", region=self._config.region)

    def stop(self) -> None:
        self._client = None
        logger.info("ses_relay_stopped")

    def send_raw(self, data: bytes) -> str:
        """Submit *data* as one raw message.  Returns the SES message ID."""
        assert self._client is not None, "SES client not started"
        kwargs: dict = {"RawMessage": {"Data": data}}
        if self._config.configuration_set:
            kwargs["ConfigurationSetName"] = self._config.configuration_set

        try:
            response = self._client.send_raw_email(**kwargs)
        except (BotoCoreError, ClientError) as exc:
            raise DeliveryError(f"SES SendRawEmail failed: {exc}") from exc

        ses_message_id: str = response["MessageId"]
        logger.debug("raw_message_sent", ses_message_id=ses_message_id, size=len(data))
        return ses_message_id
