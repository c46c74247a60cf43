"""S3 access for the raw messages an SES receipt rule stores.

The object body is handed out as a stream of chunks, never read whole,
and the underlying HTTP stream is closed on every exit path.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .config import S3Config
from .errors import RetrievalError

logger = structlog.get_logger()


class S3MessageStore:
    """Open raw RFC 822 messages by SES message ID."""

    def __init__(self, config: S3Config, client: Any = None) -> None:
        self._config = config
        self._client = client

    def start(self) -> None:
        """Create the boto3 S3 client unless one was injected."""
        if self._client is not None:
            return
        kwargs: dict = {"region_name": self._config.region}
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        self._client = boto3.client("s3", **kwargs)
        logger.info("s3_store_started", bucket=self._config.bucket)

    def stop(self) -> None:
        self._client = None
        logger.info("s3_store_stopped")

    def key_for(self, message_id: str) -> str:
        """Object key SES used for *message_id* under the configured prefix."""
        prefix = self._config.prefix.strip("/")
        return f"{prefix}/{message_id}" if prefix else message_id

    @contextmanager
    def open_message(self, message_id: str) -> Iterator[Iterator[bytes]]:
        """Yield the raw message as an iterator of byte chunks.

        Raises :class:`RetrievalError` if the object is missing, access is
        denied, S3 is unreachable, or the stream breaks while reading.
        """
        assert self._client is not None, "S3 client not started"
        bucket = self._config.bucket
        key = self.key_for(message_id)
        uri = f"s3://{bucket}/{key}"

        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise RetrievalError(
                f"S3 GetObject failed for {uri}: {exc}", message_id=message_id
            ) from exc

        body = response["Body"]
        logger.info("raw_message_opened", uri=uri, size=response.get("ContentLength"))
        try:
            yield _read_chunks(body, self._config.chunk_size, uri, message_id)
        finally:
            body.close()


def _read_chunks(body: Any, chunk_size: int, uri: str, message_id: str) -> Iterator[bytes]:
    while True:
        try:
            chunk = body.read(chunk_size)
        except (BotoCoreError, ClientError) as exc:
            raise RetrievalError(
                f"reading {uri} failed: {exc}", message_id=message_id
            ) from exc
        if not chunk:
            return
        yield chunk
