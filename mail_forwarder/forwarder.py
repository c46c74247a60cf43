"""MailForwarder: fetch → parse → resolve → compose → submit, per record.

Records are processed one at a time.  The first failing record aborts
the batch and its error is re-raised to the caller, whose redelivery
policy is the only retry mechanism.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from .addresses import resolve_addresses
from .composer import compose
from .config import ForwarderConfig
from .errors import ForwardingError
from .models import ForwardStage, InboundRecord
from .parser import MessageParser
from .s3 import S3MessageStore
from .ses import SESRelay

logger = structlog.get_logger()


class MailForwarder:
    """Forward inbound SES messages to the configured mailbox.

    The blob store and mail relay are injected so tests (and other
    hosts) can supply their own.  Use :meth:`from_config` to get the
    boto3-backed pair.
    """

    def __init__(
        self,
        config: ForwarderConfig,
        store: S3MessageStore,
        relay: SESRelay,
        parser: MessageParser | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._relay = relay
        self._parser = parser or MessageParser()

    @classmethod
    def from_config(cls, config: ForwarderConfig) -> MailForwarder:
        """Build the forwarder with started S3 and SES clients."""
        store = S3MessageStore(config.s3)
        relay = SESRelay(config.ses)
        store.start()
        relay.start()
        return cls(config, store, relay)

    def close(self) -> None:
        self._store.stop()
        self._relay.stop()

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def handle(self, records: Iterable[InboundRecord]) -> int:
        """Forward every record in order.  Returns the number forwarded."""
        forwarded = 0
        for record in records:
            self.forward(record)
            forwarded += 1
        logger.info("mail_batch_forwarded", forwarded=forwarded)
        return forwarded

    # ------------------------------------------------------------------
    # Single record
    # ------------------------------------------------------------------

    def forward(self, record: InboundRecord) -> str:
        """Forward one stored message.  Returns the SES message ID.

        The stage reached is local to the call; on failure it is recorded
        on the raised error as ``pipeline_stage``.
        """
        with structlog.contextvars.bound_contextvars(message_id=record.message_id):
            logger.info(
                "mail_forward_started",
                source=record.source,
                destination=record.destination,
            )
            stage = ForwardStage.FETCHING
            try:
                # The S3 stream stays open until the body has been copied.
                with self._store.open_message(record.message_id) as raw:
                    stage = ForwardStage.PARSING
                    parsed = self._parser.parse(raw)
                    logger.debug("mail_parsed", headers=len(parsed.headers))

                    stage = ForwardStage.RESOLVING
                    addresses = resolve_addresses(parsed.headers, self._config.forward_to)

                    stage = ForwardStage.COMPOSING
                    data = compose(parsed, addresses)

                stage = ForwardStage.SUBMITTING
                ses_message_id = self._relay.send_raw(data)
            except ForwardingError as exc:
                exc.pipeline_stage = stage
                if exc.message_id is None:
                    exc.message_id = record.message_id
                logger.error(
                    "mail_forward_failed",
                    stage=stage.value,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise

            logger.info(
                "mail_forwarded",
                stage=ForwardStage.DONE.value,
                from_address=addresses.from_address,
                to_address=addresses.to_address,
                reply_to=addresses.reply_to,
                ses_message_id=ses_message_id,
                size=len(data),
            )
            return ses_message_id
