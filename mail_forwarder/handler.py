"""AWS Lambda entry point for SES receipt-rule invocations."""

from __future__ import annotations

from typing import Any

import structlog

from .config import ForwarderConfig
from .forwarder import MailForwarder
from .logging import setup_logging
from .models import parse_event

logger = structlog.get_logger()

# One forwarder per Lambda execution environment, built on first use.
_forwarder: MailForwarder | None = None


def get_forwarder() -> MailForwarder:
    """Load configuration and build the forwarder once per process.

    An invalid ``FORWARD_TO`` fails here, before any message is touched.
    """
    global _forwarder
    if _forwarder is None:
        config = ForwarderConfig()
        setup_logging(json=config.log_json, level=config.log_level)
        _forwarder = MailForwarder.from_config(config)
        logger.info(
            "mail_forwarder_ready",
            forward_to=config.forward_to,
            bucket=config.s3.bucket,
        )
    return _forwarder


def reset_forwarder() -> None:
    global _forwarder
    _forwarder = None


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, int]:
    forwarder = get_forwarder()
    records = parse_event(event)
    logger.info(
        "mail_event_received",
        records=len(records),
        request_id=getattr(context, "aws_request_id", None),
    )
    forwarded = forwarder.handle(records)
    return {"forwarded": forwarded}
