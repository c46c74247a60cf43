"""structlog wiring for the forwarder.

Every event goes through the stdlib root logger, so boto3's own records
and the pipeline's structlog events share one stdout stream (CloudWatch
in Lambda).
"""

from __future__ import annotations

import logging
import sys

import structlog

_QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def _renderer(json: bool) -> structlog.types.Processor:
    if json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(*, json: bool = True, level: str = "INFO") -> None:
    """Route structlog through a single stdout handler at *level*.

    Any handler already on the root logger (the Lambda runtime installs
    one) is removed, otherwise each line would be written twice.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json),
            ],
        )
    )
    logging.basicConfig(handlers=[handler], level=level.upper(), force=True)

    # SDK debug output would drown the pipeline events.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
