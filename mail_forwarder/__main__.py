"""Operator entry point for the mail forwarder.

Usage::

    python -m mail_forwarder forward <message-id> [<message-id> ...]
    python -m mail_forwarder preview <path.eml> <forward-to>

``forward`` replays messages already stored in S3 using the same
environment configuration as the Lambda function.  ``preview`` composes
a local message and writes it to stdout without sending anything.
"""

from __future__ import annotations

import sys
from functools import partial

USAGE = (
    "Usage: python -m mail_forwarder forward <message-id> [...]\n"
    "       python -m mail_forwarder preview <path.eml> <forward-to>"
)

_PREVIEW_CHUNK = 64 * 1024


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv

    if len(args) >= 2 and args[0] == "forward":
        from .config import ForwarderConfig
        from .forwarder import MailForwarder
        from .logging import setup_logging
        from .models import InboundRecord

        config = ForwarderConfig()
        setup_logging(json=config.log_json, level=config.log_level)
        forwarder = MailForwarder.from_config(config)
        try:
            forwarder.handle(InboundRecord(message_id=message_id) for message_id in args[1:])
        finally:
            forwarder.close()

    elif len(args) == 3 and args[0] == "preview":
        from .addresses import resolve_addresses
        from .composer import compose
        from .parser import MessageParser

        _, path, forward_to = args
        with open(path, "rb") as fh:
            parsed = MessageParser().parse(iter(partial(fh.read, _PREVIEW_CHUNK), b""))
            data = compose(parsed, resolve_addresses(parsed.headers, forward_to))
        sys.stdout.buffer.write(data)
        sys.stdout.flush()

    else:
        print(USAGE, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
