"""Error taxonomy for the forwarding pipeline.

Each error names the pipeline stage it came from.  All of them are
recoverable at the batch level: the orchestrator logs them and re-raises
so the invoking event source decides whether to redeliver.
"""

from __future__ import annotations


class ForwardingError(Exception):
    """Base class for every failure raised while forwarding one message."""

    stage: str = "forward"

    def __init__(self, message: str, *, message_id: str | None = None) -> None:
        super().__init__(message)
        self.message_id = message_id
        # Set by the orchestrator to the ForwardStage that was running.
        self.pipeline_stage = None


class RetrievalError(ForwardingError):
    """The raw message could not be read from the blob store."""

    stage = "fetch"


class ParseError(ForwardingError):
    """The raw message is not a well-formed RFC 822 message."""

    stage = "parse"


class AddressError(ForwardingError):
    """A From/To address did not parse as a single RFC 822 mailbox."""

    stage = "resolve"


class DeliveryError(ForwardingError):
    """The mail relay rejected the composed message."""

    stage = "submit"
