"""Mail Forwarder: re-send SES-received mail to a fixed mailbox.

Public API re-exported here for convenience::

    from mail_forwarder import ForwarderConfig, MailForwarder
"""

from .addresses import format_address, parse_address, resolve_addresses, substitute_sender_name
from .composer import SKIP_HEADERS, compose
from .config import ForwarderConfig, S3Config, SESConfig
from .errors import AddressError, DeliveryError, ForwardingError, ParseError, RetrievalError
from .forwarder import MailForwarder
from .logging import setup_logging
from .models import ForwardStage, InboundRecord, ResolvedAddresses, parse_event
from .parser import HeaderMap, MessageParser, ParsedMessage
from .s3 import S3MessageStore
from .ses import SESRelay

__all__ = [
    "AddressError",
    "DeliveryError",
    "ForwardStage",
    "ForwarderConfig",
    "ForwardingError",
    "HeaderMap",
    "InboundRecord",
    "MailForwarder",
    "MessageParser",
    "ParseError",
    "ParsedMessage",
    "ResolvedAddresses",
    "RetrievalError",
    "S3Config",
    "S3MessageStore",
    "SESConfig",
    "SESRelay",
    "SKIP_HEADERS",
    "compose",
    "format_address",
    "parse_address",
    "parse_event",
    "resolve_addresses",
    "setup_logging",
    "substitute_sender_name",
]
