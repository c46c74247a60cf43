"""Address Resolver: outbound From/To/Reply-To for a forwarded message.

The forwarded From must be a verified SES identity, so it is taken from
the original ``To`` header (the mailbox the message was delivered to).
A ``To`` header of the form ``"%s via Relay" <relay@example.com>`` gets
the original sender's display name substituted in, so recipients still
see who wrote the message.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from email import policy
from email.errors import HeaderParseError, ObsoleteHeaderDefect
from email.headerregistry import Address
from email.utils import formataddr

import structlog

from .errors import AddressError
from .models import ResolvedAddresses
from .parser import HeaderMap

logger = structlog.get_logger()

NAME_PLACEHOLDER = "%s"

_FOLD_RE = re.compile(r"\r?\n(?=[ \t])")


def parse_address(value: str, *, field: str = "address") -> Address:
    """Parse exactly one RFC 822 mailbox from *value*.

    Raises :class:`AddressError` on syntax defects, on zero or several
    addresses, on a missing local part or domain and on a non-ASCII
    addr-spec (SES only accepts ASCII addresses).
    """
    unfolded = _FOLD_RE.sub("", value or "")
    try:
        header = policy.default.header_factory("To", unfolded)
        addresses: Sequence[Address] = header.addresses
    except (HeaderParseError, ValueError) as exc:
        raise AddressError(f"{field} {value!r} is not a valid address: {exc}") from exc

    # Obsolete syntax (e.g. "John Q. Public") is still a usable mailbox.
    defects = [d for d in header.defects if not isinstance(d, ObsoleteHeaderDefect)]
    if defects:
        reasons = "; ".join(str(defect) for defect in defects)
        raise AddressError(f"{field} {value!r} is not a valid address: {reasons}")
    if len(addresses) != 1:
        raise AddressError(
            f"{field} {value!r} must contain exactly one address, found {len(addresses)}"
        )

    address = addresses[0]
    if not address.username or not address.domain:
        raise AddressError(f"{field} {value!r} is missing a local part or domain")
    if not address.addr_spec.isascii():
        raise AddressError(f"{field} {value!r} has a non-ASCII mailbox")
    return address


def format_address(address: Address) -> str:
    """Render *address* for a header, RFC 2047-encoding a non-ASCII name."""
    return formataddr((address.display_name, address.addr_spec))


def substitute_sender_name(template: str, sender_name: str) -> str:
    """Put *sender_name* into *template* when it holds exactly one placeholder.

    Zero or several placeholders leave the template untouched.
    """
    if template.count(NAME_PLACEHOLDER) != 1:
        return template
    return template.replace(NAME_PLACEHOLDER, sender_name)


def resolve_addresses(headers: HeaderMap, forward_to: str) -> ResolvedAddresses:
    """Compute the outbound address triad from the original headers."""
    to_address = parse_address(forward_to, field="FORWARD_TO")

    original_from = headers.first("From")
    try:
        sender_name = parse_address(_decode_8bit(original_from), field="From").display_name
    except AddressError:
        # Only used to decorate the From display name.
        logger.debug("original_from_unparsable", original_from=original_from)
        sender_name = ""

    candidate = substitute_sender_name(_decode_8bit(headers.first("To")), sender_name)
    from_address = parse_address(candidate, field="forwarding From")

    reply_to = headers.first("Reply-To") or original_from

    resolved = ResolvedAddresses(
        from_address=format_address(from_address),
        to_address=format_address(to_address),
        reply_to=reply_to,
    )
    logger.debug(
        "addresses_resolved",
        from_address=resolved.from_address,
        to_address=resolved.to_address,
        reply_to=resolved.reply_to,
    )
    return resolved


def _decode_8bit(value: str) -> str:
    # Raw 8-bit header bytes arrive as surrogates; read them as UTF-8.
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")

