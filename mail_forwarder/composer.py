"""Message Composer: filtered original headers + rewritten address
headers + original body, in RFC 822 wire form.

The body is copied byte-for-byte; MIME structure is never re-parsed, so
multipart messages and attachments survive untouched.
"""

from __future__ import annotations

import re

from .models import ResolvedAddresses
from .parser import ParsedMessage

CRLF = b"\r\n"

# Recomputed by the forwarder; the originals must not leak through.
SKIP_HEADERS = frozenset({"To", "Cc", "Bcc", "From", "Reply-To", "Return-Path"})

_LINE_BREAK_RE = re.compile(r"\r?\n")


def skip_header(name: str) -> bool:
    """Whether canonical header *name* is dropped from the passthrough copy."""
    return name in SKIP_HEADERS


def compose(parsed: ParsedMessage, addresses: ResolvedAddresses) -> bytes:
    """Build the forwarded message.  Consumes ``parsed.body``."""
    out = bytearray()

    for name, values in parsed.headers.items():
        if skip_header(name):
            continue
        for value in values:
            out += _header_line(name, value)

    out += _header_line("From", addresses.from_address)
    out += _header_line("To", addresses.to_address)
    if addresses.reply_to:
        out += _header_line("Reply-To", addresses.reply_to)

    out += CRLF
    for chunk in parsed.body:
        out += chunk
    return bytes(out)


def _header_line(name: str, value: str) -> bytes:
    # Folded values keep their folding, normalised to CRLF.
    value = _LINE_BREAK_RE.sub("\r\n", value)
    # 8-bit header bytes were carried as surrogates; restore them as-is.
    return f"{name}: {value}".encode("utf-8", "surrogateescape") + CRLF
