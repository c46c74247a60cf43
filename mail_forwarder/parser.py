"""Message Parser: raw RFC 822 stream → header map + body stream.

Only the header block is buffered.  The body stays a forward-only
iterator over the source stream, so large attachments are never held in
memory twice and reach the composer byte-for-byte.
"""

from __future__ import annotations

import email.errors
import email.parser
import email.policy
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from .errors import ParseError

MAX_HEADER_BYTES = 1024 * 1024

_SEPARATOR_RE = re.compile(rb"\r?\n\r?\n")
_LEADING_BLANK_RE = re.compile(rb"\r?\n")

# Defects that mean the header block is not valid RFC 822.
_FATAL_DEFECTS = (
    email.errors.MissingHeaderBodySeparatorDefect,
    email.errors.FirstHeaderLineIsContinuationDefect,
    email.errors.InvalidHeaderDefect,
)


def canonical_header_name(name: str) -> str:
    """``content-TYPE`` → ``Content-Type``."""
    return "-".join(part.capitalize() for part in name.strip().split("-"))


class HeaderMap(Mapping[str, list[str]]):
    """Read-only, case-insensitive, multi-valued header mapping.

    Keys are canonical header names in first-seen order; each maps to
    every value that appeared under that name, in wire order.
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._headers: dict[str, list[str]] = {}
        for name, value in items:
            self._headers.setdefault(canonical_header_name(name), []).append(value)

    def __getitem__(self, name: str) -> list[str]:
        return list(self._headers[canonical_header_name(name)])

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"HeaderMap({self._headers!r})"

    def first(self, name: str, default: str = "") -> str:
        """Return the first value of *name*, or *default* when absent."""
        values = self._headers.get(canonical_header_name(name))
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        return self.get(name, [])


@dataclass
class ParsedMessage:
    """Headers of the original message plus its unconsumed body.

    ``body`` can be iterated exactly once.
    """

    headers: HeaderMap
    body: Iterator[bytes]


class MessageParser:
    """Stateless parser: raw RFC 822 byte chunks → ParsedMessage."""

    def __init__(self, max_header_bytes: int = MAX_HEADER_BYTES) -> None:
        self._max_header_bytes = max_header_bytes

    def parse(self, chunks: Iterable[bytes]) -> ParsedMessage:
        stream = iter(chunks)
        header_block, body_head = self._read_header_block(stream)
        headers = self._parse_headers(header_block)
        return ParsedMessage(headers=headers, body=_iter_body(body_head, stream))

    def _read_header_block(self, stream: Iterator[bytes]) -> tuple[bytes, bytes]:
        """Pull chunks until the blank line ending the headers.

        Returns ``(header_block, body_head)`` where ``body_head`` is the
        part of the last chunk that already belongs to the body.
        """
        buffer = bytearray()
        for chunk in stream:
            buffer += chunk

            leading = _LEADING_BLANK_RE.match(buffer)
            if leading:
                return b"", bytes(buffer[leading.end():])

            separator = _SEPARATOR_RE.search(buffer)
            if separator:
                return bytes(buffer[: separator.start()]), bytes(buffer[separator.end():])

            if len(buffer) > self._max_header_bytes:
                raise ParseError(
                    f"header block exceeds {self._max_header_bytes} bytes without a blank line"
                )

        if not buffer:
            raise ParseError("message is empty")
        raise ParseError("missing blank line between headers and body")

    def _parse_headers(self, header_block: bytes) -> HeaderMap:
        if not header_block:
            return HeaderMap()

        parser = email.parser.BytesHeaderParser(policy=email.policy.compat32)
        message = parser.parsebytes(header_block + b"\r\n")

        fatal = [defect for defect in message.defects if isinstance(defect, _FATAL_DEFECTS)]
        if fatal:
            reasons = "; ".join(
                str(defect) or type(defect).__name__ for defect in fatal
            )
            raise ParseError(f"malformed header block: {reasons}")

        # compat32 keeps raw values: folding intact, 8-bit bytes as surrogates.
        return HeaderMap(message.raw_items())


def _iter_body(head: bytes, rest: Iterator[bytes]) -> Iterator[bytes]:
    if head:
        yield head
    yield from rest
