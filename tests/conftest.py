"""Shared test fixtures for the mail forwarder test suite."""

from __future__ import annotations

import io
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from unittest.mock import MagicMock

import pytest

from mail_forwarder.config import ForwarderConfig, S3Config, SESConfig
from mail_forwarder.s3 import S3MessageStore
from mail_forwarder.ses import SESRelay


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "FORWARD_TO",
        "SOURCE_CONTAINER",
        "S3_BUCKET",
        "S3_PREFIX",
        "S3_REGION",
        "SES_REGION",
        "SES_CONFIGURATION_SET",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def s3_config() -> S3Config:
    return S3Config(bucket="test-bucket", region="us-east-1")


@pytest.fixture
def ses_config() -> SESConfig:
    return SESConfig(region="us-east-1")


@pytest.fixture
def forwarder_config(s3_config: S3Config, ses_config: SESConfig) -> ForwarderConfig:
    return ForwarderConfig(
        forward_to="john@clearbyte.com",
        s3=s3_config,
        ses=ses_config,
    )


# ------------------------------------------------------------------
# boto3 client doubles
# ------------------------------------------------------------------


def _s3_client_returning(raw: bytes) -> tuple[MagicMock, io.BytesIO]:
    """An S3 client whose GetObject streams *raw*."""
    body = io.BytesIO(raw)
    client = MagicMock()
    client.get_object.return_value = {"Body": body, "ContentLength": len(raw)}
    return client, body


@pytest.fixture
def ses_client() -> MagicMock:
    client = MagicMock()
    client.send_raw_email.return_value = {"MessageId": "ses-0001"}
    return client


@pytest.fixture
def relay(ses_config: SESConfig, ses_client: MagicMock) -> SESRelay:
    return SESRelay(ses_config, client=ses_client)


@pytest.fixture
def store_factory(s3_config: S3Config):
    """Factory returning ``(store, s3_client, body)`` serving *raw*."""

    def _make(raw: bytes) -> tuple[S3MessageStore, MagicMock, io.BytesIO]:
        client, body = _s3_client_returning(raw)
        return S3MessageStore(s3_config, client=client), client, body

    return _make


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str = "Test Subject",
    from_addr: str = "sender@example.com",
    to_addr: str = "relay@example.com",
    body: str = "Hello, World!",
    message_id: str = "<test-001@example.com>",
    reply_to: str | None = None,
    cc: str | None = None,
    bcc: str | None = None,
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Message-ID"] = message_id
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    if reply_to:
        msg["Reply-To"] = reply_to
    if cc:
        msg["Cc"] = cc
    if bcc:
        msg["Bcc"] = bcc
    return msg.as_bytes()


def _build_multipart_email(
    *,
    body_text: str = "Plain body",
    body_html: str = "<p>HTML body</p>",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart email with text, HTML, and optional attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = "Multipart Email"
    msg["From"] = "Alice Sender <sender@example.com>"
    msg["To"] = "relay@example.com"
    msg["Message-ID"] = "<multi-001@example.com>"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"

    alt = MIMEMultipart("alternative")
    alt.attach(MIMEText(body_text, "plain"))
    alt.attach(MIMEText(body_html, "html"))
    msg.attach(alt)

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


def _body_of(raw: bytes) -> bytes:
    """Everything after the first blank line of an LF-terminated sample."""
    return raw.split(b"\n\n", 1)[1]


def _chunked(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()


@pytest.fixture
def multipart_eml_bytes() -> bytes:
    return _build_multipart_email(
        attachments=[
            ("report.pdf", "application/pdf", b"%PDF-1.4 \x00\xff\xfe binary"),
            ("data.csv", "text/csv", b"col1,col2\na,b\n"),
        ],
    )
