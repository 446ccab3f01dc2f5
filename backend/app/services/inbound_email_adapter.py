"""
Inbound email adapter service.

Normalizes whatever the inbound trigger delivered into a single
provider-agnostic InboundEmail model:

  - raw RFC 822 bytes   (mail gateways that forward the whole message)
  - resend              (default webhook provider; EMAIL_PROVIDER=resend)
  - postmark            (EMAIL_PROVIDER=postmark)

Adding a new provider:
  1. Write a normalize_<provider>(payload: dict) -> InboundEmail function.
  2. Register it in _NORMALIZERS.
  3. Set EMAIL_PROVIDER=<provider> in the environment.

Resend inbound webhook field assumptions
----------------------------------------
Resend delivers a JSON body with these top-level keys (snake_case):

  from      str  — sender, e.g. "Alice <alice@example.com>"
  subject   str  — email subject line
  text      str  — decoded plain-text body (optional)
  html      str  — decoded HTML body (optional)
  date      str  — Date header as sent (optional)

Postmark uses PascalCase: From, FromFull{Email, Name}, Subject, TextBody,
HtmlBody, Date.

If a provider changes its schema, only this file needs updating.
"""

import logging
import os
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parseaddr
from typing import Callable, Optional

from app.models.inbound_email import EmailAddress, InboundEmail

logger = logging.getLogger(__name__)


def parse_address(value: Optional[str]) -> Optional[EmailAddress]:
    """Split 'Alice <alice@example.com>' into name and address."""
    if not value:
        return None
    name, address = parseaddr(value)
    if not name and not address:
        return None
    return EmailAddress(name=name.strip(), address=address.strip())


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value if value.strip() else None


# ---------------------------------------------------------------------------
# Raw RFC 822 message
# ---------------------------------------------------------------------------

def _body_content(message: EmailMessage, subtype: str) -> Optional[str]:
    part = message.get_body(preferencelist=(subtype,))
    if part is None:
        return None
    return _blank_to_none(part.get_content())


def normalize_raw(raw: bytes) -> InboundEmail:
    """
    Decode raw message bytes into InboundEmail.

    Uses the standard library parser with the modern email policy, which
    decodes transfer encodings, charsets and RFC 2047 encoded-word headers.
    The first text/plain and text/html parts found by get_body() become the
    text and html bodies.

    Raises ValueError when the input is empty or yields neither headers nor
    a body.
    """
    if not raw or not raw.strip():
        raise ValueError("Empty message")

    message = BytesParser(policy=policy.default).parsebytes(raw)

    text = _body_content(message, "plain")
    html = _body_content(message, "html")
    subject = _blank_to_none(str(message.get("Subject", "")))
    sender = parse_address(str(message.get("From", "")))
    date = _blank_to_none(str(message.get("Date", "")))

    if text is None and html is None and subject is None and sender is None:
        raise ValueError("Message has no recognizable headers or body")

    return InboundEmail(text=text, html=html, subject=subject, sender=sender, date=date)


# ---------------------------------------------------------------------------
# Postmark normalizer
# ---------------------------------------------------------------------------

def normalize_postmark(payload: dict) -> InboundEmail:
    """
    Convert a Postmark inbound webhook payload to InboundEmail.

    FromFull carries the parsed sender; the plain From string is the
    fallback when FromFull is missing.
    """
    sender = None
    from_full = payload.get("FromFull") or {}
    if from_full.get("Email") or from_full.get("Name"):
        sender = EmailAddress(
            name=(from_full.get("Name") or "").strip(),
            address=(from_full.get("Email") or "").strip(),
        )
    else:
        sender = parse_address(payload.get("From"))

    return InboundEmail(
        text=_blank_to_none(payload.get("TextBody")),
        html=_blank_to_none(payload.get("HtmlBody")),
        subject=_blank_to_none(payload.get("Subject")),
        sender=sender,
        date=_blank_to_none(payload.get("Date")),
    )


# ---------------------------------------------------------------------------
# Resend normalizer
# ---------------------------------------------------------------------------

def normalize_resend(payload: dict) -> InboundEmail:
    """Convert a Resend inbound webhook payload to InboundEmail."""
    return InboundEmail(
        text=_blank_to_none(payload.get("text")),
        html=_blank_to_none(payload.get("html")),
        subject=_blank_to_none(payload.get("subject")),
        sender=parse_address(payload.get("from")),
        date=_blank_to_none(payload.get("date")),
    )


# ---------------------------------------------------------------------------
# Registry and dispatcher
# ---------------------------------------------------------------------------

_NORMALIZERS: dict[str, Callable[[dict], InboundEmail]] = {
    "postmark": normalize_postmark,
    "resend": normalize_resend,
}


def normalize_webhook(payload: dict, provider: str | None = None) -> InboundEmail:
    """
    Route to the correct normalizer based on the provider argument or the
    EMAIL_PROVIDER environment variable.

    Priority:
      1. provider argument (explicit, used in tests and the webhook endpoint)
      2. EMAIL_PROVIDER env var
      3. Default: "resend"

    Raises ValueError for unknown provider names.
    """
    resolved = provider or os.getenv("EMAIL_PROVIDER", "resend")
    resolved = resolved.lower().strip()

    normalizer = _NORMALIZERS.get(resolved)
    if normalizer is None:
        raise ValueError(
            f"Unknown email provider {resolved!r}. "
            f"Supported providers: {sorted(_NORMALIZERS)}"
        )

    return normalizer(payload)
