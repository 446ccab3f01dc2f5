"""
Triage pipeline: extract -> format -> deliver, one message at a time.

Every outcome ends in a log line and a result dict; nothing raises out of
these functions. Result shape:

  {"received": True, "processed": bool, "delivered": bool, "reason"?: str}

reason values:
  missing_configuration  TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID unset
  unparseable_message    raw bytes could not be decoded
  processing_error       extraction/formatting blew up unexpectedly
  delivery_failed        Telegram call failed or returned non-2xx
"""

import logging

from app.config import Settings
from app.models.inbound_email import InboundEmail
from app.services.field_extractor import (
    extract_forwarded_headers,
    extract_transaction_details,
)
from app.services.inbound_email_adapter import normalize_raw
from app.services.notifier import format_notification, send_telegram_message

logger = logging.getLogger(__name__)


def _result(processed: bool, delivered: bool = False, reason: str | None = None) -> dict:
    result = {"received": True, "processed": processed, "delivered": delivered}
    if reason:
        result["reason"] = reason
    return result


def _missing_configuration(settings: Settings) -> bool:
    if settings.is_complete():
        return False
    logger.error("Missing Telegram configuration (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID)")
    return True


def build_message(email: InboundEmail) -> str:
    """
    Run both extractors over the decoded email and format the chat message.

    The forwarded-header scan prefers the plain-text body; the transaction
    scan prefers the HTML body since the bank templates are table/heading
    markup.
    """
    forwarded = extract_forwarded_headers(email.text or email.html or "")
    transaction = extract_transaction_details(email.html or email.text or "")
    return format_notification(forwarded, email, transaction)


def process_inbound_email(email: InboundEmail, settings: Settings) -> dict:
    """Extract, format and deliver one decoded email."""
    if _missing_configuration(settings):
        return _result(processed=False, reason="missing_configuration")

    try:
        text = build_message(email)
    except Exception:
        logger.exception("Failed to extract fields from inbound email")
        return _result(processed=False, reason="processing_error")

    try:
        delivered = send_telegram_message(settings, text)
    except Exception:
        logger.exception("Unexpected error delivering notification")
        delivered = False

    if not delivered:
        return _result(processed=True, delivered=False, reason="delivery_failed")
    return _result(processed=True, delivered=True)


def process_raw_message(raw: bytes, settings: Settings) -> dict:
    """Decode raw RFC 822 bytes, then run process_inbound_email."""
    if _missing_configuration(settings):
        return _result(processed=False, reason="missing_configuration")

    try:
        email = normalize_raw(raw)
    except Exception:
        logger.exception("Failed to parse inbound message")
        return _result(processed=False, reason="unparseable_message")

    return process_inbound_email(email, settings)
