"""
Telegram notifier.

Formats extracted fields into a legacy-Markdown chat message and delivers it
with a single Bot API sendMessage call. Delivery failures are logged and
reported as False; nothing is retried and nothing is raised.
"""

import logging
import re

import httpx

from app.config import Settings
from app.models.inbound_email import InboundEmail
from app.models.triage import ForwardedHeaders, OutboundNotification, TransactionDetails

logger = logging.getLogger(__name__)

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "(Unknown Sender)"

# Characters Telegram's legacy Markdown treats as bold/italic/code/link delimiters
_MARKDOWN_SPECIAL_RE = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Backslash-escape Markdown delimiters so the text renders literally."""
    return _MARKDOWN_SPECIAL_RE.sub(r"\\\1", text)


def resolve_sender(forwarded: ForwardedHeaders, email: InboundEmail) -> str:
    if forwarded.sender:
        return forwarded.sender
    if email.sender is not None and email.sender.display():
        return email.sender.display()
    return UNKNOWN_SENDER


def resolve_subject(forwarded: ForwardedHeaders, email: InboundEmail) -> str:
    return forwarded.subject or email.subject or NO_SUBJECT


def format_notification(
    forwarded: ForwardedHeaders,
    email: InboundEmail,
    transaction: TransactionDetails,
) -> str:
    """
    Build the chat message for one email.

    Sender and subject prefer the forwarded-header block, then the live
    email's headers, then a placeholder. The date line is only present when
    the forwarded block carried a date; the live email's own date is never
    shown. Missing transaction fields render as "N/A".
    """
    sender = resolve_sender(forwarded, email)
    subject = resolve_subject(forwarded, email)
    values = transaction.display_values()

    message = (
        f"📧 *{escape_markdown(sender)}*\n\n"
        f"*Subject:* {escape_markdown(subject)}\n"
    )

    if forwarded.date:
        message += f"*Date:* {escape_markdown(forwarded.date)}\n"

    message += (
        "\n"
        "*Detail Transaksi:*\n"
        f"*Penerima:* {escape_markdown(values['penerima'])}\n"
        f"*Nominal:* {escape_markdown(values['nominal'])}\n"
        f"*No Ref:* {escape_markdown(values['no_ref'])}\n"
        f"*Sumber Dana:* {escape_markdown(values['sumber_dana'])}"
    )
    return message


def send_telegram_message(settings: Settings, text: str) -> bool:
    """
    POST the message to the Telegram Bot API.

    Returns True on a 2xx response. Non-2xx responses are logged with status
    code and response body; transport errors (connect failures, timeouts) are
    logged too. Both return False.
    """
    url = f"{settings.telegram_api_base}/bot{settings.telegram_bot_token}/sendMessage"
    notification = OutboundNotification(chat_id=settings.telegram_chat_id, text=text)

    try:
        response = httpx.post(
            url,
            json=notification.model_dump(),
            timeout=settings.request_timeout,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        # The URL embeds the bot token, so only the exception type is logged
        logger.error(f"Telegram API request failed: {type(exc).__name__}")
        return False

    if not response.is_success:
        logger.error(
            f"Telegram API error: {response.status_code} "
            f"{response.reason_phrase} - {response.text}"
        )
        return False

    logger.info(f"Notification delivered to chat {settings.telegram_chat_id}")
    return True
