"""
Email intake router.

Receives inbound emails and relays a transaction summary to Telegram.

Two entry points share one pipeline:

  POST /inbound      — provider JSON webhook, normalised via the
                       inbound_email_adapter (EMAIL_PROVIDER selects the
                       provider format).
  POST /inbound/raw  — the raw RFC 822 message as the request body.

Environment variables
---------------------
EMAIL_PROVIDER            Which normaliser to use (default: "resend").
                          Supported values: "resend", "postmark".
INBOUND_WEBHOOK_SECRET    Shared secret checked in X-Webhook-Secret header.
TELEGRAM_BOT_TOKEN        Bot API token used for delivery.
TELEGRAM_CHAT_ID          Target chat for notifications.

Once authenticated, both endpoints always return 200 so the provider does
not retry; the body reports what happened.
"""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from app.config import Settings, get_settings
from app.services.inbound_email_adapter import normalize_webhook
from app.services.triage import process_inbound_email, process_raw_message

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Webhook authentication dependency
# ---------------------------------------------------------------------------

def _get_webhook_secret() -> str:
    return os.getenv("INBOUND_WEBHOOK_SECRET") or ""


def _verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None),
) -> None:
    """
    Verify that the inbound webhook request carries the correct shared secret.

    Raises 401 if the secret is missing, unconfigured, or does not match.
    """
    expected = _get_webhook_secret()
    if not expected:
        logger.warning(
            "No webhook secret configured (INBOUND_WEBHOOK_SECRET) "
            "— all inbound webhook requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Webhook secret not configured")

    if not x_webhook_secret or x_webhook_secret != expected:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/inbound")
def receive_inbound_email(
    payload: dict,
    _: None = Depends(_verify_webhook_secret),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Provider-agnostic inbound email webhook receiver.

    Accepts a JSON payload and normalizes it using the adapter selected
    by the EMAIL_PROVIDER environment variable (default: "resend").
    """
    provider = os.getenv("EMAIL_PROVIDER", "resend")
    try:
        email = normalize_webhook(payload, provider=provider)
    except ValueError as exc:
        logger.error(f"Webhook normalization failed: {exc}")
        return {"received": True, "processed": False, "reason": "unsupported_provider"}
    except Exception:
        logger.exception("Webhook payload could not be normalized")
        return {"received": True, "processed": False, "reason": "unparseable_message"}

    return process_inbound_email(email, settings)


@router.post("/inbound/raw")
async def receive_raw_email(
    request: Request,
    _: None = Depends(_verify_webhook_secret),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Raw message receiver for mail gateways that forward the full RFC 822
    message (Content-Type: message/rfc822 or application/octet-stream).
    """
    raw = await request.body()
    return await run_in_threadpool(process_raw_message, raw, settings)
