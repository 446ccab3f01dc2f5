"""
Email Triage Relay API
FastAPI application that turns forwarded bank transfer emails into
Telegram notifications.
"""

import logging
import os

from fastapi import FastAPI

from app.routers import email_intake

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Email Triage Relay",
    description="Forwards bank transfer notification emails to Telegram",
    version="0.1.0",
)

# Include routers
app.include_router(email_intake.router, prefix="/api/email-intake", tags=["email-intake"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """
    Warn early about configuration that would make every message a no-op.

    Missing Telegram settings do not stop the app: each inbound message is
    dropped with an error log instead, so the problem is visible in both
    places.
    """
    missing = [
        name
        for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "INBOUND_WEBHOOK_SECRET")
        if not os.getenv(name)
    ]
    if missing:
        logger.warning("Email Triage Relay started with missing configuration: %s", ", ".join(missing))
    else:
        logger.info("Email Triage Relay ready")


@app.get("/")
async def root():
    return {"message": "Email Triage Relay", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
