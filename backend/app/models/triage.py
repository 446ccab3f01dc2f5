"""
Models produced by the extraction and notification stages.
"""

from typing import Literal, Optional
from pydantic import BaseModel

# Placeholder shown in the chat message for a transaction field that was not found
NOT_AVAILABLE = "N/A"


class ForwardedHeaders(BaseModel):
    """
    From/Date/Subject recovered from a forwarded-message preamble.

    None means the label was not found in the body, never an empty string.
    """

    sender: Optional[str] = None
    subject: Optional[str] = None
    date: Optional[str] = None


class TransactionDetails(BaseModel):
    """
    Fields scraped from a bank transfer notification.

    Values are kept exactly as matched (the amount is not parsed). A field
    whose pattern did not match is None; display_values() substitutes the
    "N/A" placeholder for output.
    """

    penerima: Optional[str] = None
    nominal: Optional[str] = None
    no_ref: Optional[str] = None
    sumber_dana: Optional[str] = None

    def display_values(self) -> dict[str, str]:
        return {
            "penerima": self.penerima or NOT_AVAILABLE,
            "nominal": self.nominal or NOT_AVAILABLE,
            "no_ref": self.no_ref or NOT_AVAILABLE,
            "sumber_dana": self.sumber_dana or NOT_AVAILABLE,
        }


class OutboundNotification(BaseModel):
    """JSON body of a Telegram Bot API sendMessage call."""

    chat_id: str
    text: str
    parse_mode: Literal["Markdown"] = "Markdown"
