"""
Provider-agnostic inbound email model.

These models represent a decoded inbound email after provider-specific
fields (or raw MIME structure) have been stripped away. The pipeline works
exclusively with these models; only the adapter layer knows about
Resend/Postmark payloads and RFC 822 bytes.
"""

from typing import Optional
from pydantic import BaseModel


class EmailAddress(BaseModel):
    """A display name plus mailbox address, either of which may be blank."""

    name: str = ""
    address: str = ""

    def display(self) -> str:
        """Render as 'Name <address>', or just the address when unnamed."""
        if self.name and self.address:
            return f"{self.name} <{self.address}>"
        return self.name or self.address


class InboundEmail(BaseModel):
    """
    Decoded inbound email.

    text and html are the decoded bodies of the message (either may be
    missing). sender/subject/date are the live message's own headers, used as
    fallbacks when the body carries no forwarded-header block.
    """

    text: Optional[str] = None
    html: Optional[str] = None
    subject: Optional[str] = None
    sender: Optional[EmailAddress] = None
    date: Optional[str] = None
