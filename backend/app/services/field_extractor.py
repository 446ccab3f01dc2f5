"""
Field extraction for forwarded bank transfer notifications.

Two independent scrapers:

  extract_forwarded_headers   From/Date/Subject lines of a forwarded-message
                              preamble (English or Indonesian labels), read
                              from the plain-text or HTML body.
  extract_transaction_details recipient, amount, reference number and funding
                              source from the HTML of known bank notification
                              templates.

Both are regex-based against the literal body text; there is no HTML parser.
The transaction patterns mirror the markup shapes the bank templates emit
(label paragraph followed by an <h4>, or label cell followed by a value
cell), so attribute or whitespace changes beyond what the patterns tolerate
will turn a field into a miss. A miss is never an error: the field is None.
"""

import html
import logging
import re
from typing import Optional, Pattern

from app.models.triage import ForwardedHeaders, TransactionDetails

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Forwarded-header patterns
# ---------------------------------------------------------------------------

# Start of a line, or right after a <br>; tolerates indentation, ">" quote
# markers and inline opening tags such as <b> or <div> before the label.
_LINE_START = r"(?:^|<br\s*/?>)[ \t>]*(?:<[a-zA-Z][^>]*>[ \t]*)*"

# Value runs up to the first newline or <br>.
_VALUE_TO_EOL = r"[ \t]*:[ \t]*(.*?)(?:\r?\n|<br\s*/?>)"

_FORWARDED_SENDER_RE = re.compile(
    _LINE_START + r"(?:Dari|From)" + _VALUE_TO_EOL, re.IGNORECASE | re.MULTILINE
)
_FORWARDED_DATE_RE = re.compile(
    _LINE_START + r"(?:Date|Tanggal|Sent)" + _VALUE_TO_EOL, re.IGNORECASE | re.MULTILINE
)
_FORWARDED_SUBJECT_RE = re.compile(
    _LINE_START + r"Subject" + _VALUE_TO_EOL, re.IGNORECASE | re.MULTILINE
)

# Real HTML tags only: "<j@x.com>" in "Jane <j@x.com>" is an address, not a tag.
# Tag names may be namespaced or hyphenated, as in Outlook's <o:p>.
_HTML_TAG_RE = re.compile(r"</?[a-zA-Z][\w:-]*(?:\s[^<>]*)?/?>")
_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

# ---------------------------------------------------------------------------
# Transaction-detail patterns
# ---------------------------------------------------------------------------

# "Penerima</p><h4 ...>John Smith</h4>"
_PENERIMA_RE = re.compile(
    r"Penerima\s*</p>\s*<h4[^>]*>\s*(.*?)\s*</h4>", re.IGNORECASE
)

# "<td>Nominal Transaksi</td><td ...>Rp 150.000</td>" or "Jumlah Transfer"
_NOMINAL_RE = re.compile(
    r"(?:Nominal Transaksi|Jumlah Transfer)\s*</td>\s*<td[^>]*>\s*(.*?)\s*</td>",
    re.IGNORECASE,
)

# "<td>No. Referensi</td><td ...>20240101123456</td>"
_NO_REF_RE = re.compile(
    r"No\.\s*Referensi\s*</td>\s*<td[^>]*>\s*(.*?)\s*</td>", re.IGNORECASE
)

# "Sumber Dana</p><h4 ...>BCA - 1234</h4>" or "Rekening Sumber"
_SUMBER_DANA_RE = re.compile(
    r"(?:Sumber Dana|Rekening Sumber)\s*</p>\s*<h4[^>]*>\s*(.*?)\s*</h4>",
    re.IGNORECASE,
)


def strip_tags(value: str) -> str:
    """Remove HTML comments and tags, unescape character references and trim."""
    cleaned = _HTML_TAG_RE.sub("", _HTML_COMMENT_RE.sub("", value))
    return html.unescape(cleaned).strip()


def _first_header_value(pattern: Pattern[str], content: str) -> Optional[str]:
    match = pattern.search(content)
    if not match:
        return None
    value = strip_tags(match.group(1))
    return value or None


def _first_markup_value(pattern: Pattern[str], markup: str) -> Optional[str]:
    match = pattern.search(markup)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def extract_forwarded_headers(content: str) -> ForwardedHeaders:
    """
    Recover the original sender, subject and date from a forwarded message.

    Each label is searched independently and the first line-initial
    occurrence wins, so the order of the lines in the preamble does not
    matter. Labels accepted (case-insensitive):

      sender   From / Dari
      date     Date / Tanggal / Sent
      subject  Subject

    Returns a ForwardedHeaders whose fields are None when the label is absent.
    """
    if not content:
        return ForwardedHeaders()

    headers = ForwardedHeaders(
        sender=_first_header_value(_FORWARDED_SENDER_RE, content),
        subject=_first_header_value(_FORWARDED_SUBJECT_RE, content),
        date=_first_header_value(_FORWARDED_DATE_RE, content),
    )
    logger.debug("Forwarded headers extracted: %s", headers.model_dump())
    return headers


def extract_transaction_details(markup: str) -> TransactionDetails:
    """
    Pull recipient, amount, reference number and funding source from the
    HTML of a bank transfer notification.

    Matching is case-insensitive, non-greedy on the value and takes the first
    occurrence in document order. For the amount, whichever of
    "Nominal Transaksi" / "Jumlah Transfer" appears first wins; likewise
    "Sumber Dana" / "Rekening Sumber" for the funding source.
    """
    if not markup:
        return TransactionDetails()

    details = TransactionDetails(
        penerima=_first_markup_value(_PENERIMA_RE, markup),
        nominal=_first_markup_value(_NOMINAL_RE, markup),
        no_ref=_first_markup_value(_NO_REF_RE, markup),
        sumber_dana=_first_markup_value(_SUMBER_DANA_RE, markup),
    )
    logger.debug("Transaction details extracted: %s", details.model_dump())
    return details
