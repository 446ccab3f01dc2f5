"""
Unit tests for forwarded-header and transaction-detail extraction.

Pure functions, no mocks needed.
"""

from pathlib import Path

from app.models.triage import NOT_AVAILABLE
from app.services.field_extractor import (
    extract_forwarded_headers,
    extract_transaction_details,
    strip_tags,
)
from app.services.inbound_email_adapter import normalize_raw

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _transaction_markup(
    penerima: str = "John Smith",
    nominal_label: str = "Nominal Transaksi",
    nominal: str = "Rp 150.000,00",
    no_ref: str = "20240517093012345",
    sumber_label: str = "Sumber Dana",
    sumber_dana: str = "BCA - 1234567890",
) -> str:
    """Minimal bank notification markup in the shape of the real templates."""
    return (
        "<table><tr><td>"
        f'<p class="label">Penerima</p>\n<h4 style="margin:0"> {penerima} </h4>'
        "</td></tr><tr><td><table>"
        f'<tr><td>{nominal_label}</td><td align="right">{nominal}</td></tr>'
        f"<tr><td>No. Referensi</td><td>{no_ref}</td></tr>"
        "</table></td></tr><tr><td>"
        f"<p>{sumber_label}</p><h4>{sumber_dana}</h4>"
        "</td></tr></table>"
    )


# ===========================================================================
# extract_forwarded_headers
# ===========================================================================

class TestExtractForwardedHeaders:

    def test_body_without_forwarded_block_returns_all_none(self):
        headers = extract_forwarded_headers("Hello,\nyour payment went through.\nThanks\n")

        assert headers.sender is None
        assert headers.subject is None
        assert headers.date is None

    def test_empty_content_returns_all_none(self):
        headers = extract_forwarded_headers("")
        assert headers.model_dump() == {"sender": None, "subject": None, "date": None}

    def test_keeps_angle_bracket_address_in_sender(self):
        headers = extract_forwarded_headers("From: Jane Doe <j@x.com>\nSubject: Hi\n")

        assert headers.sender == "Jane Doe <j@x.com>"
        assert headers.subject == "Hi"
        assert headers.date is None

    def test_indonesian_labels(self):
        content = (
            "---------- Pesan terusan ---------\n"
            "Dari: Bank Mandiri <noreply@bankmandiri.co.id>\n"
            "Tanggal: Jum, 17 Mei 2024 pukul 09.30\n"
            "Subject: Pembayaran Berhasil!\n"
        )
        headers = extract_forwarded_headers(content)

        assert headers.sender == "Bank Mandiri <noreply@bankmandiri.co.id>"
        assert headers.date == "Jum, 17 Mei 2024 pukul 09.30"
        assert headers.subject == "Pembayaran Berhasil!"

    def test_sent_label_is_a_date(self):
        headers = extract_forwarded_headers("Sent: Monday, May 20, 2024 8:15 AM\n")
        assert headers.date == "Monday, May 20, 2024 8:15 AM"

    def test_labels_are_case_insensitive(self):
        headers = extract_forwarded_headers("FROM: Ops\nsubject: Lower\nDATE: today\n")

        assert headers.sender == "Ops"
        assert headers.subject == "Lower"
        assert headers.date == "today"

    def test_order_of_lines_does_not_matter(self):
        headers = extract_forwarded_headers("Subject: First\nDate: Second\nFrom: Third\n")

        assert headers.subject == "First"
        assert headers.date == "Second"
        assert headers.sender == "Third"

    def test_first_occurrence_wins(self):
        headers = extract_forwarded_headers(
            "From: Outer Forwarder\nSubject: Fwd\n\nFrom: Inner Original\n"
        )
        assert headers.sender == "Outer Forwarder"

    def test_crlf_line_endings(self):
        headers = extract_forwarded_headers("From: Bank\r\nSubject: Done\r\n")

        assert headers.sender == "Bank"
        assert headers.subject == "Done"

    def test_label_must_start_the_line(self):
        headers = extract_forwarded_headers("Consent: given\nReply From: nobody\n")

        assert headers.date is None
        assert headers.sender is None

    def test_value_without_line_terminator_is_not_matched(self):
        headers = extract_forwarded_headers("Subject: trailing")
        assert headers.subject is None

    def test_html_br_terminated_lines(self):
        content = (
            '<div class="gmail_attr">---------- Forwarded message ---------<br>'
            'From: <strong class="gmail_sendername">Livin by Mandiri</strong> '
            '<span dir="auto">&lt;noreply@bankmandiri.co.id&gt;</span><br>'
            "Date: Fri, 17 May 2024 at 09:30<br/>"
            "Subject: <b>Pembayaran</b> Berhasil!<br />"
            "</div>"
        )
        headers = extract_forwarded_headers(content)

        assert headers.sender == "Livin by Mandiri <noreply@bankmandiri.co.id>"
        assert headers.date == "Fri, 17 May 2024 at 09:30"
        assert headers.subject == "Pembayaran Berhasil!"

    def test_bold_label_inside_tag(self):
        headers = extract_forwarded_headers("<br><b>From:</b> Bank Ops<br>")
        assert headers.sender == "Bank Ops"

    def test_value_empty_after_cleanup_is_none(self):
        headers = extract_forwarded_headers("Subject: <span></span>\n")
        assert headers.subject is None


class TestStripTags:

    def test_removes_html_tags(self):
        assert strip_tags("<b>Bold</b> <a href='x'>link</a>") == "Bold link"

    def test_keeps_mail_address_in_angle_brackets(self):
        assert strip_tags("  Jane <jane@x.com>  ") == "Jane <jane@x.com>"

    def test_unescapes_entities(self):
        assert strip_tags("A &amp; B &lt;a@b.c&gt;") == "A & B <a@b.c>"

    def test_removes_namespaced_office_tags(self):
        assert strip_tags("Pembayaran Berhasil<o:p></o:p>") == "Pembayaran Berhasil"
        assert strip_tags("<w:Sdt data-x='1'>Bank</w:Sdt>") == "Bank"

    def test_removes_hyphenated_custom_tags(self):
        assert strip_tags("<x-mail-body>Ops</x-mail-body>") == "Ops"

    def test_removes_html_comments(self):
        assert strip_tags("Bank<!-- x --> Ops") == "Bank Ops"
        assert strip_tags("<!--[if mso]><b>A</b><![endif]-->B") == "B"

    def test_namespaced_tags_still_keep_addresses(self):
        assert strip_tags("<o:p>Jane <jane@x.com></o:p>") == "Jane <jane@x.com>"

    def test_outlook_subject_line(self):
        headers = extract_forwarded_headers(
            "<b>Subject:</b> Pembayaran Berhasil<o:p></o:p>\n"
        )
        assert headers.subject == "Pembayaran Berhasil"

    def test_comment_inside_sender_line(self):
        headers = extract_forwarded_headers("From: Bank<!-- x --> Ops\n")
        assert headers.sender == "Bank Ops"


# ===========================================================================
# extract_transaction_details
# ===========================================================================

class TestExtractTransactionDetails:

    def test_extracts_all_four_fields(self):
        details = extract_transaction_details(_transaction_markup())

        assert details.penerima == "John Smith"
        assert details.nominal == "Rp 150.000,00"
        assert details.no_ref == "20240517093012345"
        assert details.sumber_dana == "BCA - 1234567890"

    def test_penerima_heading_value(self):
        details = extract_transaction_details("<p>Penerima</p><h4>John Smith</h4>")
        assert details.penerima == "John Smith"

    def test_missing_penerima_renders_placeholder(self):
        details = extract_transaction_details("<p>Something else</p><h4>John Smith</h4>")

        assert details.penerima is None
        assert details.display_values()["penerima"] == NOT_AVAILABLE

    def test_empty_markup_returns_all_none(self):
        details = extract_transaction_details("")

        assert details.model_dump() == {
            "penerima": None,
            "nominal": None,
            "no_ref": None,
            "sumber_dana": None,
        }
        assert set(details.display_values().values()) == {"N/A"}

    def test_jumlah_transfer_label(self):
        details = extract_transaction_details(
            _transaction_markup(nominal_label="Jumlah Transfer", nominal="Rp 75.000")
        )
        assert details.nominal == "Rp 75.000"

    def test_first_amount_label_in_document_order_wins(self):
        markup = (
            "<tr><td>Jumlah Transfer</td><td>Rp 1</td></tr>"
            "<tr><td>Nominal Transaksi</td><td>Rp 2</td></tr>"
        )
        assert extract_transaction_details(markup).nominal == "Rp 1"

        reversed_markup = (
            "<tr><td>Nominal Transaksi</td><td>Rp 2</td></tr>"
            "<tr><td>Jumlah Transfer</td><td>Rp 1</td></tr>"
        )
        assert extract_transaction_details(reversed_markup).nominal == "Rp 2"

    def test_rekening_sumber_label(self):
        details = extract_transaction_details(
            _transaction_markup(sumber_label="Rekening Sumber", sumber_dana="MANDIRI - 999")
        )
        assert details.sumber_dana == "MANDIRI - 999"

    def test_reference_tolerates_space_after_dot(self):
        markup = "<td>No.   Referensi </td>\n<td class='v'>REF-42</td>"
        assert extract_transaction_details(markup).no_ref == "REF-42"

    def test_reference_requires_literal_dot(self):
        markup = "<td>No Referensi</td><td>REF-42</td>"
        assert extract_transaction_details(markup).no_ref is None

    def test_matching_is_case_insensitive(self):
        markup = "<P>PENERIMA</P><H4>Shouting Name</H4>"
        assert extract_transaction_details(markup).penerima == "Shouting Name"

    def test_value_is_not_greedy(self):
        markup = "<td>No. Referensi</td><td>A</td><td>B</td>"
        assert extract_transaction_details(markup).no_ref == "A"

    def test_blank_value_counts_as_missing(self):
        markup = "<p>Penerima</p><h4>   </h4>"
        assert extract_transaction_details(markup).penerima is None

    def test_plain_text_body_yields_no_fields(self):
        details = extract_transaction_details("Penerima\nJohn Smith\n")
        assert details.penerima is None


class TestFixtureEmail:
    """End-to-end extraction on the bundled forwarded Gmail message."""

    def test_forwarded_headers_from_text_body(self):
        email = normalize_raw((FIXTURES_DIR / "forwarded_payment.eml").read_bytes())
        headers = extract_forwarded_headers(email.text)

        assert headers.sender == "Livin by Mandiri <noreply.livin@bankmandiri.co.id>"
        assert headers.subject == "Pembayaran Berhasil!"
        assert headers.date == "Fri, 17 May 2024 at 09:30"

    def test_forwarded_headers_from_html_body(self):
        email = normalize_raw((FIXTURES_DIR / "forwarded_payment.eml").read_bytes())
        headers = extract_forwarded_headers(email.html)

        assert headers.sender == "Livin by Mandiri <noreply.livin@bankmandiri.co.id>"
        assert headers.subject == "Pembayaran Berhasil!"
        assert headers.date == "Fri, 17 May 2024 at 09:30"

    def test_transaction_details_from_html_body(self):
        email = normalize_raw((FIXTURES_DIR / "forwarded_payment.eml").read_bytes())
        details = extract_transaction_details(email.html)

        assert details.penerima == "TOKO MAJU JAYA"
        assert details.nominal == "Rp 150.000,00"
        assert details.no_ref == "20240517093012345"
        assert details.sumber_dana == "BUDI SANTOSO - 1234567890"
