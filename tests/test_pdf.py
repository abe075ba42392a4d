import io
import re

import pytest
from PIL import Image

from casedesk.pdf import PdfWriter


def _jpeg(width=4, height=2):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "red").save(buf, "JPEG")
    return buf.getvalue()


def _page_count(pdf):
    return pdf.count(b"/Type /Page /")


def _declared_count(pdf):
    return int(re.search(rb"/Count (\d+)", pdf).group(1))


def test_blank_document_structure():
    pdf = PdfWriter().render()
    assert pdf.startswith(b"%PDF-1.4")
    assert pdf.endswith(b"%%EOF\n")
    assert _page_count(pdf) == 1
    assert _declared_count(pdf) == 1


def test_xref_offsets_point_at_objects():
    writer = PdfWriter()
    writer.text("Hello", 12)
    writer.image(_jpeg(), 4, 2)
    pdf = writer.render()
    start = int(re.search(rb"startxref\n(\d+)\n", pdf).group(1))
    assert pdf[start:start + 4] == b"xref"
    entries = re.findall(rb"(\d{10}) 00000 n ", pdf[start:])
    assert entries
    for number, offset in enumerate(entries, start=1):
        position = int(offset)
        assert pdf[position:].startswith(f"{number} 0 obj".encode())


def test_text_is_escaped():
    writer = PdfWriter()
    writer.text("a (b) \\ c", 12)
    assert b"(a \\(b\\) \\\\ c) Tj" in writer.render()


def test_newlines_split_lines():
    writer = PdfWriter()
    writer.text("one\ntwo", 11)
    pdf = writer.render()
    assert b"(one) Tj" in pdf
    assert b"(two) Tj" in pdf


def test_long_paragraph_wraps_without_losing_words():
    writer = PdfWriter()
    writer.text("word " * 200, 11)
    pdf = writer.render()
    assert pdf.count(b" Tj") > 1
    assert pdf.count(b"word") == 200


def test_long_word_is_broken():
    writer = PdfWriter()
    writer.text("x" * 500, 12)
    pdf = writer.render()
    assert pdf.count(b" Tj") > 1
    assert pdf.count(b"x") >= 500


def test_many_lines_break_pages():
    writer = PdfWriter()
    writer.text("\n".join(f"line {i}" for i in range(200)), 12)
    pdf = writer.render()
    assert _page_count(pdf) >= 2
    assert _declared_count(pdf) == _page_count(pdf)
    assert b"(line 199) Tj" in pdf


def test_bold_uses_bold_font():
    writer = PdfWriter()
    writer.text("Heading", 13, True)
    pdf = writer.render()
    assert b"/F2 13.00 Tf" in pdf
    assert b"/BaseFont /Helvetica-Bold" in pdf


def test_non_latin_characters_are_replaced():
    writer = PdfWriter()
    writer.text("snow \u2603", 12)
    assert b"(snow ?) Tj" in writer.render()


def test_image_is_embedded():
    data = _jpeg()
    writer = PdfWriter()
    writer.image(data, 4, 2)
    pdf = writer.render()
    assert data in pdf
    assert b"/Filter /DCTDecode" in pdf
    assert b"/Width 4 /Height 2" in pdf
    assert b"/Im0 Do" in pdf


def test_image_rejects_bad_input():
    writer = PdfWriter()
    with pytest.raises(ValueError):
        writer.image(b"not a jpeg", 4, 2)
    with pytest.raises(ValueError):
        writer.image(_jpeg(), 0, 2)


def test_negative_gap_rejected():
    with pytest.raises(ValueError):
        PdfWriter().gap(-1)