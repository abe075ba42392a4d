"""A small PDF writer for flowing text and JPEG images on A4 pages."""

from __future__ import annotations

PT_PER_MM = 72 / 25.4
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 10.0
BOTTOM_MARGIN_MM = 20.0
IMAGE_WIDTH_MM = 60.0
BOLD_WIDTH_FACTOR = 1.08

_HELVETICA_WIDTHS = dict(
    zip(
        map(chr, range(32, 127)),
        (
            278, 278, 355, 556, 556, 889, 667, 191, 333, 333, 389, 584, 278, 333, 278, 278,
            556, 556, 556, 556, 556, 556, 556, 556, 556, 556,
            278, 278, 584, 584, 584, 556, 1015,
            667, 667, 722, 722, 667, 611, 778, 722, 278, 500, 667, 556, 833,
            722, 778, 667, 778, 722, 667, 611, 722, 667, 944, 667, 667, 611,
            278, 278, 278, 469, 556, 333,
            556, 556, 500, 556, 556, 278, 556, 556, 222, 222, 500, 222, 833,
            556, 556, 556, 556, 333, 500, 278, 556, 500, 722, 500, 500, 500,
            334, 260, 334, 584,
        ),
    )
)
_DEFAULT_WIDTH = 556


def _text_width(text: str, size: float, bold: bool) -> float:
    """Estimated width in points of text set in Helvetica."""
    units = sum(_HELVETICA_WIDTHS.get(ch, _DEFAULT_WIDTH) for ch in text)
    width = units * size / 1000
    return width * BOLD_WIDTH_FACTOR if bold else width


def _pdf_string(text: str) -> bytes:
    raw = text.replace("\t", " ").replace("\r", "").encode("cp1252", "replace")
    return raw.replace(b"\\", b"\\\\").replace(b"(", b"\\(").replace(b")", b"\\)")


def _stream(entries: str, data: bytes) -> bytes:
    header = f"<< {entries} /Length {len(data)} >>\nstream\n".encode("ascii")
    return header + data + b"\nendstream"


class PdfWriter:
    """Lays out lines of text and images top to bottom, breaking pages as needed."""

    def __init__(self) -> None:
        self._pages: list[list[bytes]] = []
        self._images: list[tuple[bytes, int, int]] = []
        self._y = MARGIN_MM
        self._new_page()

    def _new_page(self) -> None:
        self._pages.append([])
        self._y = MARGIN_MM

    def _ensure_room(self, height: float) -> None:
        if self._y + height > PAGE_HEIGHT_MM - BOTTOM_MARGIN_MM and self._y > MARGIN_MM:
            self._new_page()

    @staticmethod
    def _wrap(paragraph: str, size: float, bold: bool) -> list[str]:
        limit = (PAGE_WIDTH_MM - 2 * MARGIN_MM) * PT_PER_MM
        lines: list[str] = []
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if _text_width(candidate, size, bold) <= limit:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = word
            while len(current) > 1 and _text_width(current, size, bold) > limit:
                cut = 1
                while cut < len(current) and _text_width(current[: cut + 1], size, bold) <= limit:
                    cut += 1
                lines.append(current[:cut])
                current = current[cut:]
        lines.append(current)
        return lines

    def text(self, line: str, size: float = 12, bold: bool = False) -> None:
        """Write text, splitting it at newlines and wrapping it to the page width."""
        if size <= 0:
            raise ValueError("font size must be positive")
        line_height = size * 0.5
        font = "F2" if bold else "F1"
        x = MARGIN_MM * PT_PER_MM
        for paragraph in line.split("\n"):
            for piece in self._wrap(paragraph, size, bold):
                self._ensure_room(line_height)
                baseline = (PAGE_HEIGHT_MM - self._y - line_height / 2) * PT_PER_MM - size * 0.3
                self._pages[-1].append(
                    f"BT /{font} {size:.2f} Tf {x:.2f} {baseline:.2f} Td (".encode("ascii")
                    + _pdf_string(piece)
                    + b") Tj ET"
                )
                self._y += line_height

    def gap(self, height: float) -> None:
        """Move down by height millimetres."""
        if height < 0:
            raise ValueError("gap must not be negative")
        self._y += height

    def image(self, jpeg_bytes: bytes, width_px: int, height_px: int) -> None:
        """Place an RGB JPEG image, 60 mm wide, at the left margin."""
        if width_px <= 0 or height_px <= 0:
            raise ValueError("image dimensions must be positive")
        if not bytes(jpeg_bytes[:2]) == b"\xff\xd8":
            raise ValueError("image data is not a JPEG")
        height_mm = IMAGE_WIDTH_MM * height_px / width_px
        self._ensure_room(height_mm)
        self._images.append((bytes(jpeg_bytes), width_px, height_px))
        index = len(self._images) - 1
        width_pt = IMAGE_WIDTH_MM * PT_PER_MM
        height_pt = height_mm * PT_PER_MM
        x = MARGIN_MM * PT_PER_MM
        y = (PAGE_HEIGHT_MM - self._y - height_mm) * PT_PER_MM
        self._pages[-1].append(
            f"q {width_pt:.2f} 0 0 {height_pt:.2f} {x:.2f} {y:.2f} cm /Im{index} Do Q".encode(
                "ascii"
            )
        )
        self._y += height_mm

    def render(self) -> bytes:
        """Return the whole document as PDF bytes."""
        first_image = 6
        first_page = first_image + len(self._images)
        page_ids = [first_page + 2 * i for i in range(len(self._pages))]
        objects: dict[int, bytes] = {}

        kids = " ".join(f"{pid} 0 R" for pid in page_ids)
        objects[1] = b"<< /Type /Catalog /Pages 2 0 R >>"
        objects[2] = f"<< /Type /Pages /Kids [{kids}] /Count {len(page_ids)} >>".encode("ascii")
        objects[3] = (
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>"
        )
        objects[4] = (
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold"
            b" /Encoding /WinAnsiEncoding >>"
        )
        xobjects = " ".join(
            f"/Im{i} {first_image + i} 0 R" for i in range(len(self._images))
        )
        objects[5] = f"<< /Font << /F1 3 0 R /F2 4 0 R >> /XObject << {xobjects} >> >>".encode(
            "ascii"
        )
        for i, (data, width, height) in enumerate(self._images):
            objects[first_image + i] = _stream(
                f"/Type /XObject /Subtype /Image /Width {width} /Height {height}"
                " /ColorSpace /DeviceRGB /BitsPerComponent 8 /Filter /DCTDecode",
                data,
            )
        media_box = f"[0 0 {PAGE_WIDTH_MM * PT_PER_MM:.2f} {PAGE_HEIGHT_MM * PT_PER_MM:.2f}]"
        for pid, ops in zip(page_ids, self._pages):
            objects[pid] = (
                f"<< /Type /Page /Parent 2 0 R /MediaBox {media_box}"
                f" /Resources 5 0 R /Contents {pid + 1} 0 R >>"
            ).encode("ascii")
            objects[pid + 1] = _stream("", b"\n".join(ops))

        out = bytearray(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
        offsets = []
        for number in range(1, len(objects) + 1):
            offsets.append(len(out))
            out += f"{number} 0 obj\n".encode("ascii") + objects[number] + b"\nendobj\n"
        xref_at = len(out)
        out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode("ascii")
        for offset in offsets:
            out += f"{offset:010d} 00000 n \n".encode("ascii")
        out += (
            f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
            f"startxref\n{xref_at}\n%%EOF\n"
        ).encode("ascii")
        return bytes(out)