"""Printable PDF report of a case."""

from __future__ import annotations

import io
import sqlite3
from typing import Iterable

from PIL import Image

from .case_repo import get_case_details
from .database import RepositoryError
from .evidence_repo import get_image
from .pdf import PdfWriter
from .storage import ObjectStore

_BODY_SIZE = 11
_HEADING_SIZE = 13


def _section(pdf: PdfWriter, title: str, entries: Iterable[str], spacing: float = 0) -> None:
    pdf.gap(6)
    pdf.text(title, _HEADING_SIZE, True)
    pdf.gap(3)
    for entry in entries:
        pdf.text(entry, _BODY_SIZE)
        if spacing:
            pdf.gap(spacing)


def _as_jpeg(data: bytes) -> tuple[bytes, int, int]:
    with Image.open(io.BytesIO(data)) as img:
        rgb = img.convert("RGB")
    buf = io.BytesIO()
    rgb.save(buf, "JPEG")
    return buf.getvalue(), rgb.width, rgb.height


def generate_case_pdf(db: sqlite3.Connection, store: ObjectStore, case_number: str) -> bytes:
    """Build a PDF with a case's details, people, reports and live evidence."""
    details = get_case_details(db, case_number)

    pdf = PdfWriter()
    pdf.text(f"Case Report - {case_number}", 14, True)
    pdf.gap(5)
    pdf.text(
        "\n".join(
            [
                f"Case Name: {details.case_name}",
                f"Description: {details.description}",
                f"Location: {details.area}, {details.city}",
                f"Created By: {details.created_by}",
                f"Created At: {details.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
                f"Case Type: {details.case_type}",
                f"Level: {details.level}",
                f"Status: {details.status}",
                f"Reported By: {details.reported_by}",
                f"Assignees: {details.num_assignees}",
                f"Evidences: {details.num_evidences}",
                f"Suspects: {details.num_suspects}",
                f"Victims: {details.num_victims}",
                f"Witnesses: {details.num_witnesses}",
            ]
        ),
        12,
    )

    assignees = db.execute(
        "SELECT u.id, u.name, u.role, u.clearance_level FROM case_assignees ca"
        " JOIN users u ON u.id = ca.user_id WHERE ca.case_number = ? ORDER BY u.id",
        (case_number,),
    )
    _section(
        pdf,
        "Case Assignees",
        (
            f"ID: {r['id']} | Name: {r['name']} | Role: {r['role']}"
            f" | Clearance: {r['clearance_level']}"
            for r in assignees
        ),
    )

    people = db.execute(
        "SELECT type, name, age, gender, role FROM persons WHERE case_number = ? ORDER BY id",
        (case_number,),
    )
    _section(
        pdf,
        "People Involved",
        (
            f"Type: {r['type']} | Name: {r['name']} | Age: {r['age']}"
            f" | Gender: {r['gender']} | Role: {r['role']}"
            for r in people
        ),
    )

    reports = db.execute(
        "SELECT name, email, civil_id, description FROM reports"
        " WHERE case_number = ? ORDER BY report_id",
        (case_number,),
    )
    _section(
        pdf,
        "Citizen Reports Linked",
        (
            f"Name: {r['name']} | Email: {r['email']} | Civil ID: {r['civil_id']}\n"
            f"Description: {r['description']}"
            for r in reports
        ),
        spacing=2,
    )

    texts = db.execute(
        "SELECT content, remarks FROM evidence"
        " WHERE case_number = ? AND type = 'text' AND deleted = 0 ORDER BY id",
        (case_number,),
    )
    _section(
        pdf,
        "Text Evidence",
        (f"Remarks: {r['remarks']}\nContent: {r['content']}" for r in texts),
        spacing=2,
    )

    images = db.execute(
        "SELECT id, content, remarks, size FROM evidence"
        " WHERE case_number = ? AND type = 'image' AND deleted = 0 ORDER BY id",
        (case_number,),
    ).fetchall()
    _section(pdf, "Image Evidence", ())
    for row in images:
        pdf.text(
            f"ID: {row['id']} | Remarks: {row['remarks']}\n"
            f"Image Path: {row['content']}\nSize: {row['size']}",
            _BODY_SIZE,
        )
        pdf.gap(2)
        try:
            data, _ = get_image(db, store, row["id"])
            jpeg, width, height = _as_jpeg(data)
        except (RepositoryError, OSError, ValueError):
            continue
        pdf.image(jpeg, width, height)
        pdf.gap(5)

    return pdf.render()