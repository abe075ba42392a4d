import io

import pytest
from PIL import Image

from casedesk.case_report import generate_case_pdf
from casedesk.case_repo import add_person_to_case, create_case
from casedesk.database import NotFoundError, open_database
from casedesk.evidence_repo import add_evidence, upload_image
from casedesk.models import (
    CaseLevel,
    CaseRequest,
    CrimeReportRequest,
    EvidenceRequest,
    EvidenceType,
    Gender,
    PersonRequest,
    PersonType,
)
from casedesk.report_repo import link_report_to_case, submit_crime_report
from casedesk.storage import DirectoryObjectStore, ensure_bucket


@pytest.fixture
def db():
    connection = open_database()
    yield connection
    connection.close()


@pytest.fixture
def store(tmp_path):
    object_store = DirectoryObjectStore(tmp_path)
    ensure_bucket(object_store)
    return object_store


@pytest.fixture
def case_number(db):
    return create_case(db, CaseRequest("Burglary", "Shop broken into", "Old Town", "Harbor", CaseLevel.LOW), "A001")


def _line(text):
    return b"(" + text.encode() + b") Tj"


def _png():
    buf = io.BytesIO()
    Image.new("RGB", (8, 6), "blue").save(buf, "PNG")
    return buf.getvalue()


def test_report_contains_case_details(db, store, case_number):
    pdf = generate_case_pdf(db, store, case_number)
    assert pdf.startswith(b"%PDF-")
    assert _line(f"Case Report - {case_number}") in pdf
    assert _line("Case Name: Burglary") in pdf
    assert _line("Location: Old Town, Harbor") in pdf
    assert _line("Status: pending") in pdf
    for heading in ("Case Assignees", "People Involved", "Citizen Reports Linked",
                    "Text Evidence", "Image Evidence"):
        assert _line(heading) in pdf


def test_report_lists_people_assignees_and_reports(db, store, case_number):
    with db:
        db.execute(
            "INSERT INTO users (id, name, password, role, clearance_level)"
            " VALUES ('O001', 'Olivia', 'placeholder', 'officer', 'low')"
        )
        db.execute(
            "INSERT INTO case_assignees (case_number, user_id) VALUES (?, 'O001')",
            (case_number,),
        )
    add_person_to_case(
        db, PersonRequest(case_number, PersonType.SUSPECT, "Sam", 30, Gender.MALE, "driver")
    )
    report_id = submit_crime_report(
        db, CrimeReportRequest("jane@example.com", "CIV-1", "Jane", "Heard glass", "Old Town", "Harbor")
    )
    link_report_to_case(db, report_id, case_number)

    pdf = generate_case_pdf(db, store, case_number)
    assert _line("ID: O001 | Name: Olivia | Role: officer | Clearance: low") in pdf
    assert _line("Type: suspect | Name: Sam | Age: 30 | Gender: male | Role: driver") in pdf
    assert _line("Name: Jane | Email: jane@example.com | Civil ID: CIV-1") in pdf
    assert _line("Description: Heard glass") in pdf
    assert _line("Suspects: 1") in pdf


def test_report_shows_live_text_evidence_only(db, store, case_number):
    add_evidence(db, EvidenceRequest(case_number, "O001", EvidenceType.TEXT, "door forced", "note one"))
    deleted = add_evidence(db, EvidenceRequest(case_number, "O001", EvidenceType.TEXT, "hidden text"))
    with db:
        db.execute("UPDATE evidence SET deleted = 1 WHERE id = ?", (deleted,))
    pdf = generate_case_pdf(db, store, case_number)
    assert _line("Remarks: note one") in pdf
    assert _line("Content: door forced") in pdf
    assert b"hidden text" not in pdf


def test_report_embeds_images(db, store, case_number):
    name, _, size = upload_image(store, "scene.png", _png(), "image/png", "host")
    evidence_id = add_evidence(
        db, EvidenceRequest(case_number, "O001", EvidenceType.IMAGE, name, "scene", size)
    )
    pdf = generate_case_pdf(db, store, case_number)
    assert _line(f"ID: {evidence_id} | Remarks: scene") in pdf
    assert _line(f"Image Path: {name}") in pdf
    assert b"/Filter /DCTDecode" in pdf
    assert b"/Width 8 /Height 6" in pdf


def test_undecodable_image_is_skipped(db, store, case_number):
    name, _, _ = upload_image(store, "broken.png", b"garbage", "image/png", "host")
    add_evidence(db, EvidenceRequest(case_number, "O001", EvidenceType.IMAGE, name, "broken"))
    pdf = generate_case_pdf(db, store, case_number)
    assert _line(f"Image Path: {name}") in pdf
    assert b"/DCTDecode" not in pdf


def test_unknown_case_raises(db, store):
    with pytest.raises(NotFoundError):
        generate_case_pdf(db, store, "C9999")