"""Storage of citizen crime reports."""

from __future__ import annotations

import sqlite3

from .database import NotFoundError, RepositoryError
from .models import CrimeReportRequest, Report


def submit_crime_report(db: sqlite3.Connection, report: CrimeReportRequest) -> int:
    """Store a citizen report and return its id."""
    try:
        with db:
            cursor = db.execute(
                "INSERT INTO reports (email, civil_id, name, description, area, city)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    report.email,
                    report.civil_id,
                    report.name,
                    report.description,
                    report.area,
                    report.city,
                ),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc
    return cursor.lastrowid


def get_all_reports(db: sqlite3.Connection) -> list[Report]:
    rows = db.execute(
        "SELECT report_id, email, civil_id, name, role, case_number, description, area, city"
        " FROM reports ORDER BY report_id"
    )
    return [Report(**dict(row)) for row in rows]


def link_report_to_case(db: sqlite3.Connection, report_id: int, case_number: str) -> None:
    try:
        with db:
            db.execute(
                "UPDATE reports SET case_number = ? WHERE report_id = ?",
                (case_number, report_id),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def get_report_status(db: sqlite3.Connection, report_id: int) -> str:
    """Return 'pending' for an unlinked report, else the linked case's status."""
    row = db.execute(
        "SELECT case_number FROM reports WHERE report_id = ?", (report_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError("report not found")
    if row["case_number"] is None:
        return "pending"

    case = db.execute(
        "SELECT status FROM cases WHERE case_number = ?", (row["case_number"],)
    ).fetchone()
    if case is None:
        raise NotFoundError("case related to report not found")
    return case["status"]