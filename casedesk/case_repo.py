"""Storage of cases, the people involved in them and their assignees."""

from __future__ import annotations

import dataclasses
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Type

from .clearance import ClearanceError, is_clearance_sufficient
from .database import NotFoundError, RepositoryError
from .models import (
    CaseDetails,
    CaseLevel,
    CaseRequest,
    CaseStatus,
    CaseStatusUpdate,
    CaseUpdate,
    ClearanceLevel,
    EvidenceType,
    EvidenceWithID,
    FullCaseDetails,
    Gender,
    Person,
    PersonRequest,
    PersonType,
    User,
    UserRole,
)

DESCRIPTION_LIMIT = 100
_ELLIPSIS = " ..."


@contextmanager
def _transaction(db: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    try:
        with db:
            yield db
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def _value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _as(enum_cls: Type[Enum], raw: Any) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def truncate_description(desc: str) -> str:
    """Shorten a description over 100 characters at a word boundary, adding ' ...'."""
    if len(desc) <= DESCRIPTION_LIMIT:
        return desc
    last_space = desc[: DESCRIPTION_LIMIT - len(_ELLIPSIS)].rfind(" ")
    if last_space == -1:
        return _ELLIPSIS
    return desc[:last_space] + _ELLIPSIS


def _next_case_number(db: sqlite3.Connection) -> str:
    (count,) = db.execute("SELECT COUNT(*) FROM cases").fetchone()
    number = count + 1
    while db.execute(
        "SELECT 1 FROM cases WHERE case_number = ?", (f"C{number:04d}",)
    ).fetchone():
        number += 1
    return f"C{number:04d}"


def create_case(db: sqlite3.Connection, request: CaseRequest, created_by: str) -> str:
    """Insert a new case and return its case number."""
    description = truncate_description(request.description)
    with _transaction(db):
        case_number = _next_case_number(db)
        db.execute(
            "INSERT INTO cases (case_number, case_name, description, area, city, created_by, level)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                case_number,
                request.case_name,
                description,
                request.area,
                request.city,
                created_by,
                _value(request.level),
            ),
        )
    return case_number


def update_case(db: sqlite3.Connection, update: CaseUpdate) -> None:
    """Apply the fields of a partial update that are set."""
    if not update.case_number:
        raise ValueError("case_number is required")

    changes = {
        "case_name": update.case_name,
        "description": (
            None if update.description is None else truncate_description(update.description)
        ),
        "area": update.area,
        "city": update.city,
        "level": update.level,
        "status": update.status,
    }
    changes = {column: _value(v) for column, v in changes.items() if v is not None}
    if not changes:
        raise ValueError("no valid fields provided to update")

    assignments = ", ".join(f"{column} = ?" for column in changes)
    with _transaction(db):
        db.execute(
            f"UPDATE cases SET {assignments} WHERE case_number = ?",
            (*changes.values(), update.case_number),
        )


def update_case_status(db: sqlite3.Connection, update: CaseStatusUpdate) -> None:
    if not update.case_number:
        raise ValueError("case_number is required")
    with _transaction(db):
        db.execute(
            "UPDATE cases SET status = ? WHERE case_number = ?",
            (_value(update.status), update.case_number),
        )


def add_person_to_case(db: sqlite3.Connection, person: PersonRequest) -> int:
    """Record a victim, suspect or witness and return the new person's id."""
    with _transaction(db):
        cursor = db.execute(
            "INSERT INTO persons (case_number, type, name, age, gender, role)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (
                person.case_number,
                _value(person.type),
                person.name,
                person.age,
                _value(person.gender),
                person.role,
            ),
        )
    return cursor.lastrowid


def get_case_level(db: sqlite3.Connection, case_number: str) -> CaseLevel:
    row = db.execute("SELECT level FROM cases WHERE case_number = ?", (case_number,)).fetchone()
    if row is None:
        raise NotFoundError("could not find case or retrieve level")
    return CaseLevel(row["level"])


_DETAILS_QUERY = """
SELECT
    c.case_number, c.case_name, c.description, c.area, c.city,
    c.created_by, c.created_at, c.case_type, c.level, c.status,
    (SELECT COUNT(*) FROM reports WHERE case_number = c.case_number) AS reported_by,
    (SELECT COUNT(*) FROM case_assignees WHERE case_number = c.case_number) AS num_assignees,
    (SELECT COUNT(*) FROM evidence WHERE case_number = c.case_number AND deleted = 0)
        AS num_evidences,
    (SELECT COUNT(*) FROM persons WHERE case_number = c.case_number AND type = 'suspect')
        AS num_suspects,
    (SELECT COUNT(*) FROM persons WHERE case_number = c.case_number AND type = 'victim')
        AS num_victims,
    (SELECT COUNT(*) FROM persons WHERE case_number = c.case_number AND type = 'witness')
        AS num_witnesses
FROM cases c
WHERE c.case_number = ?
"""


def get_case_details(db: sqlite3.Connection, case_number: str) -> CaseDetails:
    """Return a case with counts of its reports, assignees, evidence and people."""
    row = db.execute(_DETAILS_QUERY, (case_number,)).fetchone()
    if row is None:
        raise NotFoundError(f"case {case_number!r} not found")
    return CaseDetails(
        case_number=row["case_number"],
        case_name=row["case_name"],
        description=row["description"],
        area=row["area"],
        city=row["city"],
        created_by=row["created_by"],
        created_at=datetime.fromisoformat(row["created_at"]),
        case_type=row["case_type"],
        level=_as(CaseLevel, row["level"]),
        status=_as(CaseStatus, row["status"]),
        reported_by=row["reported_by"],
        num_assignees=row["num_assignees"],
        num_evidences=row["num_evidences"],
        num_suspects=row["num_suspects"],
        num_victims=row["num_victims"],
        num_witnesses=row["num_witnesses"],
    )


def get_full_case_details(db: sqlite3.Connection, case_number: str) -> FullCaseDetails:
    """Return case details together with assignees, live evidence and people."""
    base = get_case_details(db, case_number)

    assignees = [
        User(
            id=row["id"],
            name=row["name"],
            role=_as(UserRole, row["role"]),
            clearance_level=_as(ClearanceLevel, row["clearance_level"]),
        )
        for row in db.execute(
            "SELECT id, name, role, clearance_level FROM users WHERE id IN"
            " (SELECT user_id FROM case_assignees WHERE case_number = ?)",
            (case_number,),
        )
    ]
    evidence = [
        EvidenceWithID(
            id=row["id"],
            type=_as(EvidenceType, row["type"]),
            remarks=row["remarks"],
            content=row["content"],
            size=row["size"],
        )
        for row in db.execute(
            "SELECT id, type, remarks, content, size FROM evidence"
            " WHERE case_number = ? AND deleted = 0",
            (case_number,),
        )
    ]
    people = [
        Person(
            id=row["id"],
            case_number=case_number,
            type=_as(PersonType, row["type"]),
            name=row["name"],
            age=row["age"],
            gender=_as(Gender, row["gender"]),
            role=row["role"],
        )
        for row in db.execute(
            "SELECT id, type, name, age, gender, role FROM persons WHERE case_number = ?",
            (case_number,),
        )
    ]
    fields = {f.name: getattr(base, f.name) for f in dataclasses.fields(base)}
    return FullCaseDetails(**fields, assignees=assignees, evidence=evidence, people=people)


def assign_user_to_case(db: sqlite3.Connection, target_user_id: str, case_number: str) -> None:
    """Assign a live user to a case; officers need clearance for the case's level."""
    user = db.execute(
        "SELECT role, clearance_level FROM users WHERE id = ? AND deleted = 0",
        (target_user_id,),
    ).fetchone()
    if user is None:
        raise NotFoundError("target user not found")

    case = db.execute(
        "SELECT level FROM cases WHERE case_number = ?", (case_number,)
    ).fetchone()
    if case is None:
        raise NotFoundError("case not found")

    if user["role"] == "officer" and not is_clearance_sufficient(
        user["clearance_level"], case["level"]
    ):
        raise ClearanceError("officer's clearance level is insufficient for this case")

    try:
        with db:
            db.execute(
                "INSERT OR IGNORE INTO case_assignees (case_number, user_id) VALUES (?, ?)",
                (case_number, target_user_id),
            )
    except sqlite3.Error as exc:
        raise RepositoryError("failed to assign user to case") from exc