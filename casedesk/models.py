"""Domain records shared by the repositories and the request handlers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class _StrEnum(str, Enum):
    """String enumeration whose str() is its wire value."""

    def __str__(self) -> str:
        return self.value


def _jsonable(value: Any) -> Any:
    """Turn records, enums and timestamps into JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.metadata.get("json", True)
        }
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


_HIDDEN = {"json": False}


class AuditAction(_StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    SOFT_DELETED = "soft_deleted"
    HARD_DELETED = "hard_deleted"


@dataclass
class AuditLog:
    id: int
    action: AuditAction
    evidence_id: int
    user_id: str
    timestamp: str


class CaseLevel(_StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CaseStatus(_StrEnum):
    PENDING = "pending"
    ONGOING = "ongoing"
    CLOSED = "closed"


class PersonType(_StrEnum):
    VICTIM = "victim"
    SUSPECT = "suspect"
    WITNESS = "witness"


class Gender(_StrEnum):
    MALE = "male"
    FEMALE = "female"


@dataclass
class Case:
    case_number: str
    case_name: str
    description: str
    area: str
    city: str
    created_by: str
    case_type: str
    level: CaseLevel
    status: CaseStatus
    created_at: str


@dataclass
class CaseRequest:
    case_name: str
    description: str
    area: str
    city: str
    level: CaseLevel


@dataclass
class CaseUpdate:
    """Partial update of a case; fields left as None are not changed."""

    case_number: str
    case_name: Optional[str] = None
    description: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    level: Optional[CaseLevel] = None
    status: Optional[CaseStatus] = None


@dataclass
class CaseStatusUpdate:
    case_number: str
    status: CaseStatus


@dataclass
class Person:
    id: int
    case_number: str
    type: PersonType
    name: str
    age: int
    gender: Gender
    role: str


@dataclass
class PersonRequest:
    case_number: str
    type: PersonType
    name: str
    age: int
    gender: Gender
    role: str


@dataclass
class CaseDetails:
    """A case together with counts of what is attached to it."""

    case_number: str
    case_name: str
    description: str
    area: str
    city: str
    created_by: str
    created_at: datetime
    case_type: str
    level: CaseLevel
    status: CaseStatus
    reported_by: int = 0
    num_assignees: int = 0
    num_evidences: int = 0
    num_suspects: int = 0
    num_victims: int = 0
    num_witnesses: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


class EvidenceType(_StrEnum):
    TEXT = "text"
    IMAGE = "image"


@dataclass
class EvidenceRequest:
    """New evidence; content is the text itself or the stored object's name."""

    case_number: str
    officer_id: str
    type: EvidenceType
    content: str
    remarks: str = ""
    size: str = ""


@dataclass
class EvidenceFromID:
    type: EvidenceType
    remarks: str
    content: str
    size: str


@dataclass
class EvidenceWithID:
    id: int
    type: EvidenceType
    remarks: str
    content: str
    size: str


class UserRole(_StrEnum):
    ADMIN = "admin"
    INVESTIGATOR = "investigator"
    OFFICER = "officer"
    AUDITOR = "auditor"


class ClearanceLevel(_StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class LoginRequest:
    user_id: str
    password: str


@dataclass
class User:
    id: str
    name: str
    role: UserRole
    clearance_level: ClearanceLevel
    password: str = field(default="", metadata=_HIDDEN)
    deleted: bool = field(default=False, metadata=_HIDDEN)

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class UserCreate:
    name: str
    password: str
    role: UserRole
    clearance_level: ClearanceLevel


@dataclass
class UserUpdate:
    """Partial update of a user; fields left as None are not changed."""

    id: str
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    clearance_level: Optional[ClearanceLevel] = None


@dataclass
class FullCaseDetails(CaseDetails):
    """Case details with the assignees, evidence and people listed."""

    assignees: list[User] = field(default_factory=list)
    evidence: list[EvidenceWithID] = field(default_factory=list)
    people: list[Person] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class CrimeReportRequest:
    email: str
    civil_id: str
    name: str
    description: str
    area: str
    city: str


@dataclass
class Report:
    report_id: int
    email: str
    civil_id: str
    name: str
    role: str
    case_number: Optional[str]
    description: str
    area: str
    city: str

    def to_dict(self) -> dict[str, Any]:
        data = _jsonable(self)
        if self.case_number is None:
            del data["case_number"]
        return data