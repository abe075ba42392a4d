"""Soft and hard deletion of evidence and the audit log they write."""

from __future__ import annotations

import sqlite3

from .database import NotFoundError, RepositoryError
from .models import AuditAction, AuditLog, EvidenceType
from .storage import EVIDENCE_BUCKET, ObjectStore


def fetch_audit_logs(db: sqlite3.Connection) -> list[AuditLog]:
    """Return all audit entries, newest first; unreadable rows are skipped."""
    logs = []
    for row in db.execute(
        "SELECT id, action, evidence_id, user_id, timestamp FROM audit_logs"
        " ORDER BY timestamp DESC, id DESC"
    ):
        try:
            action = AuditAction(row["action"])
        except ValueError:
            continue
        logs.append(
            AuditLog(row["id"], action, row["evidence_id"], row["user_id"], row["timestamp"])
        )
    return logs


def _write_audit(db: sqlite3.Connection, action: AuditAction, evidence_id: int, user_id: str) -> None:
    with db:
        db.execute(
            "INSERT INTO audit_logs (action, evidence_id, user_id) VALUES (?, ?, ?)",
            (action.value, evidence_id, user_id),
        )


def update_evidence_content(
    db: sqlite3.Connection, evidence_id: int, content: str, size: str
) -> None:
    """Replace the content and size of evidence that is not deleted."""
    try:
        with db:
            db.execute(
                "UPDATE evidence SET content = ?, size = ? WHERE id = ? AND deleted = 0",
                (content, size, evidence_id),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def soft_delete_evidence(db: sqlite3.Connection, evidence_id: int, user_id: str) -> None:
    """Flag evidence as deleted and log it."""
    try:
        with db:
            cursor = db.execute(
                "UPDATE evidence SET deleted = 1 WHERE id = ? AND deleted = 0", (evidence_id,)
            )
    except sqlite3.Error as exc:
        raise RepositoryError("failed to soft delete or evidence already deleted") from exc
    if cursor.rowcount == 0:
        raise NotFoundError("failed to soft delete or evidence already deleted")

    try:
        _write_audit(db, AuditAction.SOFT_DELETED, evidence_id, user_id)
    except sqlite3.Error as exc:
        raise RepositoryError("soft deleted but failed to log audit") from exc


def hard_delete_evidence(
    db: sqlite3.Connection, store: ObjectStore, evidence_id: int, user_id: str
) -> None:
    """Remove evidence for good, with its stored image if any, and log it."""
    row = db.execute(
        "SELECT type, content FROM evidence WHERE id = ?", (evidence_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError("evidence not found")

    if row["type"] == EvidenceType.IMAGE.value:
        try:
            store.remove_object(EVIDENCE_BUCKET, row["content"])
        except Exception as exc:
            raise RepositoryError("failed to delete image from object storage") from exc

    try:
        with db:
            db.execute("DELETE FROM evidence WHERE id = ?", (evidence_id,))
    except sqlite3.Error as exc:
        raise RepositoryError("failed to delete evidence from database") from exc

    try:
        _write_audit(db, AuditAction.HARD_DELETED, evidence_id, user_id)
    except sqlite3.Error as exc:
        raise RepositoryError("evidence deleted but failed to write audit log") from exc