"""Storage and analysis of case evidence: text notes and uploaded images."""

from __future__ import annotations

import os
import re
import sqlite3
import uuid
from collections import Counter
from typing import Iterable, Optional

from .database import NotFoundError, RepositoryError
from .models import EvidenceFromID, EvidenceRequest, EvidenceType
from .storage import DEFAULT_CONTENT_TYPE, EVIDENCE_BUCKET, ObjectStore, Payload

TOP_WORDS_LIMIT = 10

STOP_WORDS = frozenset(
    {
        "the", "and", "to", "a", "of", "in", "on", "with",
        "at", "by", "for", "an", "was", "is", "were", "had",
        "be", "it", "that", "this", "as", "from", "but", "or",
        "are", "before", "after", "same",
    }
)

_WORD = re.compile(r"\b[a-zA-Z]+\b", re.ASCII)
_URL = re.compile(r"https?://[^\t\n\f\r \"'<>]+")


def add_evidence(db: sqlite3.Connection, evidence: EvidenceRequest) -> int:
    """Store a piece of evidence and return its id."""
    try:
        with db:
            cursor = db.execute(
                "INSERT INTO evidence (case_number, officer_id, type, content, size, remarks)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    evidence.case_number,
                    evidence.officer_id,
                    EvidenceType(evidence.type).value,
                    evidence.content,
                    evidence.size,
                    evidence.remarks,
                ),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc
    return cursor.lastrowid


def _extension(filename: str) -> str:
    base = filename.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def upload_image(
    store: ObjectStore,
    filename: str,
    data: Payload,
    content_type: str = DEFAULT_CONTENT_TYPE,
    endpoint: Optional[str] = None,
) -> tuple[str, str, str]:
    """Store an uploaded file under a fresh name.

    Returns the object name, its URL on the storage endpoint and a size
    description such as '512 bytes'.
    """
    if endpoint is None:
        endpoint = os.environ.get("MINIO_ENDPOINT", "")
    object_name = f"evidence/{uuid.uuid4()}{_extension(filename)}"
    try:
        stored = store.put_object(EVIDENCE_BUCKET, object_name, data, content_type)
    except OSError as exc:
        raise RepositoryError(f"failed to store {filename!r}: {exc}") from exc
    url = f"http://{endpoint}/{EVIDENCE_BUCKET}/{object_name}"
    return object_name, url, f"{stored.size} bytes"


def get_evidence(db: sqlite3.Connection, evidence_id: int) -> EvidenceFromID:
    row = db.execute(
        "SELECT type, remarks, content, size FROM evidence WHERE id = ? AND deleted = 0",
        (evidence_id,),
    ).fetchone()
    if row is None:
        raise NotFoundError("evidence not found")
    return EvidenceFromID(
        type=EvidenceType(row["type"]),
        remarks=row["remarks"],
        content=row["content"],
        size=row["size"],
    )


def get_image(db: sqlite3.Connection, store: ObjectStore, evidence_id: int) -> tuple[bytes, str]:
    """Return the bytes and content type of a live image evidence."""
    row = db.execute(
        "SELECT type, content FROM evidence WHERE id = ? AND deleted = 0", (evidence_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError("evidence not found")
    if row["type"] != EvidenceType.IMAGE.value:
        raise RepositoryError("evidence is not an image")

    try:
        stored = store.get_object(EVIDENCE_BUCKET, row["content"])
    except NotFoundError as exc:
        raise NotFoundError("failed to access image in object storage") from exc
    except (OSError, ValueError) as exc:
        raise RepositoryError("failed to access image in object storage") from exc

    if not stored.content_type.startswith("image/"):
        raise RepositoryError("file in object storage is not an image")
    return stored.data, stored.content_type


def get_evidence_type(db: sqlite3.Connection, evidence_id: int) -> EvidenceType:
    row = db.execute(
        "SELECT type FROM evidence WHERE id = ? AND deleted = 0", (evidence_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError("evidence not found")
    return EvidenceType(row["type"])


def top_words(texts: Iterable[str]) -> list[str]:
    """The ten most frequent words in the texts, ignoring case and stop words."""
    counts = Counter(
        word
        for text in texts
        for word in _WORD.findall(text.lower())
        if word not in STOP_WORDS
    )
    return [word for word, _ in counts.most_common(TOP_WORDS_LIMIT)]


def top_text_evidence_words(db: sqlite3.Connection) -> list[str]:
    rows = db.execute(
        "SELECT content FROM evidence WHERE type = 'text' AND deleted = 0 ORDER BY id"
    )
    return top_words(row["content"] for row in rows)


def find_urls(text: str) -> list[str]:
    """All http and https links in a piece of text, in order."""
    return _URL.findall(text)


def extract_urls_from_case(db: sqlite3.Connection, case_number: str) -> list[str]:
    """Links found in the live text evidence of a case."""
    rows = db.execute(
        "SELECT content FROM evidence"
        " WHERE case_number = ? AND type = 'text' AND deleted = 0 ORDER BY id",
        (case_number,),
    )
    return [url for row in rows for url in find_urls(row["content"])]