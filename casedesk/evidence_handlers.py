"""Handlers for adding, viewing, analysing and deleting evidence."""

from __future__ import annotations

import re
import time
from http import HTTPStatus
from typing import Callable

from .database import NotFoundError, RepositoryError
from .deletion import hard_delete_evidence, soft_delete_evidence, update_evidence_content
from .evidence_repo import (
    add_evidence,
    extract_urls_from_case,
    get_evidence,
    get_evidence_type,
    get_image,
    top_text_evidence_words,
    upload_image,
)
from .models import EvidenceRequest, EvidenceType
from .state import DeleteStatus
from .web import Request, Response, Services

_ID = re.compile(r"[+-]?[0-9]+")
_UPLOAD_FAILURES = (RepositoryError, OSError, ValueError)


def _evidence_id(request: Request) -> int:
    text = request.param("evidenceid")
    if not _ID.fullmatch(text):
        raise ValueError(f"invalid evidence id: {text!r}")
    return int(text)


def _invalid_id() -> Response:
    return Response.error(HTTPStatus.BAD_REQUEST, "Invalid evidence ID")


def add_text_evidence_handler(services: Services, request: Request) -> Response:
    officer_id = request.locals.get("user_id")
    if not isinstance(officer_id, str):
        return Response.error(HTTPStatus.UNAUTHORIZED, "User ID not found in token")
    try:
        body = request.fields(case_number=str, type=str, content=str, remarks=str, size=str)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request")
    if body["type"] != EvidenceType.TEXT.value:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid type for this endpoint")

    evidence = EvidenceRequest(
        case_number=body["case_number"] or "",
        officer_id=officer_id,
        type=EvidenceType.TEXT,
        content=body["content"] or "",
        remarks=body["remarks"] or "",
        size=body["size"] or "",
    )
    try:
        evidence_id = add_evidence(services.db, evidence)
    except RepositoryError:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Could not add text evidence")
    return Response(HTTPStatus.OK, {"message": "Text evidence added", "evidence_id": evidence_id})


def add_image_evidence_handler(services: Services, request: Request) -> Response:
    officer_id = request.locals.get("user_id")
    if not isinstance(officer_id, str):
        return Response.error(HTTPStatus.UNAUTHORIZED, "User ID not found in token")

    case_number = request.form.get("case_number", "")
    remarks = request.form.get("remarks", "")
    if not case_number:
        return Response.error(HTTPStatus.BAD_REQUEST, "case_number is required")
    upload = request.files.get("image")
    if upload is None:
        return Response.error(HTTPStatus.BAD_REQUEST, "Image file is required")

    filename, data, content_type = upload
    try:
        object_name, url, size = upload_image(
            services.store, filename, data, content_type, services.storage_endpoint
        )
    except _UPLOAD_FAILURES:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Object storage upload failed")

    evidence = EvidenceRequest(
        case_number=case_number,
        officer_id=officer_id,
        type=EvidenceType.IMAGE,
        content=object_name,
        remarks=remarks,
        size=size,
    )
    try:
        evidence_id = add_evidence(services.db, evidence)
    except RepositoryError:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Could not insert image evidence")

    return Response(
        HTTPStatus.OK,
        {
            "message": "Image evidence added successfully",
            "evidence_id": evidence_id,
            "minio_url": url,
            "contentSize": size,
        },
    )


def get_evidence_handler(services: Services, request: Request) -> Response:
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()
    try:
        evidence = get_evidence(services.db, evidence_id)
    except NotFoundError:
        return Response.error(HTTPStatus.NOT_FOUND, "Evidence not found")

    if evidence.type == EvidenceType.IMAGE:
        return Response(
            HTTPStatus.OK, {"type": "image", "remarks": evidence.remarks, "size": evidence.size}
        )
    return Response(
        HTTPStatus.OK, {"type": "text", "remarks": evidence.remarks, "content": evidence.content}
    )


def get_image_evidence_handler(services: Services, request: Request) -> Response:
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()
    try:
        data, content_type = get_image(services.db, services.store, evidence_id)
    except RepositoryError as exc:
        return Response.error(HTTPStatus.NOT_FOUND, str(exc))
    return Response(HTTPStatus.OK, data, {"Content-Type": content_type})


def update_evidence_handler(services: Services, request: Request) -> Response:
    """Replace the text of text evidence, or the file of image evidence."""
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()
    try:
        kind = get_evidence_type(services.db, evidence_id)
    except NotFoundError:
        return Response.error(HTTPStatus.NOT_FOUND, "Evidence not found")

    if kind == EvidenceType.TEXT:
        try:
            content = request.fields(content=str)["content"] or ""
        except ValueError:
            content = ""
        if not content.strip():
            return Response.error(HTTPStatus.BAD_REQUEST, "Invalid or empty text content")
        try:
            update_evidence_content(services.db, evidence_id, content, "")
        except RepositoryError:
            return Response.error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to update text evidence"
            )
        return Response(HTTPStatus.OK, {"message": "Text evidence updated successfully"})

    if kind == EvidenceType.IMAGE:
        upload = request.files.get("image")
        if upload is None:
            return Response.error(HTTPStatus.BAD_REQUEST, "Image file required for update")
        filename, data, content_type = upload
        try:
            object_name, _, size = upload_image(
                services.store, filename, data, content_type, services.storage_endpoint
            )
        except _UPLOAD_FAILURES:
            return Response.error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Image upload to object storage failed"
            )
        try:
            update_evidence_content(services.db, evidence_id, object_name, size)
        except RepositoryError:
            return Response.error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to update image evidence"
            )
        return Response(HTTPStatus.OK, {"message": "Image evidence updated successfully"})

    return Response.error(HTTPStatus.BAD_REQUEST, "Unsupported evidence type")


def top_words_handler(services: Services, request: Request) -> Response:
    try:
        words = top_text_evidence_words(services.db)
    except RepositoryError:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to analyse text evidence")
    return Response(HTTPStatus.OK, {"top_words": words})


def case_urls_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID")
    try:
        links = extract_urls_from_case(services.db, case_id)
    except RepositoryError:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to extract URLs")
    return Response(HTTPStatus.OK, {"urls": links})


def soft_delete_evidence_handler(services: Services, request: Request) -> Response:
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()
    user_id = request.locals.get("user_id", "")
    try:
        soft_delete_evidence(services.db, evidence_id, user_id)
    except RepositoryError as exc:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
    return Response(
        HTTPStatus.OK, {"message": "Evidence soft-deleted successfully and audit log added"}
    )


def hard_delete_evidence_handler(services: Services, request: Request) -> Response:
    """Three-step deletion: POST starts, PATCH confirms, DELETE executes."""
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()
    user_id = request.locals.get("user_id", "")
    tracker = services.tracker
    method = request.method.upper()

    if method == "POST":
        tracker.set_status(evidence_id, DeleteStatus.INITIATED)
        return Response(
            HTTPStatus.OK,
            {
                "message": "Are you sure you want to permanently delete Evidence ID: "
                f"{request.param('evidenceid')}? Send PATCH with confirm: 'yes' in json."
            },
        )

    if method == "PATCH":
        try:
            confirm = request.fields(confirm=str)["confirm"]
        except ValueError:
            confirm = None
        if confirm != "yes":
            return Response.error(
                HTTPStatus.BAD_REQUEST,
                "Confirmation failed. Send PATCH with JSON with key confirm and value yes",
            )
        tracker.set_status(evidence_id, DeleteStatus.CONFIRMED)
        return Response(
            HTTPStatus.OK,
            {"message": "Confirmation accepted. Now send DELETE to complete hard deletion."},
        )

    if method == "DELETE":
        if tracker.get_status(evidence_id) != DeleteStatus.CONFIRMED:
            return Response.error(
                HTTPStatus.BAD_REQUEST,
                "Confirmation required. First send PATCH with JSON key 'confirm' "
                "and value yes before DELETE.",
            )
        tracker.set_status(evidence_id, DeleteStatus.DELETING)
        try:
            hard_delete_evidence(services.db, services.store, evidence_id, user_id)
        except RepositoryError as exc:
            tracker.set_status(evidence_id, DeleteStatus.FAILED)
            return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
        tracker.set_status(evidence_id, DeleteStatus.DONE)
        return Response(
            HTTPStatus.OK,
            {
                "message": "Evidence hard-deleted successfully.",
                "evidence_id": evidence_id,
                "status": DeleteStatus.DONE.value,
            },
        )

    return Response.error(
        HTTPStatus.METHOD_NOT_ALLOWED,
        "Unsupported method. Use POST to start, PATCH to confirm, DELETE to execute.",
    )


def long_poll_delete_status(
    services: Services,
    request: Request,
    timeout: float = 30.0,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Response:
    """Wait until a hard deletion is done or failed, checking every interval."""
    try:
        evidence_id = _evidence_id(request)
    except ValueError:
        return _invalid_id()

    tracker = services.tracker
    waited = 0.0
    while waited < timeout:
        sleep(interval)
        waited += interval
        current = tracker.get_status(evidence_id)
        if current in (DeleteStatus.DONE, DeleteStatus.FAILED):
            tracker.clear_status(evidence_id)
            return Response(
                HTTPStatus.OK, {"status": current.value, "message": "Deletion status resolved"}
            )

    current = tracker.get_status(evidence_id)
    return Response(
        HTTPStatus.OK,
        {
            "status": current.value if current else "",
            "message": "Timeout reached, no final status yet",
        },
    )