"""Handlers for creating, updating and viewing cases."""

from __future__ import annotations

from http import HTTPStatus

from .case_report import generate_case_pdf
from .case_repo import (
    add_person_to_case,
    assign_user_to_case,
    create_case,
    get_case_details,
    get_case_level,
    get_full_case_details,
    update_case,
    update_case_status,
)
from .clearance import ClearanceError, check_clearance
from .database import NotFoundError, RepositoryError
from .models import CaseRequest, CaseStatusUpdate, CaseUpdate, PersonRequest
from .web import Request, Response, Services

_FAILURES = (RepositoryError, ValueError, ClearanceError)


def create_case_handler(services: Services, request: Request) -> Response:
    try:
        body = request.fields(case_name=str, description=str, area=str, city=str, level=str)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "request body not valid")

    user_id = request.locals.get("user_id")
    if user_id is None:
        return Response.error(
            HTTPStatus.UNAUTHORIZED, "Logged in users only -> You are not athorised"
        )

    case_request = CaseRequest(**{name: value or "" for name, value in body.items()})
    try:
        case_number = create_case(services.db, case_request, user_id)
    except _FAILURES:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "couldn't create case")

    return Response(
        HTTPStatus.CREATED,
        {
            "message": "Case was created successfully here is your case number. "
            "No one is assigned this case yet.",
            "case_number": case_number,
        },
    )


def update_case_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID in URL")
    try:
        body = request.fields(
            case_name=str, description=str, area=str, city=str, level=str, status=str
        )
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request body")

    try:
        update_case(services.db, CaseUpdate(case_number=case_id, **body))
    except _FAILURES as exc:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
    return Response(HTTPStatus.OK, {"message": "Case updated successfully"})


def update_case_status_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID in URL")
    try:
        body = request.fields(status=str)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid JSON payload")

    try:
        update_case_status(services.db, CaseStatusUpdate(case_id, body["status"] or ""))
    except _FAILURES as exc:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
    return Response(HTTPStatus.OK, {"message": "Case status updated successfully"})


def add_person_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID in URL")
    try:
        body = request.fields(type=str, name=str, age=int, gender=str, role=str)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid JSON payload")

    person = PersonRequest(
        case_number=case_id,
        type=body["type"] or "",
        name=body["name"] or "",
        age=body["age"] or 0,
        gender=body["gender"] or "",
        role=body["role"] or "",
    )
    try:
        person_id = add_person_to_case(services.db, person)
    except _FAILURES:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to add person to case")
    return Response(
        HTTPStatus.CREATED, {"message": "Person added successfully", "person_id": person_id}
    )


def _authorised_case(services: Services, request: Request) -> "str | Response":
    """Return the upper-cased case id the caller may see, or an error response."""
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Case ID missing")
    case_id = case_id.upper()

    try:
        level = get_case_level(services.db, case_id)
    except NotFoundError:
        return Response.error(HTTPStatus.NOT_FOUND, "Case not found")

    try:
        check_clearance(
            request.locals.get("role", ""), request.locals.get("clearance", ""), level
        )
    except ClearanceError as exc:
        return Response.error(HTTPStatus.FORBIDDEN, str(exc))
    return case_id


def get_partial_case_details_handler(services: Services, request: Request) -> Response:
    case_id = _authorised_case(services, request)
    if isinstance(case_id, Response):
        return case_id
    try:
        details = get_case_details(services.db, case_id)
    except _FAILURES:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to fetch case details")
    return Response(HTTPStatus.OK, details.to_dict())


def get_full_case_details_handler(services: Services, request: Request) -> Response:
    case_id = _authorised_case(services, request)
    if isinstance(case_id, Response):
        return case_id
    try:
        details = get_full_case_details(services.db, case_id)
    except _FAILURES:
        return Response.error(
            HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to fetch full case details"
        )
    return Response(HTTPStatus.OK, details.to_dict())


def add_officer_to_case_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID in URL")
    try:
        user_id = request.fields(user_id=str)["user_id"]
    except ValueError:
        user_id = None
    if not user_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "User ID is required in the JSON body")

    try:
        assign_user_to_case(services.db, user_id, case_id)
    except _FAILURES as exc:
        return Response.error(HTTPStatus.FORBIDDEN, str(exc))
    return Response(HTTPStatus.OK, {"message": "User successfully assigned to case"})


def generate_case_pdf_handler(services: Services, request: Request) -> Response:
    case_id = request.param("caseid")
    if not case_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "Missing case ID")
    try:
        document = generate_case_pdf(services.db, services.store, case_id)
    except (*_FAILURES, OSError) as exc:
        return Response.error(
            HTTPStatus.INTERNAL_SERVER_ERROR, f"Failed to generate PDF: {exc}"
        )
    return Response(
        HTTPStatus.OK,
        document,
        {
            "Content-Type": "application/pdf",
            "Content-Disposition": f'attachment; filename="case_report_{case_id}.pdf"',
        },
    )