"""Handlers for citizen reports and for the administration of user accounts."""

from __future__ import annotations

import re
import sqlite3
from http import HTTPStatus

from .database import NotFoundError, RepositoryError
from .models import CrimeReportRequest, UserCreate, UserUpdate
from .report_repo import get_all_reports, get_report_status, link_report_to_case, submit_crime_report
from .user_repo import create_user, delete_user, update_user
from .web import Request, Response, Services

_ID = re.compile(r"[+-]?[0-9]+")


def _report_id(request: Request) -> int:
    text = request.param("reportID")
    if not _ID.fullmatch(text):
        raise ValueError(f"invalid report id: {text!r}")
    return int(text)


def submit_crime_report_handler(services: Services, request: Request) -> Response:
    """Accept a crime report from a member of the public."""
    try:
        body = request.fields(
            email=str, civil_id=str, name=str, description=str, area=str, city=str
        )
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request body")

    report = CrimeReportRequest(**{name: value or "" for name, value in body.items()})
    try:
        report_id = submit_crime_report(services.db, report)
    except (RepositoryError, sqlite3.Error):
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to submit report")

    return Response(
        HTTPStatus.CREATED,
        {
            "message": "Report submitted successfully. Please keep your report ID to check status.",
            "report_id": report_id,
        },
    )


def get_all_reports_handler(services: Services, request: Request) -> Response:
    try:
        reports = get_all_reports(services.db)
    except (RepositoryError, sqlite3.Error):
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to fetch reports")
    return Response(HTTPStatus.OK, [report.to_dict() for report in reports])


def link_report_to_case_handler(services: Services, request: Request) -> Response:
    try:
        report_id = _report_id(request)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid report ID")
    try:
        case_number = request.fields(case_number=str)["case_number"] or ""
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request body")

    try:
        link_report_to_case(services.db, report_id, case_number)
    except (RepositoryError, sqlite3.Error):
        return Response.error(
            HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to link report to case"
        )
    return Response(HTTPStatus.OK, {"message": "Report linked to case successfully"})


def check_report_status_handler(services: Services, request: Request) -> Response:
    """Tell a citizen whether their report is pending or how its case stands."""
    try:
        report_id = _report_id(request)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid report ID")
    try:
        status = get_report_status(services.db, report_id)
    except (NotFoundError, RepositoryError) as exc:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
    return Response(HTTPStatus.OK, {"status": status})


def create_user_handler(services: Services, request: Request) -> Response:
    try:
        body = request.fields(name=str, password=str, role=str, clearance_level=str)
        user = UserCreate(**{name: value or "" for name, value in body.items()})
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request")

    try:
        user_id = create_user(services.db, user)
    except (RepositoryError, ValueError, sqlite3.Error):
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "User creation failed")

    return Response(
        HTTPStatus.CREATED,
        {
            "message": "New user successfully created by admin",
            "created_id": user_id,
            "role": body["role"] or "",
            "clearance": body["clearance_level"] or "",
        },
    )


def update_user_handler(services: Services, request: Request) -> Response:
    user_id = request.param("id")
    if not user_id:
        return Response.error(HTTPStatus.BAD_REQUEST, "missing userID in the url")
    try:
        body = request.fields(name=str, password=str, role=str, clearance_level=str)
        update = UserUpdate(id=user_id, **body)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid update payload")

    try:
        update_user(services.db, update)
    except (RepositoryError, ValueError) as exc:
        return Response.error(HTTPStatus.BAD_REQUEST, str(exc))
    return Response(HTTPStatus.OK, {"message": "User updated successfully"})


def delete_user_handler(services: Services, request: Request) -> Response:
    try:
        delete_user(services.db, request.param("id"))
    except (RepositoryError, ValueError):
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to delete user")
    return Response(HTTPStatus.OK, {"message": "User marked as deleted"})