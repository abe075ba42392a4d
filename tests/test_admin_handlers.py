import bcrypt
import pytest

from casedesk.admin_handlers import (
    check_report_status_handler,
    create_user_handler,
    delete_user_handler,
    get_all_reports_handler,
    link_report_to_case_handler,
    submit_crime_report_handler,
    update_user_handler,
)
from casedesk.case_repo import create_case, update_case_status
from casedesk.database import NotFoundError, open_database
from casedesk.models import CaseRequest, CaseStatusUpdate
from casedesk.storage import DirectoryObjectStore
from casedesk.user_repo import get_credentials
from casedesk.web import Request, Services

PASSWORD = "password"


@pytest.fixture
def services(tmp_path):
    db = open_database(str(tmp_path / "casedesk.db"))
    yield Services(db=db, store=DirectoryObjectStore(tmp_path / "objects"))
    db.close()


def _report_body():
    return {
        "email": "citizen@example.com",
        "civil_id": "CIV-TEST",
        "name": "Jane Citizen",
        "description": "Bicycle taken from the yard",
        "area": "North",
        "city": "Springfield",
    }


def _submit(services):
    response = submit_crime_report_handler(services, Request(method="POST", body=_report_body()))
    assert response.status == 201
    return response.body["report_id"]


def _create_user(services, role="officer", clearance="low"):
    password = PASSWORD
    body = {"name": "Sam Officer", "password": password, "role": role, "clearance_level": clearance}
    response = create_user_handler(services, Request(method="POST", body=body))
    assert response.status == 201
    return response.body["created_id"]


def test_submit_report_is_listed(services):
    report_id = _submit(services)
    listing = get_all_reports_handler(services, Request())
    assert listing.status == 200
    assert [entry["report_id"] for entry in listing.body] == [report_id]
    assert listing.body[0]["email"] == "citizen@example.com"
    assert listing.body[0]["city"] == "Springfield"


def test_submit_report_message(services):
    response = submit_crime_report_handler(services, Request(method="POST", body=_report_body()))
    assert response.body["message"] == (
        "Report submitted successfully. Please keep your report ID to check status."
    )


def test_submit_report_rejects_bad_body(services):
    response = submit_crime_report_handler(services, Request(method="POST", body="not json"))
    assert response.status == 400
    assert response.body == {"error": "Invalid request body"}


def test_new_report_is_pending(services):
    report_id = _submit(services)
    response = check_report_status_handler(
        services, Request(params={"reportID": str(report_id)})
    )
    assert response.status == 200
    assert response.body == {"status": "pending"}


def test_check_status_rejects_non_numeric_id(services):
    response = check_report_status_handler(services, Request(params={"reportID": "abc"}))
    assert response.status == 400
    assert response.body == {"error": "Invalid report ID"}


def test_check_status_of_unknown_report(services):
    response = check_report_status_handler(services, Request(params={"reportID": "999"}))
    assert response.status == 500
    assert response.body == {"error": "report not found"}


def test_linked_report_follows_case_status(services):
    report_id = _submit(services)
    user_id = _create_user(services, role="investigator", clearance="high")
    case_number = create_case(
        services.db,
        CaseRequest(
            case_name="Yard theft",
            description="Bicycle taken",
            area="North",
            city="Springfield",
            level="low",
        ),
        user_id,
    )
    link = link_report_to_case_handler(
        services,
        Request(method="POST", params={"reportID": str(report_id)}, body={"case_number": case_number}),
    )
    assert link.status == 200
    assert link.body == {"message": "Report linked to case successfully"}

    update_case_status(services.db, CaseStatusUpdate(case_number, "closed"))
    status = check_report_status_handler(services, Request(params={"reportID": str(report_id)}))
    assert status.body == {"status": "closed"}


def test_link_rejects_bad_id(services):
    response = link_report_to_case_handler(
        services, Request(method="POST", params={"reportID": "x1"}, body={"case_number": "C1"})
    )
    assert response.status == 400
    assert response.body == {"error": "Invalid report ID"}


def test_link_rejects_bad_body(services):
    report_id = _submit(services)
    response = link_report_to_case_handler(
        services, Request(method="POST", params={"reportID": str(report_id)}, body=[1, 2])
    )
    assert response.status == 400
    assert response.body == {"error": "Invalid request body"}


def test_create_user_stores_hashed_credentials(services):
    password = PASSWORD
    body = {"name": "Sam Officer", "password": password, "role": "officer", "clearance_level": "medium"}
    response = create_user_handler(services, Request(method="POST", body=body))
    assert response.status == 201
    assert response.body["role"] == "officer"
    assert response.body["clearance"] == "medium"
    stored_hash, role, clearance = get_credentials(services.db, response.body["created_id"])
    assert (role, clearance) == ("officer", "medium")
    assert bcrypt.checkpw(password.encode(), stored_hash.encode())


def test_create_user_rejects_bad_body(services):
    response = create_user_handler(services, Request(method="POST", body={"name": 5}))
    assert response.status == 400
    assert response.body == {"error": "Invalid request"}


def test_update_user_changes_clearance(services):
    user_id = _create_user(services)
    response = update_user_handler(
        services,
        Request(method="PATCH", params={"id": user_id.lower()}, body={"clearance_level": "critical"}),
    )
    assert response.status == 200
    assert response.body == {"message": "User updated successfully"}
    assert get_credentials(services.db, user_id)[2] == "critical"


def test_update_user_requires_id(services):
    response = update_user_handler(services, Request(method="PATCH", body={"name": "X"}))
    assert response.status == 400
    assert response.body == {"error": "missing userID in the url"}


def test_update_user_without_fields(services):
    user_id = _create_user(services)
    response = update_user_handler(services, Request(method="PATCH", params={"id": user_id}, body={}))
    assert response.status == 400
    assert response.body == {"error": "no fields to update"}


def test_update_default_user_is_refused(services):
    response = update_user_handler(
        services, Request(method="PATCH", params={"id": "a001"}, body={"name": "Other"})
    )
    assert response.status == 400
    assert response.body == {"error": "can't change the default user"}


def test_update_user_rejects_bad_payload(services):
    response = update_user_handler(
        services, Request(method="PATCH", params={"id": "O001"}, body="garbage")
    )
    assert response.status == 400
    assert response.body == {"error": "Invalid update payload"}


def test_delete_user_marks_deleted(services):
    user_id = _create_user(services)
    response = delete_user_handler(services, Request(method="DELETE", params={"id": user_id}))
    assert response.body == {"message": "User marked as deleted"}
    with pytest.raises(NotFoundError):
        get_credentials(services.db, user_id)


def test_delete_default_user_fails(services):
    response = delete_user_handler(services, Request(method="DELETE", params={"id": "A001"}))
    assert response.status == 500
    assert response.body == {"error": "Failed to delete user"}