import pytest

from casedesk.case_repo import (
    add_person_to_case,
    assign_user_to_case,
    create_case,
    get_case_details,
    get_case_level,
    get_full_case_details,
    truncate_description,
    update_case,
    update_case_status,
)
from casedesk.clearance import ClearanceError
from casedesk.database import NotFoundError, RepositoryError, open_database
from casedesk.models import (
    CaseLevel,
    CaseRequest,
    CaseStatus,
    CaseStatusUpdate,
    CaseUpdate,
    Gender,
    PersonRequest,
    PersonType,
)


def _add_user(db, user_id, role, clearance, deleted=0):
    password = "password"
    with db:
        db.execute(
            "INSERT INTO users (id, name, password, role, clearance_level, deleted)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, f"user {user_id}", password, role, clearance, deleted),
        )


@pytest.fixture
def db():
    connection = open_database()
    _add_user(connection, "A001", "admin", "critical")
    _add_user(connection, "O001", "officer", "low")
    _add_user(connection, "O002", "officer", "critical")
    _add_user(connection, "I001", "investigator", "low")
    _add_user(connection, "O003", "officer", "critical", deleted=1)
    yield connection
    connection.close()


def _new_case(db, level=CaseLevel.MEDIUM, description="Broken window"):
    request = CaseRequest("Burglary", description, "Downtown", "Springfield", level)
    return create_case(db, request, "A001")


def test_truncate_keeps_short_description():
    text = "short and sweet"
    assert truncate_description(text) == text


def test_truncate_keeps_exactly_hundred_characters():
    text = "y" * 100
    assert truncate_description(text) == text


def test_truncate_cuts_at_last_space():
    text = "a" * 90 + " " + "b" * 20
    assert truncate_description(text) == "a" * 90 + " ..."


def test_truncate_without_space():
    assert truncate_description("x" * 150) == " ..."


def test_truncate_result_never_exceeds_limit():
    text = "word " * 60
    result = truncate_description(text)
    assert len(result) <= 100
    assert result.endswith(" ...")
    assert text.startswith(result[: -len(" ...")])


def test_create_case_round_trip(db):
    number = _new_case(db, CaseLevel.HIGH)
    details = get_case_details(db, number)
    assert details.case_number == number
    assert details.case_name == "Burglary"
    assert details.created_by == "A001"
    assert details.level is CaseLevel.HIGH
    assert details.status is CaseStatus.PENDING
    assert get_case_level(db, number) is CaseLevel.HIGH


def test_case_numbers_are_unique(db):
    numbers = {_new_case(db) for _ in range(5)}
    assert len(numbers) == 5


def test_create_case_truncates_description(db):
    long_text = "lorem ipsum " * 20
    number = _new_case(db, description=long_text)
    assert get_case_details(db, number).description == truncate_description(long_text)


def test_update_case_changes_only_given_fields(db):
    number = _new_case(db)
    update_case(db, CaseUpdate(number, city="Shelbyville", status=CaseStatus.ONGOING))
    details = get_case_details(db, number)
    assert details.city == "Shelbyville"
    assert details.status is CaseStatus.ONGOING
    assert details.area == "Downtown"
    assert details.case_name == "Burglary"


def test_update_case_requires_fields(db):
    number = _new_case(db)
    with pytest.raises(ValueError, match="no valid fields"):
        update_case(db, CaseUpdate(number))


def test_update_case_requires_case_number(db):
    with pytest.raises(ValueError, match="case_number is required"):
        update_case(db, CaseUpdate("", case_name="x"))


def test_update_case_rejects_bad_level(db):
    number = _new_case(db)
    with pytest.raises(RepositoryError):
        update_case(db, CaseUpdate(number, level="extreme"))


def test_update_case_status(db):
    number = _new_case(db)
    update_case_status(db, CaseStatusUpdate(number, CaseStatus.CLOSED))
    assert get_case_details(db, number).status is CaseStatus.CLOSED


def test_update_case_status_requires_case_number(db):
    with pytest.raises(ValueError):
        update_case_status(db, CaseStatusUpdate("", CaseStatus.CLOSED))


def test_people_are_counted(db):
    number = _new_case(db)
    ids = [
        add_person_to_case(db, PersonRequest(number, kind, "name", 30, Gender.MALE, "role"))
        for kind in (PersonType.SUSPECT, PersonType.SUSPECT, PersonType.VICTIM)
    ]
    assert len(set(ids)) == 3
    details = get_case_details(db, number)
    assert details.num_suspects == 2
    assert details.num_victims == 1
    assert details.num_witnesses == 0


def test_add_person_to_missing_case(db):
    person = PersonRequest("NOPE", PersonType.WITNESS, "Ann", 40, Gender.FEMALE, "neighbour")
    with pytest.raises(RepositoryError):
        add_person_to_case(db, person)


def test_missing_case(db):
    with pytest.raises(NotFoundError):
        get_case_details(db, "NOPE")
    with pytest.raises(NotFoundError):
        get_case_level(db, "NOPE")
    with pytest.raises(NotFoundError):
        get_full_case_details(db, "NOPE")


def test_officer_with_low_clearance_rejected(db):
    number = _new_case(db, CaseLevel.HIGH)
    with pytest.raises(ClearanceError):
        assign_user_to_case(db, "O001", number)
    assert get_case_details(db, number).num_assignees == 0


def test_investigator_ignores_clearance(db):
    number = _new_case(db, CaseLevel.CRITICAL)
    assign_user_to_case(db, "I001", number)
    assert get_case_details(db, number).num_assignees == 1


def test_assignment_is_idempotent(db):
    number = _new_case(db, CaseLevel.HIGH)
    assign_user_to_case(db, "O002", number)
    assign_user_to_case(db, "O002", number)
    assert get_case_details(db, number).num_assignees == 1


def test_assign_missing_or_deleted_user(db):
    number = _new_case(db)
    with pytest.raises(NotFoundError, match="target user not found"):
        assign_user_to_case(db, "X999", number)
    with pytest.raises(NotFoundError, match="target user not found"):
        assign_user_to_case(db, "O003", number)


def test_assign_to_missing_case(db):
    with pytest.raises(NotFoundError, match="case not found"):
        assign_user_to_case(db, "A001", "NOPE")


def test_full_case_details(db):
    number = _new_case(db, CaseLevel.LOW)
    assign_user_to_case(db, "O001", number)
    person_id = add_person_to_case(
        db, PersonRequest(number, PersonType.WITNESS, "Ann", 40, Gender.FEMALE, "neighbour")
    )
    with db:
        db.execute(
            "INSERT INTO evidence (case_number, officer_id, type, content) VALUES (?, ?, ?, ?)",
            (number, "O001", "text", "footprints"),
        )
        db.execute(
            "INSERT INTO evidence (case_number, officer_id, type, content, deleted)"
            " VALUES (?, ?, ?, ?, 1)",
            (number, "O001", "text", "gone"),
        )
    full = get_full_case_details(db, number)
    assert [user.id for user in full.assignees] == ["O001"]
    assert [item.content for item in full.evidence] == ["footprints"]
    assert [(p.id, p.name, p.gender) for p in full.people] == [(person_id, "Ann", Gender.FEMALE)]
    assert full.num_evidences == 1
    data = full.to_dict()
    assert data["case_number"] == number
    assert data["people"][0]["type"] == "witness"