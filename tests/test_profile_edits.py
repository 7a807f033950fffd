import pytest
from datetime import date

from app.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from app.models.profile_edit_request import EditRequestStatus
from app.services import department_service, profile_edit_service


@pytest.fixture
def engineering(db_session, admin_actor):
    return department_service.create_department(db_session, admin_actor, {"name": "Engineering"})


def test_approve_copies_requested_fields(db_session, admin_actor, employee, employee_actor, engineering):
    request = profile_edit_service.submit_profile_edit(
        db_session, employee_actor,
        requested_name="Jane Smith",
        requested_dob=date(1990, 5, 17),
        requested_department_id=engineering.id,
    )
    assert request.status == EditRequestStatus.PENDING.value

    approved = profile_edit_service.approve_profile_edit(db_session, admin_actor, request.id)
    assert approved.status == EditRequestStatus.APPROVED.value
    assert approved.decided_by == admin_actor.user_id

    db_session.refresh(employee)
    assert employee.name == "Jane Smith"
    assert employee.dob == date(1990, 5, 17)
    assert employee.department_id == engineering.id


def test_null_fields_keep_current_values(db_session, admin_actor, employee, employee_actor):
    request = profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_dob=date(1988, 1, 2))
    profile_edit_service.approve_profile_edit(db_session, admin_actor, request.id)

    db_session.refresh(employee)
    assert employee.name == "Jane Doe"
    assert employee.dob == date(1988, 1, 2)


def test_reject_leaves_employee_untouched(db_session, admin_actor, employee, employee_actor):
    request = profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_name="Someone Else")
    rejected = profile_edit_service.reject_profile_edit(db_session, admin_actor, request.id)
    assert rejected.status == EditRequestStatus.REJECTED.value

    db_session.refresh(employee)
    assert employee.name == "Jane Doe"


def test_decisions_are_final(db_session, admin_actor, employee_actor):
    request = profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_name="Jane Smith")
    profile_edit_service.reject_profile_edit(db_session, admin_actor, request.id)

    with pytest.raises(ConflictError):
        profile_edit_service.reject_profile_edit(db_session, admin_actor, request.id)
    with pytest.raises(ConflictError):
        profile_edit_service.approve_profile_edit(db_session, admin_actor, request.id)


def test_submit_requires_a_field(db_session, employee_actor):
    with pytest.raises(ValidationError):
        profile_edit_service.submit_profile_edit(db_session, employee_actor)


def test_submit_unknown_department(db_session, employee_actor):
    with pytest.raises(NotFoundError):
        profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_department_id=77)


def test_only_admin_decides(db_session, employee_actor):
    request = profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_name="Jane Smith")
    with pytest.raises(AccessDeniedError):
        profile_edit_service.approve_profile_edit(db_session, employee_actor, request.id)


def test_list_scoped_for_employee(db_session, admin_actor, employee_actor, make_employee):
    from app.models.profile import ProfileRole
    from app.schemas.auth import Actor

    other = make_employee(name="John Roe")
    other_actor = Actor(user_id=other.profile_id, role=ProfileRole.EMPLOYEE, employee_id=other.id)
    profile_edit_service.submit_profile_edit(db_session, employee_actor, requested_name="Jane Smith")
    profile_edit_service.submit_profile_edit(db_session, other_actor, requested_name="Johnny Roe")

    assert len(profile_edit_service.list_profile_edits(db_session, admin_actor)) == 2
    mine = profile_edit_service.list_profile_edits(db_session, employee_actor)
    assert [r.employee_id for r in mine] == [employee_actor.employee_id]
    assert profile_edit_service.list_profile_edits(db_session, admin_actor, EditRequestStatus.APPROVED) == []
