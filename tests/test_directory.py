import pytest
from datetime import date
from decimal import Decimal

from app.core.exceptions import AccessDeniedError, ConflictError, DuplicateError, ValidationError
from app.models.employee import Employee
from app.models.leave_request import Leave
from app.models.payroll import Payroll
from app.models.profile import Profile
from app.models.salary_structure import SalaryStructure
from app.services import department_service, employee_service, leave_service, payroll_service


def test_create_department_with_manager_stores_department_id(db_session, admin_actor, employee):
    department = department_service.create_department(db_session, admin_actor, {
        "name": "Finance",
        "description": "Money matters",
        "manager_id": employee.profile_id,
    })
    manager = db_session.get(Profile, employee.profile_id)
    assert department.manager_id == manager.id
    assert manager.department_id == department.id

    data = department_service.department_to_dict(db_session, department)
    assert data["manager_name"] == "Jane Doe"
    assert data["employee_count"] == 0


def test_admin_cannot_be_department_manager(db_session, admin_actor, admin_user):
    with pytest.raises(ValidationError):
        department_service.create_department(db_session, admin_actor, {"name": "Ops", "manager_id": admin_user.id})


def test_duplicate_department_name(db_session, admin_actor):
    department_service.create_department(db_session, admin_actor, {"name": "Sales"})
    with pytest.raises(DuplicateError):
        department_service.create_department(db_session, admin_actor, {"name": "Sales"})


def test_department_with_employees_cannot_be_deleted(db_session, admin_actor, make_employee):
    department = department_service.create_department(db_session, admin_actor, {"name": "Support"})
    make_employee(name="Sam Support", department_id=department.id)
    with pytest.raises(ConflictError):
        department_service.delete_department(db_session, admin_actor, department.id)


def test_update_department_manager(db_session, admin_actor, employee):
    department = department_service.create_department(db_session, admin_actor, {"name": "Legal"})
    updated = department_service.update_department(
        db_session, admin_actor, department.id, {"manager_id": employee.profile_id}
    )
    assert updated.manager_id == employee.profile_id
    cleared = department_service.update_department(db_session, admin_actor, department.id, {"manager_id": None})
    assert cleared.manager_id is None


def test_employee_cannot_manage_departments(db_session, employee_actor):
    with pytest.raises(AccessDeniedError):
        department_service.create_department(db_session, employee_actor, {"name": "Shadow IT"})


def test_create_employee_creates_profile(db_session, employee):
    profile = db_session.get(Profile, employee.profile_id)
    assert profile.email == "jane.doe@example.com"
    assert profile.is_admin is False


def test_duplicate_employee_email_rolls_back(db_session, make_employee, employee):
    with pytest.raises(DuplicateError):
        make_employee(name="Jane Doe")
    assert db_session.query(Employee).count() == 1


def test_employee_can_read_only_self(db_session, employee, employee_actor, make_employee):
    assert employee_service.get_my_employee(db_session, employee_actor).id == employee.id
    other = make_employee(name="John Roe")
    with pytest.raises(AccessDeniedError):
        employee_service.get_employee(db_session, employee_actor, other.id)


def test_delete_employee_removes_everything(db_session, admin_actor, employee, employee_actor, leave_type, set_salary):
    department = department_service.create_department(db_session, admin_actor, {
        "name": "Ops", "manager_id": employee.profile_id
    })
    set_salary(employee.id)
    payroll_service.generate_payroll(db_session, admin_actor, employee.id, "2025-03")
    leave_service.allocate_leave_balance(db_session, admin_actor, employee.id, leave_type.id, 2030, Decimal("10"))
    leave_service.submit_leave(
        db_session, employee_actor, leave_type.id, date(2030, 3, 4), date(2030, 3, 5), today=date(2030, 1, 1)
    )
    profile_id = employee.profile_id
    employee_id = employee.id

    employee_service.delete_employee(db_session, admin_actor, employee_id)

    assert db_session.get(Employee, employee_id) is None
    assert db_session.get(Profile, profile_id) is None
    assert db_session.query(SalaryStructure).count() == 0
    assert db_session.query(Payroll).count() == 0
    assert db_session.query(Leave).count() == 0
    db_session.refresh(department)
    assert department.manager_id is None
