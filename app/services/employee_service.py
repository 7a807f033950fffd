"""
Employee directory. Creating an employee also creates its login profile;
deleting one removes the employee row and its profile in one transaction.
"""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import NotFoundError
from app.models.department import Department
from app.models.employee import Employee
from app.models.profile import ProfileRole
from app.schemas.auth import Actor
from app.services import auth as auth_service
from app.services.access import ensure_self_or_admin, require_admin, require_employee_record

logger = logging.getLogger(__name__)


def _get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)
    return employee


def _check_department(db: Session, department_id: Optional[int]) -> None:
    if department_id is not None and not db.get(Department, department_id):
        raise NotFoundError("Department", department_id)


def list_employees(
    db: Session, actor: Actor, department_id: Optional[int] = None, search: Optional[str] = None
) -> List[Employee]:
    require_admin(actor)
    query = db.query(Employee).options(joinedload(Employee.department))
    if department_id:
        query = query.filter(Employee.department_id == department_id)
    if search:
        query = query.filter(Employee.name.ilike(f"%{search}%"))
    return query.order_by(Employee.name).all()


def get_employee(db: Session, actor: Actor, employee_id: int) -> Employee:
    ensure_self_or_admin(actor, employee_id)
    return _get_employee(db, employee_id)


def get_my_employee(db: Session, actor: Actor) -> Employee:
    return _get_employee(db, require_employee_record(actor))


def create_employee(db: Session, actor: Actor, data: Dict[str, Any]) -> Employee:
    require_admin(actor)
    _check_department(db, data.get("department_id"))
    try:
        profile = auth_service.create_profile(
            db, data["email"], data["password"], data["name"], ProfileRole.EMPLOYEE
        )
        employee = Employee(
            profile_id=profile.id,
            name=data["name"],
            email=data["email"],
            dob=data.get("dob"),
            phone=data.get("phone"),
            department_id=data.get("department_id"),
        )
        db.add(employee)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(employee)
    logger.info(f"Created employee {employee.id} with profile {profile.id}")
    return employee


def update_employee(db: Session, actor: Actor, employee_id: int, data: Dict[str, Any]) -> Employee:
    require_admin(actor)
    employee = _get_employee(db, employee_id)
    if "department_id" in data:
        _check_department(db, data["department_id"])
    for key in ("name", "dob", "phone", "department_id"):
        if key in data:
            setattr(employee, key, data[key])
    db.commit()
    db.refresh(employee)
    return employee


def delete_employee(db: Session, actor: Actor, employee_id: int) -> None:
    """Deletes the employee, everything it owns and its login profile atomically."""
    require_admin(actor)
    employee = _get_employee(db, employee_id)
    profile_id = employee.profile_id
    try:
        if profile_id is not None:
            db.query(Department).filter(Department.manager_id == profile_id).update(
                {"manager_id": None}, synchronize_session="fetch"
            )
        profile = employee.profile
        db.delete(employee)
        if profile is not None:
            db.delete(profile)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deleted employee {employee_id} and profile {profile_id}")


def employee_to_dict(employee: Employee) -> Dict[str, Any]:
    return {
        "id": employee.id,
        "profile_id": employee.profile_id,
        "name": employee.name,
        "email": employee.email,
        "dob": employee.dob,
        "phone": employee.phone,
        "department_id": employee.department_id,
        "department_name": employee.department.name if employee.department else None,
        "created_at": employee.created_at,
    }
