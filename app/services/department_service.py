from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, DuplicateError, NotFoundError, ValidationError
from app.models.department import Department
from app.models.employee import Employee
from app.models.profile import Profile, ProfileRole
from app.schemas.auth import Actor
from app.services.access import require_admin

logger = logging.getLogger(__name__)


def _get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)
    return department


def _resolve_manager(db: Session, manager_id: Optional[int]) -> Optional[Profile]:
    if manager_id is None:
        return None
    manager = db.get(Profile, manager_id)
    if not manager:
        raise NotFoundError("Profile", manager_id)
    if manager.role != ProfileRole.EMPLOYEE:
        raise ValidationError("A department manager must have the employee role", {"manager_id": manager_id})
    return manager


def _assign_manager(department: Department, manager: Optional[Profile]) -> None:
    department.manager_id = manager.id if manager else None
    if manager:
        # Stored as the department id in every path
        manager.department_id = department.id


def list_departments(db: Session) -> List[Department]:
    return db.query(Department).order_by(Department.name).all()


def get_department(db: Session, department_id: int) -> Department:
    return _get_department(db, department_id)


def create_department(db: Session, actor: Actor, data: Dict[str, Any]) -> Department:
    require_admin(actor)
    manager = _resolve_manager(db, data.get("manager_id"))
    department = Department(name=data["name"].strip(), description=data.get("description"))
    db.add(department)
    try:
        db.flush()
        _assign_manager(department, manager)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(f"Department '{data['name']}' already exists") from e
    db.refresh(department)
    logger.info(f"Created department {department.id} ({department.name})")
    return department


def update_department(db: Session, actor: Actor, department_id: int, data: Dict[str, Any]) -> Department:
    require_admin(actor)
    department = _get_department(db, department_id)
    if "name" in data and data["name"] is not None:
        department.name = data["name"].strip()
    if "description" in data:
        department.description = data["description"]
    if "manager_id" in data:
        _assign_manager(department, _resolve_manager(db, data["manager_id"]))
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(f"Department '{data.get('name')}' already exists") from e
    db.refresh(department)
    return department


def delete_department(db: Session, actor: Actor, department_id: int) -> None:
    require_admin(actor)
    department = _get_department(db, department_id)
    if db.query(Employee.id).filter(Employee.department_id == department_id).first():
        raise ConflictError(f"Department {department_id} still has employees")
    db.query(Profile).filter(Profile.department_id == department_id).update(
        {"department_id": None}, synchronize_session=False
    )
    db.delete(department)
    db.commit()
    logger.info(f"Deleted department {department_id}")


def department_to_dict(db: Session, department: Department) -> Dict[str, Any]:
    employee_count = db.query(func.count(Employee.id)).filter(
        Employee.department_id == department.id
    ).scalar()
    return {
        "id": department.id,
        "name": department.name,
        "description": department.description,
        "manager_id": department.manager_id,
        "manager_name": department.manager.full_name if department.manager else None,
        "employee_count": employee_count,
        "created_at": department.created_at,
        "updated_at": department.updated_at,
    }
