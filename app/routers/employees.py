from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.routers.auth_deps import get_actor, require_admin
from app.schemas.auth import Actor
from app.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from app.services import employee_service

router = APIRouter(
    prefix="/employees",
    tags=["employees"]
)


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    department_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin())
):
    employees = employee_service.list_employees(db, actor, department_id=department_id, search=search)
    return [employee_service.employee_to_dict(e) for e in employees]


@router.get("/me", response_model=EmployeeResponse)
def get_my_employee(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return employee_service.employee_to_dict(employee_service.get_my_employee(db, actor))


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return employee_service.employee_to_dict(employee_service.get_employee(db, actor, employee_id))


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(data: EmployeeCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    employee = employee_service.create_employee(db, actor, data.model_dump())
    return employee_service.employee_to_dict(employee)


@router.put("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    employee = employee_service.update_employee(db, actor, employee_id, data.model_dump(exclude_unset=True))
    return employee_service.employee_to_dict(employee)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """Removes the employee together with salary, payroll, leave and edit-request history and the login profile."""
    employee_service.delete_employee(db, actor, employee_id)
