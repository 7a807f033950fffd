"""
Salary Router

Salary structure assignment and lookup. Business rules live in
app.services.salary_service.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.salary import SalaryStructureCreate, SalaryStructureResponse
from app.services import salary_service
from app.services.access import require_employee_record

router = APIRouter(
    prefix="/salary",
    tags=["salary"]
)


@router.get("/me", response_model=SalaryStructureResponse)
def get_my_salary(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    structure = salary_service.get_salary(db, actor, require_employee_record(actor))
    return salary_service.structure_to_dict(structure)


@router.get("/{employee_id}", response_model=SalaryStructureResponse)
def get_salary(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return salary_service.structure_to_dict(salary_service.get_salary(db, actor, employee_id))


@router.get("/{employee_id}/history", response_model=List[SalaryStructureResponse])
def get_salary_history(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return [salary_service.structure_to_dict(s) for s in salary_service.list_salary_history(db, actor, employee_id)]


@router.post("/{employee_id}", response_model=SalaryStructureResponse, status_code=status.HTTP_201_CREATED)
def set_salary_structure(
    employee_id: int,
    data: SalaryStructureCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Activate a new salary structure. The previously active one is closed
    the day before `effective_from`.
    """
    fields = data.model_dump(exclude={"effective_from"})
    structure = salary_service.set_salary_structure(db, actor, employee_id, fields, data.effective_from)
    return salary_service.structure_to_dict(structure)
