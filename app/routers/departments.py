from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.department import DepartmentCreate, DepartmentResponse, DepartmentUpdate
from app.services import department_service

router = APIRouter(
    prefix="/departments",
    tags=["departments"]
)


@router.get("", response_model=List[DepartmentResponse])
def list_departments(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return [department_service.department_to_dict(db, d) for d in department_service.list_departments(db)]


@router.get("/{department_id}", response_model=DepartmentResponse)
def get_department(department_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    department = department_service.get_department(db, department_id)
    return department_service.department_to_dict(db, department)


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    department = department_service.create_department(db, actor, data.model_dump())
    return department_service.department_to_dict(db, department)


@router.put("/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    department = department_service.update_department(db, actor, department_id, data.model_dump(exclude_unset=True))
    return department_service.department_to_dict(db, department)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_department(department_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    department_service.delete_department(db, actor, department_id)
