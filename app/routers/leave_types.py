from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.leave import LeaveTypeCreate, LeaveTypeResponse, LeaveTypeUpdate
from app.services import leave_service

router = APIRouter(
    prefix="/leave-types",
    tags=["leave types"]
)


@router.get("", response_model=List[LeaveTypeResponse])
def list_leave_types(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return leave_service.list_leave_types(db)


@router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
def create_leave_type(data: LeaveTypeCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return leave_service.create_leave_type(db, actor, data.model_dump())


@router.put("/{leave_type_id}", response_model=LeaveTypeResponse)
def update_leave_type(
    leave_type_id: int,
    data: LeaveTypeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    return leave_service.update_leave_type(db, actor, leave_type_id, data.model_dump(exclude_unset=True))


@router.delete("/{leave_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_type(leave_type_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    leave_service.delete_leave_type(db, actor, leave_type_id)
