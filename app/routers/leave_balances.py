from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.leave import LeaveBalanceCreate, LeaveBalanceResponse, LeaveBalanceUpdate
from app.services import leave_service

router = APIRouter(
    prefix="/leave-balances",
    tags=["leave balances"]
)


@router.get("", response_model=List[LeaveBalanceResponse])
def list_leave_balances(
    employee_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    balances = leave_service.list_leave_balances(db, actor, employee_id=employee_id, year=year)
    return [leave_service.balance_to_dict(b) for b in balances]


@router.post("", response_model=LeaveBalanceResponse, status_code=status.HTTP_201_CREATED)
def allocate_leave_balance(
    data: LeaveBalanceCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    balance = leave_service.allocate_leave_balance(
        db, actor, data.employee_id, data.leave_type_id, data.year, data.total_allocated
    )
    return leave_service.balance_to_dict(balance)


@router.patch("/{balance_id}", response_model=LeaveBalanceResponse)
def adjust_leave_balance(
    balance_id: int,
    data: LeaveBalanceUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    balance = leave_service.adjust_leave_balance(
        db, actor, balance_id, total_allocated=data.total_allocated, used=data.used
    )
    return leave_service.balance_to_dict(balance)
