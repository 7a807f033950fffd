from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.schemas import BulkResult
from app.database import get_db
from app.models.leave_request import LeaveStatus
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.leave import LeaveBulkDecisionRequest, LeaveDecisionRequest, LeaveRequestCreate, LeaveResponse
from app.services import leave_service

router = APIRouter(
    prefix="/leaves",
    tags=["leave"]
)


@router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
def submit_leave_request(
    request: LeaveRequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    leave = leave_service.submit_leave(
        db, actor,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason,
        is_half_day=request.is_half_day,
        half_day_type=request.half_day_type,
        emergency_contact=request.emergency_contact,
        handover_notes=request.handover_notes,
    )
    return leave_service.leave_to_dict(leave)


@router.get("", response_model=List[LeaveResponse])
def list_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """Admins see every leave; employees only their own."""
    leaves = leave_service.list_leaves(db, actor, status=status, employee_id=employee_id)
    return [leave_service.leave_to_dict(leave) for leave in leaves]


@router.post("/bulk-decision", response_model=BulkResult)
def bulk_decide(
    request: LeaveBulkDecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    return leave_service.bulk_decide_leaves(
        db, actor, request.leave_ids, LeaveStatus(request.decision), request.rejection_reason
    )


@router.get("/{leave_id}", response_model=LeaveResponse)
def get_leave_request(leave_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return leave_service.leave_to_dict(leave_service.get_leave(db, actor, leave_id))


@router.post("/{leave_id}/decision", response_model=LeaveResponse)
def decide_leave_request(
    leave_id: int,
    request: LeaveDecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    leave = leave_service.decide_leave(
        db, actor, leave_id, LeaveStatus(request.decision), request.rejection_reason
    )
    return leave_service.leave_to_dict(leave)


@router.post("/{leave_id}/reset", response_model=LeaveResponse)
def reset_leave_request(leave_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return leave_service.leave_to_dict(leave_service.reset_leave(db, actor, leave_id))


@router.post("/{leave_id}/cancel", response_model=LeaveResponse)
def cancel_leave_request(leave_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return leave_service.leave_to_dict(leave_service.cancel_leave(db, actor, leave_id))
