"""
Payroll Router

Handles HTTP endpoints for payroll operations.
All business logic is delegated to the payroll service layer.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.schemas import BulkResult
from app.database import get_db
from app.models.payroll import PayrollStatus
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.payroll import (
    PayrollBulkStatusUpdate,
    PayrollGenerateAllRequest,
    PayrollGenerateRequest,
    PayrollPreviewRequest,
    PayrollPreviewResponse,
    PayrollResponse,
    PayrollStatusUpdate,
    PayrollSummaryResponse,
)
from app.services import payroll_service

router = APIRouter(
    prefix="/payroll",
    tags=["payroll"]
)


@router.get("/summary", response_model=PayrollSummaryResponse)
def get_payroll_summary(
    month: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Totals and per-status counts, optionally for a single month.
    """
    return payroll_service.get_payroll_summary(db, actor, month)


@router.get("/me", response_model=List[PayrollResponse])
def get_my_payslips(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return [payroll_service.payroll_to_dict(p) for p in payroll_service.get_my_payslips(db, actor)]


@router.post("/preview", response_model=PayrollPreviewResponse)
def preview_payroll(
    request: PayrollPreviewRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Show basic and net totals for the selected employees without
    creating any payroll records.
    """
    return payroll_service.preview_payroll(db, actor, request.employee_ids)


@router.post("/generate", response_model=PayrollResponse, status_code=status.HTTP_201_CREATED)
def generate_payroll(
    request: PayrollGenerateRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    payroll = payroll_service.generate_payroll(db, actor, request.employee_id, request.month)
    return payroll_service.payroll_to_dict(payroll)


@router.post("/generate-all", response_model=BulkResult)
def generate_payroll_for_all(
    request: PayrollGenerateAllRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Generate payroll for every employee with an active salary structure
    and no payroll for the month yet. Per-employee failures are reported
    in the result and do not undo the others.
    """
    return payroll_service.generate_payroll_for_all(db, actor, request.month)


@router.post("/bulk-status", response_model=BulkResult)
def bulk_update_status(
    request: PayrollBulkStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    return payroll_service.bulk_transition_payroll_status(db, actor, request.payroll_ids, request.status)


@router.get("", response_model=List[PayrollResponse])
def list_payrolls(
    status: Optional[PayrollStatus] = Query(None),
    month: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None),
    employee_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    payrolls = payroll_service.list_payrolls(
        db, actor,
        status=status,
        month=month,
        department_id=department_id,
        employee_id=employee_id,
        search=search
    )
    return [payroll_service.payroll_to_dict(p) for p in payrolls]


@router.get("/{payroll_id}", response_model=PayrollResponse)
def get_payroll(payroll_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return payroll_service.payroll_to_dict(payroll_service.get_payroll_details(db, actor, payroll_id))


@router.patch("/{payroll_id}/status", response_model=PayrollResponse)
def update_payroll_status(
    payroll_id: int,
    request: PayrollStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    payroll = payroll_service.transition_payroll_status(db, actor, payroll_id, request.status)
    return payroll_service.payroll_to_dict(payroll)


@router.get("/{payroll_id}/payslip", response_class=HTMLResponse)
def download_payslip(payroll_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """
    Printable HTML payslip. Employees can only open their own.
    """
    content = payroll_service.render_payslip_html(db, actor, payroll_id)
    return HTMLResponse(
        content=content,
        headers={"Content-Disposition": f"inline; filename=payslip_{payroll_id}.html"}
    )
