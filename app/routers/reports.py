from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.database import get_db
from app.routers.auth_deps import require_admin
from app.schemas.auth import Actor
from app.schemas.payroll import MONTH_PATTERN
from app.schemas.report import DepartmentReport, LeaveReport, SalaryReport, SummaryStats
from app.services import report_service

router = APIRouter(
    prefix="/reports",
    tags=["reports"]
)


def _check_range(start, end) -> None:
    if start > end:
        raise ValidationError("Range start must not be after range end", {"start": str(start), "end": str(end)})


@router.get("/summary", response_model=SummaryStats)
def get_summary(db: Session = Depends(get_db), actor: Actor = Depends(require_admin())):
    return report_service.summary_stats(db, actor)


@router.get("/leaves", response_model=LeaveReport)
def get_leave_report(
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin())
):
    _check_range(start, end)
    return report_service.leave_report(db, actor, start, end)


@router.get("/salary", response_model=SalaryReport)
def get_salary_report(
    start_month: str = Query(..., pattern=MONTH_PATTERN),
    end_month: str = Query(..., pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin())
):
    _check_range(start_month, end_month)
    return report_service.salary_report(db, actor, start_month, end_month)


@router.get("/departments", response_model=DepartmentReport)
def get_department_report(
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin())
):
    _check_range(start, end)
    return report_service.department_report(db, actor, start, end)
