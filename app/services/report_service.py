"""
Read-only reports. Rows are fetched once and grouped in Python; nothing is
persisted.
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.employee import Employee
from app.models.leave_request import Leave
from app.models.payroll import Payroll, PayrollStatus
from app.models.salary_structure import SalaryStructure
from app.schemas.auth import Actor
from app.services.access import require_admin
from app.services.salary_service import to_money

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


def _department_name(employee: Optional[Employee]) -> str:
    if employee and employee.department:
        return employee.department.name
    return UNASSIGNED


def _month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def summary_stats(db: Session, actor: Actor, today: Optional[date] = None) -> Dict[str, Any]:
    """Headline numbers for the admin dashboard (current month)."""
    require_admin(actor)
    today = today or date.today()
    month_start = today.replace(day=1)
    month_key = _month_key(today)

    total_employees = db.query(func.count(Employee.id)).scalar() or 0
    total_leaves = db.query(func.count(Leave.id)).filter(Leave.start_date >= month_start).scalar() or 0

    paid = db.query(Payroll.net_salary).filter(
        Payroll.status == PayrollStatus.PAID.value,
        Payroll.month == month_key
    ).all()
    total_payroll = sum((row[0] for row in paid), Decimal("0.00"))

    salaries = [row[0] for row in db.query(SalaryStructure.base_salary).filter(SalaryStructure.is_active.is_(True)).all()]
    avg_salary = to_money(sum(salaries, Decimal("0")) / len(salaries)) if salaries else Decimal("0.00")

    return {
        "total_employees": total_employees,
        "total_leaves": total_leaves,
        "total_payroll": total_payroll,
        "avg_salary": avg_salary,
    }


def leave_report(db: Session, actor: Actor, start: date, end: date) -> Dict[str, Any]:
    """Leaves inside [start, end] grouped by type, department and status."""
    require_admin(actor)
    leaves = db.query(Leave).options(
        joinedload(Leave.leave_type),
        joinedload(Leave.employee).joinedload(Employee.department)
    ).filter(Leave.start_date >= start, Leave.end_date <= end).all()

    by_type: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "days": Decimal("0")})
    by_department: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "days": Decimal("0")})
    by_status: Dict[str, int] = defaultdict(int)
    total_days = Decimal("0")

    for leave in leaves:
        days = leave.total_days or Decimal("0")
        total_days += days
        if leave.leave_type:
            by_type[leave.leave_type.name]["count"] += 1
            by_type[leave.leave_type.name]["days"] += days
        dept = _department_name(leave.employee)
        by_department[dept]["count"] += 1
        by_department[dept]["days"] += days
        by_status[leave.status] += 1

    return {
        "total_leaves": len(leaves),
        "total_days": total_days,
        "by_type": dict(by_type),
        "by_department": dict(by_department),
        "by_status": dict(by_status),
    }


def salary_report(db: Session, actor: Actor, start_month: str, end_month: str) -> Dict[str, Any]:
    """Payroll expenditure between two YYYY-MM keys (inclusive), by month and department."""
    require_admin(actor)
    payrolls = db.query(Payroll).options(
        joinedload(Payroll.employee).joinedload(Employee.department)
    ).filter(Payroll.month >= start_month, Payroll.month <= end_month).all()

    by_month: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "amount": Decimal("0.00")})
    by_department: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "amount": Decimal("0.00")})
    total = Decimal("0.00")

    for payroll in payrolls:
        total += payroll.net_salary
        by_month[payroll.month]["count"] += 1
        by_month[payroll.month]["amount"] += payroll.net_salary
        dept = _department_name(payroll.employee)
        by_department[dept]["count"] += 1
        by_department[dept]["amount"] += payroll.net_salary

    return {
        "total_amount": total,
        "by_month": dict(sorted(by_month.items())),
        "by_department": dict(by_department),
    }


def department_report(db: Session, actor: Actor, start: date, end: date) -> Dict[str, Any]:
    """Headcount per department and leave days taken per department in [start, end]."""
    require_admin(actor)
    employee_count: Dict[str, int] = defaultdict(int)
    for employee in db.query(Employee).options(joinedload(Employee.department)).all():
        employee_count[_department_name(employee)] += 1

    leave_days: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    leaves = db.query(Leave).options(
        joinedload(Leave.employee).joinedload(Employee.department)
    ).filter(Leave.start_date >= start, Leave.end_date <= end).all()
    for leave in leaves:
        leave_days[_department_name(leave.employee)] += leave.total_days or Decimal("0")

    return {"employee_count": dict(employee_count), "leave_days": dict(leave_days)}
