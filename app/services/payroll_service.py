"""
Payroll Service Layer

This module provides the business logic layer for payroll operations.
It encapsulates all database access, keeping the router focused on HTTP
request/response handling.

Architecture:
- Router -> Service (this module) -> Models
- Net salary comes from salary_service.calculate_net_salary
- One Payroll per (employee, month) is enforced by a unique constraint;
  this module only translates the IntegrityError
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from datetime import date
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Optional
import html
import logging
import re

from app.core.config import settings
from app.core.exceptions import AppException, ConflictError, DuplicateError, NotFoundError, ValidationError
from app.core.schemas import BulkResult, ItemOutcome
from app.models.employee import Employee
from app.models.payroll import Payroll, PayrollStatus
from app.models.salary_structure import SalaryStructure
from app.schemas.auth import Actor
from app.services.access import ensure_self_or_admin, require_admin, require_employee_record
from app.services.salary_service import calculate_net_salary, get_active_structure

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

# Explicit state machine. Entering PENDING from anywhere is the manual reset.
ALLOWED_TRANSITIONS: Dict[PayrollStatus, frozenset] = {
    PayrollStatus.PENDING: frozenset({PayrollStatus.PROCESSED, PayrollStatus.PAID, PayrollStatus.FAILED}),
    PayrollStatus.PROCESSED: frozenset({PayrollStatus.PAID, PayrollStatus.FAILED, PayrollStatus.PENDING}),
    PayrollStatus.FAILED: frozenset({PayrollStatus.PENDING}),
    PayrollStatus.PAID: frozenset({PayrollStatus.PENDING}),
}


def validate_month(month: str) -> str:
    if not isinstance(month, str) or not MONTH_RE.match(month):
        raise ValidationError("Month must use the YYYY-MM format", {"field": "month", "value": month})
    return month


def can_transition(current: PayrollStatus, target: PayrollStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _generate(db: Session, employee_id: int, month: str) -> Payroll:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)

    structure = get_active_structure(db, employee_id)
    if not structure:
        raise NotFoundError("Active salary structure for employee", employee_id)

    breakdown = calculate_net_salary(structure)
    payroll = Payroll(
        employee_id=employee_id,
        salary_structure_id=structure.id,
        month=month,
        basic_salary=structure.base_salary,
        total_allowances=breakdown.total_allowances,
        total_deductions=breakdown.total_deductions,
        net_salary=breakdown.net,
        status=PayrollStatus.PENDING.value,
        notes=f"Generated on {date.today().isoformat()}",
    )
    db.add(payroll)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(
            f"Payroll already exists for employee {employee_id} in {month}",
            {"employee_id": employee_id, "month": month}
        ) from e
    except Exception:
        db.rollback()
        raise

    db.refresh(payroll)
    logger.info(f"Generated payroll {payroll.id} for employee {employee_id} ({month})")
    return payroll


def generate_payroll(db: Session, actor: Actor, employee_id: int, month: str) -> Payroll:
    """
    Generate a pending payroll for one employee and month from the active
    salary structure.

    Raises:
        AccessDeniedError: actor is not an admin
        ValidationError: malformed month
        NotFoundError: unknown employee or no active salary structure
        DuplicateError: a payroll already exists for (employee, month)
    """
    require_admin(actor)
    validate_month(month)
    return _generate(db, employee_id, month)


def generate_payroll_for_all(db: Session, actor: Actor, month: str) -> BulkResult:
    """
    Generate payroll for every employee with an active structure and no
    payroll for the month yet. Each employee is committed on its own; a
    failure is reported in the result and the loop continues.
    """
    require_admin(actor)
    validate_month(month)

    already_generated = select(Payroll.employee_id).where(Payroll.month == month)
    employee_ids = [
        row[0] for row in db.query(SalaryStructure.employee_id).filter(
            SalaryStructure.is_active.is_(True),
            SalaryStructure.employee_id.notin_(already_generated)
        ).order_by(SalaryStructure.employee_id).all()
    ]

    outcomes: List[ItemOutcome] = []
    for employee_id in employee_ids:
        try:
            payroll = _generate(db, employee_id, month)
            outcomes.append(ItemOutcome.ok(employee_id, payroll.id))
        except AppException as e:
            logger.warning(f"Payroll generation failed for employee {employee_id}: {e.message}")
            outcomes.append(ItemOutcome.fail(employee_id, e))
        except Exception as e:
            logger.exception(f"Unexpected error generating payroll for employee {employee_id}")
            outcomes.append(ItemOutcome.fail(employee_id, AppException(str(e), 500, "INTERNAL_ERROR")))

    result = BulkResult.from_outcomes(outcomes)
    logger.info(
        f"Bulk payroll for {month}: {result.succeeded} generated, {result.failed} failed"
    )
    return result


def preview_payroll(db: Session, actor: Actor, employee_ids: Optional[Iterable[int]] = None) -> Dict[str, Any]:
    """Non-persisting preview of basic and net totals for employees with an active structure."""
    require_admin(actor)
    query = db.query(SalaryStructure).options(
        joinedload(SalaryStructure.employee).joinedload(Employee.department)
    ).filter(SalaryStructure.is_active.is_(True))
    if employee_ids is not None:
        query = query.filter(SalaryStructure.employee_id.in_(list(employee_ids)))

    lines = []
    total_basic = Decimal("0.00")
    total_net = Decimal("0.00")
    for structure in query.order_by(SalaryStructure.employee_id).all():
        breakdown = calculate_net_salary(structure)
        total_basic += structure.base_salary
        total_net += breakdown.net
        lines.append({
            "employee_id": structure.employee_id,
            "employee_name": structure.employee.name,
            "department_name": structure.employee.department.name if structure.employee.department else None,
            "basic_salary": structure.base_salary,
            "net_salary": breakdown.net,
        })

    return {
        "employee_count": len(lines),
        "total_basic": total_basic,
        "total_net": total_net,
        "employees": lines,
    }


def _get_payroll(db: Session, payroll_id: int) -> Payroll:
    payroll = db.get(Payroll, payroll_id)
    if not payroll:
        raise NotFoundError("Payroll", payroll_id)
    return payroll


def transition_payroll_status(db: Session, actor: Actor, payroll_id: int, target: PayrollStatus) -> Payroll:
    """
    Move a payroll along the status machine.

    paid sets payment_date to today, pending clears it. The write is
    conditional on the status that was read, so a concurrent transition
    surfaces as ConflictError instead of being overwritten.
    """
    require_admin(actor)
    target = PayrollStatus(target)
    payroll = _get_payroll(db, payroll_id)
    current = PayrollStatus(payroll.status)

    if current == target == PayrollStatus.PENDING:
        return payroll
    if not can_transition(current, target):
        raise ConflictError(
            f"Cannot move payroll {payroll_id} from {current.value} to {target.value}",
            {"from": current.value, "to": target.value}
        )

    values: Dict[str, Any] = {"status": target.value}
    if target == PayrollStatus.PAID:
        values["payment_date"] = date.today()
    elif target == PayrollStatus.PENDING:
        values["payment_date"] = None

    try:
        updated = db.query(Payroll).filter(
            Payroll.id == payroll_id,
            Payroll.status == current.value
        ).update(values, synchronize_session="fetch")
        if updated != 1:
            db.rollback()
            raise ConflictError(
                f"Payroll {payroll_id} changed status concurrently",
                {"expected": current.value}
            )
        db.commit()
    except ConflictError:
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(payroll)
    logger.info(f"Payroll {payroll_id}: {current.value} -> {target.value}")
    return payroll


def bulk_transition_payroll_status(
    db: Session, actor: Actor, payroll_ids: Iterable[int], target: PayrollStatus
) -> BulkResult:
    require_admin(actor)
    outcomes: List[ItemOutcome] = []
    for payroll_id in payroll_ids:
        try:
            payroll = transition_payroll_status(db, actor, payroll_id, target)
            outcomes.append(ItemOutcome.ok(payroll_id, payroll.id))
        except AppException as e:
            outcomes.append(ItemOutcome.fail(payroll_id, e))
    return BulkResult.from_outcomes(outcomes)


def list_payrolls(
    db: Session,
    actor: Actor,
    status: Optional[PayrollStatus] = None,
    month: Optional[str] = None,
    department_id: Optional[int] = None,
    employee_id: Optional[int] = None,
    search: Optional[str] = None,
) -> List[Payroll]:
    require_admin(actor)
    query = db.query(Payroll).join(Employee, Payroll.employee_id == Employee.id).options(
        joinedload(Payroll.employee).joinedload(Employee.department)
    )
    if status:
        query = query.filter(Payroll.status == PayrollStatus(status).value)
    if month:
        query = query.filter(Payroll.month == validate_month(month))
    if department_id:
        query = query.filter(Employee.department_id == department_id)
    if employee_id:
        query = query.filter(Payroll.employee_id == employee_id)
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(
            func.lower(Employee.name).like(term) | func.lower(Employee.email).like(term)
        )
    return query.order_by(Payroll.month.desc(), Payroll.id.desc()).all()


def get_payroll_details(db: Session, actor: Actor, payroll_id: int) -> Payroll:
    payroll = _get_payroll(db, payroll_id)
    ensure_self_or_admin(actor, payroll.employee_id)
    return payroll


def get_my_payslips(db: Session, actor: Actor) -> List[Payroll]:
    employee_id = require_employee_record(actor)
    return db.query(Payroll).filter(
        Payroll.employee_id == employee_id
    ).order_by(Payroll.month.desc()).all()


def get_payroll_summary(db: Session, actor: Actor, month: Optional[str] = None) -> Dict[str, Any]:
    """Aggregated payroll statistics, optionally for a single month."""
    require_admin(actor)
    query = db.query(Payroll)
    if month:
        query = query.filter(Payroll.month == validate_month(month))
    payrolls = query.all()

    by_status = {s.value: 0 for s in PayrollStatus}
    for p in payrolls:
        by_status[p.status] = by_status.get(p.status, 0) + 1

    return {
        "total_amount": sum((p.net_salary for p in payrolls), Decimal("0.00")),
        "by_status": by_status,
        "employees_paid": len({p.employee_id for p in payrolls if p.status == PayrollStatus.PAID.value}),
    }


def payroll_to_dict(payroll: Payroll) -> Dict[str, Any]:
    """Convert Payroll model to dict representation."""
    employee = payroll.employee
    return {
        "id": payroll.id,
        "employee_id": payroll.employee_id,
        "employee_name": employee.name if employee else None,
        "department_name": employee.department.name if employee and employee.department else None,
        "salary_structure_id": payroll.salary_structure_id,
        "month": payroll.month,
        "basic_salary": payroll.basic_salary,
        "total_allowances": payroll.total_allowances,
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
        "status": payroll.status,
        "payment_date": payroll.payment_date,
        "notes": payroll.notes,
        "created_at": payroll.created_at,
    }


def render_payslip_html(db: Session, actor: Actor, payroll_id: int) -> bytes:
    """
    Render a payroll record as a printable HTML payslip.
    """
    payroll = get_payroll_details(db, actor, payroll_id)
    employee = payroll.employee
    employee_name = html.escape(employee.name) if employee else f"Employee #{payroll.employee_id}"
    department = html.escape(employee.department.name) if employee and employee.department else "N/A"

    year, month_num = payroll.month.split("-")
    month_name = date(int(year), int(month_num), 1).strftime("%B %Y")
    currency = settings.currency

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Payslip - {month_name}</title>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 40px; color: #333; }}
            .header {{ text-align: center; margin-bottom: 30px; border-bottom: 2px solid #2563eb; padding-bottom: 20px; }}
            .header h1 {{ color: #2563eb; margin: 0; }}
            .info-box {{ background: #f8fafc; padding: 15px; border-radius: 8px; margin-bottom: 20px; }}
            .info-box p {{ margin: 5px 0; font-size: 13px; }}
            table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
            th, td {{ padding: 12px; text-align: left; border-bottom: 1px solid #e2e8f0; }}
            th {{ background: #f1f5f9; color: #1e40af; font-weight: 600; }}
            .total-row {{ background: #2563eb; color: white; font-weight: bold; }}
            .footer {{ margin-top: 40px; text-align: center; color: #666; font-size: 12px; }}
        </style>
    </head>
    <body>
        <div class="header">
            <h1>PAYSLIP</h1>
            <p>{month_name}</p>
        </div>

        <div class="info-box">
            <p><strong>Name:</strong> {employee_name}</p>
            <p><strong>Employee ID:</strong> {payroll.employee_id}</p>
            <p><strong>Department:</strong> {department}</p>
            <p><strong>Payment Date:</strong> {payroll.payment_date.strftime('%B %d, %Y') if payroll.payment_date else 'Pending'}</p>
            <p><strong>Status:</strong> {payroll.status}</p>
        </div>

        <table>
            <thead>
                <tr>
                    <th>Description</th>
                    <th style="text-align: right">Amount ({currency})</th>
                </tr>
            </thead>
            <tbody>
                <tr><td>Basic Salary</td><td style="text-align: right">{payroll.basic_salary:.2f}</td></tr>
                <tr><td>Allowances</td><td style="text-align: right">+ {payroll.total_allowances:.2f}</td></tr>
                <tr><td>Deductions</td><td style="text-align: right">- {payroll.total_deductions:.2f}</td></tr>
                <tr class="total-row"><td>NET PAY</td><td style="text-align: right">{payroll.net_salary:.2f}</td></tr>
            </tbody>
        </table>

        <div class="footer">
            <p>This is a computer-generated document. No signature required.</p>
        </div>
    </body>
    </html>
    """

    return html_content.encode("utf-8")
