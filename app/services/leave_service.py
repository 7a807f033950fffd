"""
Leave Service Layer

Leave requests, leave types and leave-balance bookkeeping.

Balance rule: a leave's transition into APPROVED is the only event that
increments LeaveBalance.used, and it does so exactly once. The status
change is a conditional UPDATE ... WHERE status = 'pending', and the
balance increment only runs when that update hit exactly one row.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.exceptions import AppException, ConflictError, DuplicateError, NotFoundError, ValidationError
from app.core.schemas import BulkResult, ItemOutcome
from app.models.employee import Employee
from app.models.leave_balance import LeaveBalance
from app.models.leave_request import HalfDayType, Leave, LeaveStatus
from app.models.leave_type import LeaveType
from app.schemas.auth import Actor
from app.services.access import ensure_self_or_admin, require_admin, require_employee_record

logger = logging.getLogger(__name__)

HALF_DAY = Decimal("0.5")
DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


# ---------------------------------------------------------------------------
# Day counting
# ---------------------------------------------------------------------------

def count_leave_days(start_date: date, end_date: date, is_half_day: bool = False) -> Decimal:
    """
    Number of leave days for an inclusive date range: weekdays only, or 0.5
    for a half-day request on a single date. Returns 0 for an inverted range.
    """
    if start_date > end_date:
        return Decimal("0")
    if is_half_day and start_date == end_date:
        return HALF_DAY

    days = 0
    current = start_date
    while current <= end_date:
        if current.weekday() < 5:  # Mon-Fri
            days += 1
        current += timedelta(days=1)
    return Decimal(days)


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------

def list_leave_types(db: Session) -> List[LeaveType]:
    return db.query(LeaveType).order_by(LeaveType.name).all()


def _get_leave_type(db: Session, leave_type_id: int) -> LeaveType:
    leave_type = db.get(LeaveType, leave_type_id)
    if not leave_type:
        raise NotFoundError("Leave type", leave_type_id)
    return leave_type


def create_leave_type(db: Session, actor: Actor, data: Dict[str, Any]) -> LeaveType:
    require_admin(actor)
    leave_type = LeaveType(**data)
    db.add(leave_type)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(f"Leave type '{data.get('name')}' already exists") from e
    db.refresh(leave_type)
    logger.info(f"Created leave type {leave_type.id} ({leave_type.name})")
    return leave_type


def update_leave_type(db: Session, actor: Actor, leave_type_id: int, data: Dict[str, Any]) -> LeaveType:
    require_admin(actor)
    leave_type = _get_leave_type(db, leave_type_id)
    for key, value in data.items():
        setattr(leave_type, key, value)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(f"Leave type '{data.get('name')}' already exists") from e
    db.refresh(leave_type)
    return leave_type


def delete_leave_type(db: Session, actor: Actor, leave_type_id: int) -> None:
    require_admin(actor)
    leave_type = _get_leave_type(db, leave_type_id)
    in_use = (
        db.query(Leave.id).filter(Leave.leave_type_id == leave_type_id).first()
        or db.query(LeaveBalance.id).filter(LeaveBalance.leave_type_id == leave_type_id).first()
    )
    if in_use:
        raise ConflictError(f"Leave type {leave_type_id} is referenced by leaves or balances")
    db.delete(leave_type)
    db.commit()
    logger.info(f"Deleted leave type {leave_type_id}")


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------

def find_balance(db: Session, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveBalance]:
    return db.query(LeaveBalance).filter(
        LeaveBalance.employee_id == employee_id,
        LeaveBalance.leave_type_id == leave_type_id,
        LeaveBalance.year == year
    ).first()


def _balance_for(db: Session, leave: Leave) -> LeaveBalance:
    year = leave.start_date.year
    balance = find_balance(db, leave.employee_id, leave.leave_type_id, year)
    if not balance:
        raise NotFoundError(
            "Leave balance",
            {"employee_id": leave.employee_id, "leave_type_id": leave.leave_type_id, "year": year}
        )
    return balance


def _apply_balance_delta(db: Session, leave: Leave, delta: Decimal) -> None:
    """
    Add delta to the matching balance's used counter in the current
    transaction. The UPDATE itself refuses to push remaining below zero or
    used below zero. Caller commits or rolls back.
    """
    balance = _balance_for(db, leave)
    if delta > 0:
        guard = LeaveBalance.used + delta <= LeaveBalance.total_allocated
    else:
        guard = LeaveBalance.used + delta >= 0

    updated = db.query(LeaveBalance).filter(
        LeaveBalance.id == balance.id,
        guard
    ).update({"used": LeaveBalance.used + delta}, synchronize_session=False)
    if updated != 1:
        raise ConflictError(
            "Insufficient leave balance" if delta > 0 else "Leave balance would become negative",
            {"balance_id": balance.id, "requested": str(delta), "remaining": str(balance.remaining)}
        )
    db.expire(balance)


def allocate_leave_balance(
    db: Session, actor: Actor, employee_id: int, leave_type_id: int, year: int,
    total_allocated: Optional[Decimal] = None,
) -> LeaveBalance:
    """Creates the yearly counter. Without an explicit amount the configured annual default is used."""
    require_admin(actor)
    if total_allocated is None:
        total_allocated = Decimal(str(settings.default_annual_leave_days))
    if Decimal(str(total_allocated)) < 0:
        raise ValidationError("total_allocated cannot be negative", {"field": "total_allocated"})
    if not db.get(Employee, employee_id):
        raise NotFoundError("Employee", employee_id)
    _get_leave_type(db, leave_type_id)

    balance = LeaveBalance(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        year=year,
        total_allocated=Decimal(str(total_allocated)),
        used=Decimal("0"),
    )
    db.add(balance)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(
            "Leave balance already exists for this employee, leave type and year",
            {"employee_id": employee_id, "leave_type_id": leave_type_id, "year": year}
        ) from e
    db.refresh(balance)
    logger.info(f"Allocated {total_allocated} days of leave type {leave_type_id} to employee {employee_id} for {year}")
    return balance


def adjust_leave_balance(
    db: Session,
    actor: Actor,
    balance_id: int,
    total_allocated: Optional[Decimal] = None,
    used: Optional[Decimal] = None,
) -> LeaveBalance:
    """Manual correction by an admin. Remaining must stay non-negative."""
    require_admin(actor)
    balance = db.get(LeaveBalance, balance_id)
    if not balance:
        raise NotFoundError("Leave balance", balance_id)

    new_total = Decimal(str(total_allocated)) if total_allocated is not None else balance.total_allocated
    new_used = Decimal(str(used)) if used is not None else balance.used
    if new_total < 0 or new_used < 0:
        raise ValidationError("Leave balance values cannot be negative")
    if new_used > new_total:
        raise ValidationError(
            "Used days cannot exceed allocated days",
            {"total_allocated": str(new_total), "used": str(new_used)}
        )

    balance.total_allocated = new_total
    balance.used = new_used
    db.commit()
    db.refresh(balance)
    logger.info(f"Adjusted leave balance {balance_id}: allocated={new_total} used={new_used}")
    return balance


def list_leave_balances(
    db: Session, actor: Actor, employee_id: Optional[int] = None, year: Optional[int] = None
) -> List[LeaveBalance]:
    if not actor.is_admin:
        employee_id = require_employee_record(actor)
    query = db.query(LeaveBalance).options(joinedload(LeaveBalance.leave_type))
    if employee_id is not None:
        query = query.filter(LeaveBalance.employee_id == employee_id)
    if year is not None:
        query = query.filter(LeaveBalance.year == year)
    return query.order_by(LeaveBalance.year.desc(), LeaveBalance.leave_type_id).all()


# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------

def submit_leave(
    db: Session,
    actor: Actor,
    leave_type_id: int,
    start_date: date,
    end_date: date,
    reason: Optional[str] = None,
    is_half_day: bool = False,
    half_day_type: Optional[HalfDayType] = None,
    emergency_contact: Optional[str] = None,
    handover_notes: Optional[str] = None,
    today: Optional[date] = None,
) -> Leave:
    """
    File a pending leave request for the calling employee.

    Raises:
        AccessDeniedError: caller has no employee record
        ValidationError: bad date range, no working days, insufficient balance
        NotFoundError: unknown leave type or no balance for that type/year
    """
    employee_id = require_employee_record(actor)
    today = today or date.today()

    if start_date > end_date:
        raise ValidationError("Start date cannot be after end date")
    if start_date < today:
        raise ValidationError("Cannot apply for leave in the past")

    _get_leave_type(db, leave_type_id)
    half_day = bool(is_half_day and start_date == end_date)
    total_days = count_leave_days(start_date, end_date, half_day)
    if total_days <= 0:
        raise ValidationError("The selected range contains no working days")

    balance = find_balance(db, employee_id, leave_type_id, start_date.year)
    if not balance:
        raise NotFoundError(
            "Leave balance",
            {"employee_id": employee_id, "leave_type_id": leave_type_id, "year": start_date.year}
        )
    if total_days > balance.remaining:
        raise ValidationError(
            f"Insufficient leave balance. Available: {balance.remaining} days",
            {"requested": str(total_days), "remaining": str(balance.remaining)}
        )

    leave = Leave(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        reason=reason,
        is_half_day=half_day,
        half_day_type=HalfDayType(half_day_type).value if half_day and half_day_type else None,
        emergency_contact=emergency_contact,
        handover_notes=handover_notes,
        status=LeaveStatus.PENDING.value,
    )
    db.add(leave)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(leave)
    logger.info(f"Leave {leave.id} submitted by employee {employee_id} ({total_days} days)")
    return leave


def _get_leave(db: Session, leave_id: int) -> Leave:
    leave = db.get(Leave, leave_id)
    if not leave:
        raise NotFoundError("Leave", leave_id)
    return leave


def _conditional_status_update(db: Session, leave_id: int, expected: LeaveStatus, values: Dict[str, Any]) -> None:
    updated = db.query(Leave).filter(
        Leave.id == leave_id,
        Leave.status == expected.value
    ).update(values, synchronize_session=False)
    if updated != 1:
        raise ConflictError(
            f"Leave {leave_id} is no longer {expected.value}",
            {"expected": expected.value}
        )


def decide_leave(
    db: Session,
    actor: Actor,
    leave_id: int,
    decision: LeaveStatus,
    rejection_reason: Optional[str] = None,
) -> Leave:
    """
    Approve or reject a pending leave.

    Approval increments the matching balance by total_days in the same
    transaction. Approving an already-approved leave is a no-op; every
    other decision on a non-pending leave is a ConflictError.
    """
    require_admin(actor)
    decision = LeaveStatus(decision)
    if decision not in DECISIONS:
        raise ValidationError("Decision must be 'approved' or 'rejected'", {"decision": decision.value})

    leave = _get_leave(db, leave_id)
    current = LeaveStatus(leave.status)
    if current != LeaveStatus.PENDING:
        if current == LeaveStatus.APPROVED and decision == LeaveStatus.APPROVED:
            logger.info(f"Leave {leave_id} already approved; nothing to do")
            return leave
        raise ConflictError(
            f"Leave {leave_id} is already {current.value}",
            {"status": current.value}
        )

    if decision == LeaveStatus.APPROVED:
        values = {
            "status": decision.value,
            "approved_by": actor.user_id,
            "approved_at": datetime.now(timezone.utc),
        }
    else:
        values = {"status": decision.value, "rejection_reason": rejection_reason}

    try:
        _conditional_status_update(db, leave_id, LeaveStatus.PENDING, values)
        if decision == LeaveStatus.APPROVED:
            _apply_balance_delta(db, leave, leave.total_days)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(f"Leave {leave_id} {decision.value} by {actor.user_id}")
    return leave


def bulk_decide_leaves(
    db: Session,
    actor: Actor,
    leave_ids: Iterable[int],
    decision: LeaveStatus,
    rejection_reason: Optional[str] = None,
) -> BulkResult:
    require_admin(actor)
    outcomes: List[ItemOutcome] = []
    for leave_id in leave_ids:
        try:
            leave = decide_leave(db, actor, leave_id, decision, rejection_reason)
            outcomes.append(ItemOutcome.ok(leave_id, leave.id))
        except AppException as e:
            logger.warning(f"Bulk decision failed for leave {leave_id}: {e.message}")
            outcomes.append(ItemOutcome.fail(leave_id, e))
    return BulkResult.from_outcomes(outcomes)


def reset_leave(db: Session, actor: Actor, leave_id: int) -> Leave:
    """
    Explicit reset of a decided leave back to pending. Resetting an
    approved leave gives its days back to the balance, so a later
    re-approval is counted once.
    """
    require_admin(actor)
    leave = _get_leave(db, leave_id)
    current = LeaveStatus(leave.status)
    if current not in DECISIONS:
        raise ConflictError(
            f"Only approved or rejected leaves can be reset (leave {leave_id} is {current.value})",
            {"status": current.value}
        )

    values = {
        "status": LeaveStatus.PENDING.value,
        "approved_by": None,
        "approved_at": None,
        "rejection_reason": None,
    }
    try:
        _conditional_status_update(db, leave_id, current, values)
        if current == LeaveStatus.APPROVED:
            _apply_balance_delta(db, leave, -leave.total_days)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(f"Leave {leave_id} reset from {current.value} to pending")
    return leave


def cancel_leave(db: Session, actor: Actor, leave_id: int) -> Leave:
    """The owning employee (or an admin) withdraws a pending leave."""
    leave = _get_leave(db, leave_id)
    ensure_self_or_admin(actor, leave.employee_id)
    if leave.status != LeaveStatus.PENDING.value:
        raise ConflictError(f"Only pending leaves can be cancelled (leave {leave_id} is {leave.status})")
    try:
        _conditional_status_update(db, leave_id, LeaveStatus.PENDING, {"status": LeaveStatus.CANCELLED.value})
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(leave)
    return leave


def list_leaves(
    db: Session,
    actor: Actor,
    status: Optional[LeaveStatus] = None,
    employee_id: Optional[int] = None,
) -> List[Leave]:
    if not actor.is_admin:
        employee_id = require_employee_record(actor)
    query = db.query(Leave).options(joinedload(Leave.employee), joinedload(Leave.leave_type))
    if employee_id is not None:
        query = query.filter(Leave.employee_id == employee_id)
    if status:
        query = query.filter(Leave.status == LeaveStatus(status).value)
    return query.order_by(Leave.created_at.desc(), Leave.id.desc()).all()


def get_leave(db: Session, actor: Actor, leave_id: int) -> Leave:
    leave = _get_leave(db, leave_id)
    ensure_self_or_admin(actor, leave.employee_id)
    return leave


def leave_to_dict(leave: Leave) -> Dict[str, Any]:
    return {
        "id": leave.id,
        "employee_id": leave.employee_id,
        "employee_name": leave.employee.name if leave.employee else None,
        "leave_type_id": leave.leave_type_id,
        "leave_type_name": leave.leave_type.name if leave.leave_type else None,
        "start_date": leave.start_date,
        "end_date": leave.end_date,
        "total_days": leave.total_days,
        "reason": leave.reason,
        "is_half_day": leave.is_half_day,
        "half_day_type": leave.half_day_type,
        "status": leave.status,
        "rejection_reason": leave.rejection_reason,
        "approved_by": leave.approved_by,
        "approved_at": leave.approved_at,
        "created_at": leave.created_at,
    }


def balance_to_dict(balance: LeaveBalance) -> Dict[str, Any]:
    return {
        "id": balance.id,
        "employee_id": balance.employee_id,
        "leave_type_id": balance.leave_type_id,
        "leave_type_name": balance.leave_type.name if balance.leave_type else None,
        "year": balance.year,
        "total_allocated": balance.total_allocated,
        "used": balance.used,
        "remaining": balance.remaining,
    }
