"""
Salary Service Layer

Salary structure versioning and the single net-salary formula used by every
screen that shows pay (salary view, payroll preview, payroll generation).

Architecture:
- Router -> Service (this module) -> Models
- Money is handled as decimal.Decimal, quantized to cents
"""

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Optional, Union
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateError, NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.salary_structure import SalaryStructure
from app.schemas.auth import Actor
from app.services.access import ensure_self_or_admin, require_admin

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MAX_TAX_PERCENTAGE = Decimal("30")
MAX_PF_PERCENTAGE = Decimal("20")

ALLOWANCE_FIELDS = (
    "housing_allowance",
    "transport_allowance",
    "medical_allowance",
    "other_allowance",
)


@dataclass(frozen=True)
class SalaryBreakdown:
    gross: Decimal
    total_allowances: Decimal
    tax: Decimal
    provident_fund: Decimal
    total_deductions: Decimal
    net: Decimal


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Converts any numeric input to a Decimal with two fraction digits. None is 0."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        # str() keeps floats like 0.1 from dragging binary noise into the Decimal
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _field(structure: Union[SalaryStructure, Mapping[str, Any]], name: str) -> Any:
    if isinstance(structure, Mapping):
        return structure.get(name)
    return getattr(structure, name, None)


def calculate_net_salary(structure: Union[SalaryStructure, Mapping[str, Any]]) -> SalaryBreakdown:
    """
    gross = base + housing + transport + medical + other
    tax   = gross * tax% / 100
    pf    = gross * pf% / 100
    net   = gross - tax - pf

    Accepts a SalaryStructure row or any mapping with the same keys;
    absent components count as zero.
    """
    base = to_money(_field(structure, "base_salary"))
    allowances = sum((to_money(_field(structure, f)) for f in ALLOWANCE_FIELDS), Decimal("0.00"))
    gross = base + allowances

    tax_pct = Decimal(str(_field(structure, "tax_percentage") or 0))
    pf_pct = Decimal(str(_field(structure, "provident_fund_percentage") or 0))

    tax = to_money(gross * tax_pct / 100)
    pf = to_money(gross * pf_pct / 100)
    deductions = tax + pf

    return SalaryBreakdown(
        gross=gross,
        total_allowances=allowances,
        tax=tax,
        provident_fund=pf,
        total_deductions=deductions,
        net=gross - deductions,
    )


def validate_structure_fields(fields: Mapping[str, Any]) -> None:
    """Raises ValidationError when base salary, allowances or percentages are out of range."""
    base = fields.get("base_salary")
    if base is None or Decimal(str(base)) <= 0:
        raise ValidationError("Base salary must be greater than zero", {"field": "base_salary"})

    for name in ALLOWANCE_FIELDS:
        value = fields.get(name)
        if value is not None and Decimal(str(value)) < 0:
            raise ValidationError(f"{name} cannot be negative", {"field": name})

    tax = Decimal(str(fields.get("tax_percentage") or 0))
    if not Decimal("0") <= tax <= MAX_TAX_PERCENTAGE:
        raise ValidationError(
            f"Tax percentage must be between 0 and {MAX_TAX_PERCENTAGE}", {"field": "tax_percentage"}
        )

    pf = Decimal(str(fields.get("provident_fund_percentage") or 0))
    if not Decimal("0") <= pf <= MAX_PF_PERCENTAGE:
        raise ValidationError(
            f"Provident fund percentage must be between 0 and {MAX_PF_PERCENTAGE}",
            {"field": "provident_fund_percentage"},
        )


def get_active_structure(db: Session, employee_id: int) -> Optional[SalaryStructure]:
    return db.query(SalaryStructure).filter(
        SalaryStructure.employee_id == employee_id,
        SalaryStructure.is_active.is_(True)
    ).first()


def _closing_date(previous: SalaryStructure, effective_from: date) -> date:
    # The superseded structure ends the day before the new one starts,
    # but never before its own start date.
    closing = effective_from - timedelta(days=1)
    if previous.effective_from and closing < previous.effective_from:
        return previous.effective_from
    return closing


def set_salary_structure(
    db: Session,
    actor: Actor,
    employee_id: int,
    fields: Mapping[str, Any],
    effective_from: date,
) -> SalaryStructure:
    """
    Activate a new salary structure for an employee.

    The previous active structure (if any) is deactivated with
    effective_to = day before effective_from. Deactivation and insertion are
    committed together; any failure rolls back both.

    Raises:
        AccessDeniedError: actor is not an admin
        ValidationError: bad amounts, percentages or date
        NotFoundError: employee does not exist
        DuplicateError: a concurrent activation won the race
    """
    require_admin(actor)
    if not isinstance(effective_from, date):
        raise ValidationError("effective_from must be a valid date", {"field": "effective_from"})
    validate_structure_fields(fields)

    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)

    try:
        previous = get_active_structure(db, employee_id)
        if previous:
            # Conditional on is_active so a concurrent deactivation is not applied twice
            db.query(SalaryStructure).filter(
                SalaryStructure.id == previous.id,
                SalaryStructure.is_active.is_(True)
            ).update(
                {"is_active": False, "effective_to": _closing_date(previous, effective_from)},
                synchronize_session="fetch"
            )

        structure = SalaryStructure(
            employee_id=employee_id,
            base_salary=to_money(fields.get("base_salary")),
            housing_allowance=to_money(fields.get("housing_allowance")),
            transport_allowance=to_money(fields.get("transport_allowance")),
            medical_allowance=to_money(fields.get("medical_allowance")),
            other_allowance=to_money(fields.get("other_allowance")),
            tax_percentage=Decimal(str(fields.get("tax_percentage") or 0)),
            provident_fund_percentage=Decimal(str(fields.get("provident_fund_percentage") or 0)),
            effective_from=effective_from,
            is_active=True,
        )
        db.add(structure)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Salary structure activation conflict for employee {employee_id}: {e.orig}")
        raise DuplicateError(
            "Another active salary structure was created concurrently for this employee",
            {"employee_id": employee_id}
        ) from e
    except Exception:
        db.rollback()
        raise

    db.refresh(structure)
    logger.info(
        f"Activated salary structure {structure.id} for employee {employee_id}",
        extra={"superseded": previous.id if previous else None}
    )
    return structure


def get_salary(db: Session, actor: Actor, employee_id: int) -> SalaryStructure:
    ensure_self_or_admin(actor, employee_id)
    structure = get_active_structure(db, employee_id)
    if not structure:
        raise NotFoundError("Active salary structure for employee", employee_id)
    return structure


def list_salary_history(db: Session, actor: Actor, employee_id: int) -> List[SalaryStructure]:
    ensure_self_or_admin(actor, employee_id)
    if not db.get(Employee, employee_id):
        raise NotFoundError("Employee", employee_id)
    return db.query(SalaryStructure).filter(
        SalaryStructure.employee_id == employee_id
    ).order_by(SalaryStructure.effective_from.desc(), SalaryStructure.id.desc()).all()


def structure_to_dict(structure: SalaryStructure) -> dict:
    breakdown = calculate_net_salary(structure)
    return {
        "id": structure.id,
        "employee_id": structure.employee_id,
        "base_salary": structure.base_salary,
        "housing_allowance": structure.housing_allowance,
        "transport_allowance": structure.transport_allowance,
        "medical_allowance": structure.medical_allowance,
        "other_allowance": structure.other_allowance,
        "tax_percentage": structure.tax_percentage,
        "provident_fund_percentage": structure.provident_fund_percentage,
        "effective_from": structure.effective_from,
        "effective_to": structure.effective_to,
        "is_active": structure.is_active,
        "created_at": structure.created_at,
        "breakdown": asdict(breakdown),
    }
