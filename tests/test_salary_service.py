import pytest
from datetime import date
from decimal import Decimal

from app.core.exceptions import AccessDeniedError, DuplicateError, NotFoundError, ValidationError
from app.models.salary_structure import SalaryStructure
from app.services import salary_service


def test_net_salary_formula():
    """3000 base with 700 allowances at 10% tax and 8% PF nets 3034."""
    breakdown = salary_service.calculate_net_salary({
        "base_salary": 3000,
        "housing_allowance": 500,
        "transport_allowance": 200,
        "tax_percentage": 10,
        "provident_fund_percentage": 8,
    })
    assert breakdown.gross == Decimal("3700.00")
    assert breakdown.tax == Decimal("370.00")
    assert breakdown.provident_fund == Decimal("296.00")
    assert breakdown.total_deductions == Decimal("666.00")
    assert breakdown.net == Decimal("3034.00")


def test_net_salary_missing_components_count_as_zero():
    breakdown = salary_service.calculate_net_salary({"base_salary": "1000"})
    assert breakdown.gross == Decimal("1000.00")
    assert breakdown.total_allowances == Decimal("0.00")
    assert breakdown.net == Decimal("1000.00")


def test_net_salary_rounds_half_up_to_cents():
    breakdown = salary_service.calculate_net_salary({
        "base_salary": "100.05",
        "tax_percentage": "10",
    })
    # 10.005 rounds to 10.01
    assert breakdown.tax == Decimal("10.01")
    assert breakdown.net == Decimal("90.04")


def test_set_salary_structure_supersedes_previous(db_session, employee, set_salary):
    first = set_salary(employee.id, effective_from=date(2024, 1, 1))
    second = set_salary(employee.id, effective_from=date(2024, 7, 1), base_salary=Decimal("6000"))

    db_session.refresh(first)
    assert first.is_active is False
    assert first.effective_to == date(2024, 6, 30)
    assert second.is_active is True
    assert second.effective_to is None

    active = db_session.query(SalaryStructure).filter(
        SalaryStructure.employee_id == employee.id,
        SalaryStructure.is_active.is_(True)
    ).all()
    assert [s.id for s in active] == [second.id]


def test_closing_date_never_precedes_previous_start(db_session, employee, set_salary):
    first = set_salary(employee.id, effective_from=date(2024, 5, 1))
    set_salary(employee.id, effective_from=date(2024, 3, 1))

    db_session.refresh(first)
    assert first.effective_to == date(2024, 5, 1)


@pytest.mark.parametrize("overrides", [
    {"base_salary": Decimal("0")},
    {"base_salary": Decimal("-10")},
    {"housing_allowance": Decimal("-1")},
    {"tax_percentage": Decimal("31")},
    {"provident_fund_percentage": Decimal("20.5")},
])
def test_set_salary_structure_rejects_out_of_range(db_session, employee, set_salary, overrides):
    with pytest.raises(ValidationError):
        set_salary(employee.id, **overrides)
    assert db_session.query(SalaryStructure).count() == 0


def test_failed_activation_keeps_previous_active(db_session, employee, set_salary):
    first = set_salary(employee.id)
    with pytest.raises(ValidationError):
        set_salary(employee.id, effective_from=date(2024, 6, 1), tax_percentage=Decimal("50"))

    db_session.refresh(first)
    assert first.is_active is True
    assert first.effective_to is None


def test_set_salary_structure_unknown_employee(set_salary):
    with pytest.raises(NotFoundError):
        set_salary(999)


def test_set_salary_structure_requires_admin(db_session, employee, employee_actor):
    with pytest.raises(AccessDeniedError):
        salary_service.set_salary_structure(
            db_session, employee_actor, employee.id, {"base_salary": Decimal("100")}, date(2024, 1, 1)
        )


def test_get_salary_self_or_admin(db_session, employee, employee_actor, make_employee, set_salary):
    structure = set_salary(employee.id)
    assert salary_service.get_salary(db_session, employee_actor, employee.id).id == structure.id

    other = make_employee(name="John Roe")
    set_salary(other.id)
    with pytest.raises(AccessDeniedError):
        salary_service.get_salary(db_session, employee_actor, other.id)


def test_salary_history_newest_first(db_session, admin_actor, employee, set_salary):
    set_salary(employee.id, effective_from=date(2024, 1, 1))
    set_salary(employee.id, effective_from=date(2024, 4, 1))
    set_salary(employee.id, effective_from=date(2024, 9, 1))

    history = salary_service.list_salary_history(db_session, admin_actor, employee.id)
    assert [s.effective_from for s in history] == [date(2024, 9, 1), date(2024, 4, 1), date(2024, 1, 1)]
    assert sum(1 for s in history if s.is_active) == 1


def test_lost_activation_race_is_duplicate(db_session, admin_actor, employee, set_salary, monkeypatch):
    winner = set_salary(employee.id)
    # The competing activation committed after this call looked for an active structure
    monkeypatch.setattr(salary_service, "get_active_structure", lambda db, employee_id: None)

    with pytest.raises(DuplicateError):
        salary_service.set_salary_structure(
            db_session, admin_actor, employee.id, {"base_salary": Decimal("7000")}, date(2024, 6, 1)
        )

    active = db_session.query(SalaryStructure).filter(
        SalaryStructure.employee_id == employee.id,
        SalaryStructure.is_active.is_(True)
    ).all()
    assert [s.id for s in active] == [winner.id]
    assert db_session.query(SalaryStructure).count() == 1
