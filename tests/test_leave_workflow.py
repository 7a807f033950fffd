import pytest
from datetime import date
from decimal import Decimal

from app.core.exceptions import AccessDeniedError, ConflictError, DuplicateError, NotFoundError, ValidationError
from app.models.leave_request import LeaveStatus
from app.services import leave_service

# 2030-03-04 is a Monday
MONDAY = date(2030, 3, 4)
FRIDAY = date(2030, 3, 8)
TODAY = date(2030, 1, 1)


@pytest.fixture
def balance(db_session, admin_actor, employee, leave_type):
    """20 days allocated, 3 already used."""
    allocated = leave_service.allocate_leave_balance(
        db_session, admin_actor, employee.id, leave_type.id, 2030, Decimal("20")
    )
    return leave_service.adjust_leave_balance(db_session, admin_actor, allocated.id, used=Decimal("3"))


def _submit(db_session, actor, leave_type, start=MONDAY, end=FRIDAY, **kwargs):
    return leave_service.submit_leave(
        db_session, actor, leave_type.id, start, end, reason="Family trip", today=TODAY, **kwargs
    )


def test_count_leave_days_skips_weekends():
    assert leave_service.count_leave_days(MONDAY, FRIDAY) == Decimal("5")
    # Friday to next Monday: Sat/Sun excluded
    assert leave_service.count_leave_days(FRIDAY, date(2030, 3, 11)) == Decimal("2")
    assert leave_service.count_leave_days(date(2030, 3, 9), date(2030, 3, 10)) == Decimal("0")


def test_count_leave_days_half_day():
    assert leave_service.count_leave_days(MONDAY, MONDAY, is_half_day=True) == Decimal("0.5")


def test_count_leave_days_inverted_range():
    assert leave_service.count_leave_days(FRIDAY, MONDAY) == Decimal("0")


def test_submit_leave_creates_pending(db_session, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    assert leave.status == LeaveStatus.PENDING.value
    assert leave.total_days == Decimal("5")
    assert leave.employee_id == employee_actor.employee_id

    db_session.refresh(balance)
    assert balance.used == Decimal("3")


def test_submit_leave_validations(db_session, employee_actor, leave_type, balance):
    with pytest.raises(ValidationError):
        _submit(db_session, employee_actor, leave_type, start=FRIDAY, end=MONDAY)
    with pytest.raises(ValidationError):
        leave_service.submit_leave(
            db_session, employee_actor, leave_type.id, date(2029, 12, 30), date(2029, 12, 31), today=TODAY
        )
    with pytest.raises(ValidationError):
        # weekend only
        _submit(db_session, employee_actor, leave_type, start=date(2030, 3, 9), end=date(2030, 3, 10))
    with pytest.raises(ValidationError):
        # 20 weekdays requested, 17 remaining
        _submit(db_session, employee_actor, leave_type, start=MONDAY, end=date(2030, 3, 29))


def test_submit_leave_without_balance(db_session, employee_actor, leave_type):
    with pytest.raises(NotFoundError):
        _submit(db_session, employee_actor, leave_type)


def test_admin_without_employee_record_cannot_submit(db_session, admin_actor, leave_type):
    with pytest.raises(AccessDeniedError):
        _submit(db_session, admin_actor, leave_type)


def test_approval_consumes_balance_once(db_session, admin_actor, employee_actor, leave_type, balance):
    """5 approved days against {20 allocated, 3 used} leaves 8 used and 12 remaining."""
    leave = _submit(db_session, employee_actor, leave_type)

    approved = leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)
    assert approved.status == LeaveStatus.APPROVED.value
    assert approved.approved_by == admin_actor.user_id
    db_session.refresh(balance)
    assert balance.used == Decimal("8")
    assert balance.remaining == Decimal("12")

    again = leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)
    assert again.status == LeaveStatus.APPROVED.value
    db_session.refresh(balance)
    assert balance.used == Decimal("8")


def test_rejection_leaves_balance_untouched(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    rejected = leave_service.decide_leave(
        db_session, admin_actor, leave.id, LeaveStatus.REJECTED, rejection_reason="Busy season"
    )
    assert rejected.status == LeaveStatus.REJECTED.value
    assert rejected.rejection_reason == "Busy season"
    db_session.refresh(balance)
    assert balance.used == Decimal("3")


def test_decided_leave_cannot_flip(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.REJECTED)
    with pytest.raises(ConflictError):
        leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)

    db_session.refresh(balance)
    assert balance.used == Decimal("3")


def test_approval_beyond_remaining_is_conflict(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    # Allocation shrinks after submission
    leave_service.adjust_leave_balance(db_session, admin_actor, balance.id, total_allocated=Decimal("5"))

    with pytest.raises(ConflictError):
        leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)

    refreshed = leave_service.get_leave(db_session, admin_actor, leave.id)
    assert refreshed.status == LeaveStatus.PENDING.value
    db_session.refresh(balance)
    assert balance.used == Decimal("3")


def test_approval_without_balance_is_not_found(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    db_session.delete(balance)
    db_session.commit()

    with pytest.raises(NotFoundError):
        leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)
    assert leave_service.get_leave(db_session, admin_actor, leave.id).status == LeaveStatus.PENDING.value


def test_employee_cannot_decide(db_session, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    with pytest.raises(AccessDeniedError):
        leave_service.decide_leave(db_session, employee_actor, leave.id, LeaveStatus.APPROVED)


def test_decision_must_be_approve_or_reject(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    with pytest.raises(ValidationError):
        leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.CANCELLED)


def test_bulk_decision_continues_past_failures(db_session, admin_actor, employee_actor, leave_type, balance):
    first = _submit(db_session, employee_actor, leave_type)
    second = _submit(db_session, employee_actor, leave_type, start=date(2030, 3, 11), end=date(2030, 3, 11))

    result = leave_service.bulk_decide_leaves(
        db_session, admin_actor, [first.id, 424242, second.id], LeaveStatus.APPROVED
    )

    assert result.succeeded == 2
    assert result.failed == 1
    assert [o.success for o in result.results] == [True, False, True]
    db_session.refresh(balance)
    assert balance.used == Decimal("9")


def test_reset_approved_leave_returns_days(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)

    reset = leave_service.reset_leave(db_session, admin_actor, leave.id)
    assert reset.status == LeaveStatus.PENDING.value
    assert reset.approved_by is None
    db_session.refresh(balance)
    assert balance.used == Decimal("3")

    # Re-approval counts the days exactly once again
    leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)
    db_session.refresh(balance)
    assert balance.used == Decimal("8")


def test_reset_pending_leave_is_conflict(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    with pytest.raises(ConflictError):
        leave_service.reset_leave(db_session, admin_actor, leave.id)


def test_cancel_own_pending_leave(db_session, admin_actor, employee_actor, leave_type, balance):
    leave = _submit(db_session, employee_actor, leave_type)
    cancelled = leave_service.cancel_leave(db_session, employee_actor, leave.id)
    assert cancelled.status == LeaveStatus.CANCELLED.value

    with pytest.raises(ConflictError):
        leave_service.decide_leave(db_session, admin_actor, leave.id, LeaveStatus.APPROVED)


def test_list_leaves_scoped_to_employee(db_session, admin_actor, employee_actor, leave_type, balance, make_employee):
    _submit(db_session, employee_actor, leave_type)
    other = make_employee(name="John Roe")

    assert len(leave_service.list_leaves(db_session, employee_actor)) == 1
    # A non-admin cannot widen the filter to someone else
    assert len(leave_service.list_leaves(db_session, employee_actor, employee_id=other.id)) == 1
    assert leave_service.list_leaves(db_session, admin_actor, employee_id=other.id) == []


def test_duplicate_balance_allocation(db_session, admin_actor, employee, leave_type, balance):
    with pytest.raises(DuplicateError):
        leave_service.allocate_leave_balance(
            db_session, admin_actor, employee.id, leave_type.id, 2030, Decimal("10")
        )


def test_adjust_balance_cannot_go_negative(db_session, admin_actor, balance):
    with pytest.raises(ValidationError):
        leave_service.adjust_leave_balance(db_session, admin_actor, balance.id, used=Decimal("25"))


def test_leave_type_in_use_cannot_be_deleted(db_session, admin_actor, leave_type, balance):
    with pytest.raises(ConflictError):
        leave_service.delete_leave_type(db_session, admin_actor, leave_type.id)


def test_leave_type_crud(db_session, admin_actor):
    created = leave_service.create_leave_type(db_session, admin_actor, {"name": "Sick", "is_paid": True})
    updated = leave_service.update_leave_type(db_session, admin_actor, created.id, {"max_days": 10})
    assert updated.max_days == 10

    with pytest.raises(DuplicateError):
        leave_service.create_leave_type(db_session, admin_actor, {"name": "Sick"})

    leave_service.delete_leave_type(db_session, admin_actor, created.id)
    assert leave_service.list_leave_types(db_session) == []


def test_allocation_defaults_to_annual_days(db_session, admin_actor, employee, leave_type):
    from app.core.config import settings

    balance = leave_service.allocate_leave_balance(db_session, admin_actor, employee.id, leave_type.id, 2031)
    assert balance.total_allocated == Decimal(str(settings.default_annual_leave_days))
    assert balance.used == Decimal("0")
