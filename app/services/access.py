"""
Authorization guards used inside service operations.
"""
from app.core.exceptions import AccessDeniedError
from app.schemas.auth import Actor


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AccessDeniedError("Admin role required")


def require_employee_record(actor: Actor) -> int:
    """Returns the actor's employee id or fails if the profile has no employee record."""
    if actor.employee_id is None:
        raise AccessDeniedError("No employee record is linked to this account")
    return actor.employee_id


def ensure_self_or_admin(actor: Actor, employee_id: int) -> None:
    if actor.is_admin:
        return
    if actor.employee_id != employee_id:
        raise AccessDeniedError("You can only access your own records")
