"""
Profile edit requests: employees propose changes to their own record and an
admin approves (fields are copied onto the employee) or rejects. Both
decisions are final.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.department import Department
from app.models.employee import Employee
from app.models.profile_edit_request import EditRequestStatus, ProfileEditRequest
from app.schemas.auth import Actor
from app.services.access import require_admin, require_employee_record

logger = logging.getLogger(__name__)


def submit_profile_edit(
    db: Session,
    actor: Actor,
    requested_name: Optional[str] = None,
    requested_dob: Optional[date] = None,
    requested_department_id: Optional[int] = None,
) -> ProfileEditRequest:
    employee_id = require_employee_record(actor)
    if requested_name is None and requested_dob is None and requested_department_id is None:
        raise ValidationError("At least one field must be proposed")
    if requested_department_id is not None and not db.get(Department, requested_department_id):
        raise NotFoundError("Department", requested_department_id)

    request = ProfileEditRequest(
        employee_id=employee_id,
        requested_name=requested_name,
        requested_dob=requested_dob,
        requested_department_id=requested_department_id,
        status=EditRequestStatus.PENDING.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"Profile edit request {request.id} submitted for employee {employee_id}")
    return request


def _get_request(db: Session, request_id: int) -> ProfileEditRequest:
    request = db.get(ProfileEditRequest, request_id)
    if not request:
        raise NotFoundError("Profile edit request", request_id)
    return request


def _decide(db: Session, actor: Actor, request_id: int, target: EditRequestStatus) -> ProfileEditRequest:
    require_admin(actor)
    request = _get_request(db, request_id)
    if request.status != EditRequestStatus.PENDING.value:
        raise ConflictError(
            f"Profile edit request {request_id} was already {request.status}",
            {"status": request.status}
        )

    try:
        updated = db.query(ProfileEditRequest).filter(
            ProfileEditRequest.id == request_id,
            ProfileEditRequest.status == EditRequestStatus.PENDING.value
        ).update({
            "status": target.value,
            "decided_by": actor.user_id,
            "decided_at": datetime.now(timezone.utc),
        }, synchronize_session=False)
        if updated != 1:
            raise ConflictError(f"Profile edit request {request_id} was decided concurrently")

        if target == EditRequestStatus.APPROVED:
            employee = db.get(Employee, request.employee_id)
            if not employee:
                raise NotFoundError("Employee", request.employee_id)
            # Null proposals keep the current value
            if request.requested_name is not None:
                employee.name = request.requested_name
            if request.requested_dob is not None:
                employee.dob = request.requested_dob
            if request.requested_department_id is not None:
                employee.department_id = request.requested_department_id
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info(f"Profile edit request {request_id} {target.value} by {actor.user_id}")
    return request


def approve_profile_edit(db: Session, actor: Actor, request_id: int) -> ProfileEditRequest:
    return _decide(db, actor, request_id, EditRequestStatus.APPROVED)


def reject_profile_edit(db: Session, actor: Actor, request_id: int) -> ProfileEditRequest:
    return _decide(db, actor, request_id, EditRequestStatus.REJECTED)


def list_profile_edits(
    db: Session, actor: Actor, status: Optional[EditRequestStatus] = None
) -> List[ProfileEditRequest]:
    query = db.query(ProfileEditRequest).options(joinedload(ProfileEditRequest.employee))
    if not actor.is_admin:
        query = query.filter(ProfileEditRequest.employee_id == require_employee_record(actor))
    if status:
        query = query.filter(ProfileEditRequest.status == EditRequestStatus(status).value)
    return query.order_by(ProfileEditRequest.created_at.desc(), ProfileEditRequest.id.desc()).all()


def edit_request_to_dict(request: ProfileEditRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "employee_id": request.employee_id,
        "employee_name": request.employee.name if request.employee else None,
        "requested_name": request.requested_name,
        "requested_dob": request.requested_dob,
        "requested_department_id": request.requested_department_id,
        "status": request.status,
        "decided_by": request.decided_by,
        "decided_at": request.decided_at,
        "created_at": request.created_at,
    }
