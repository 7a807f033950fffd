from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.profile_edit_request import EditRequestStatus
from app.routers.auth_deps import get_actor
from app.schemas.auth import Actor
from app.schemas.profile_edit import ProfileEditCreate, ProfileEditResponse
from app.services import profile_edit_service

router = APIRouter(
    prefix="/profile-edits",
    tags=["profile edits"]
)


@router.post("", response_model=ProfileEditResponse, status_code=status.HTTP_201_CREATED)
def submit_profile_edit(
    data: ProfileEditCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    request = profile_edit_service.submit_profile_edit(
        db, actor,
        requested_name=data.requested_name,
        requested_dob=data.requested_dob,
        requested_department_id=data.requested_department_id,
    )
    return profile_edit_service.edit_request_to_dict(request)


@router.get("", response_model=List[ProfileEditResponse])
def list_profile_edits(
    status: Optional[EditRequestStatus] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    requests = profile_edit_service.list_profile_edits(db, actor, status)
    return [profile_edit_service.edit_request_to_dict(r) for r in requests]


@router.post("/{request_id}/approve", response_model=ProfileEditResponse)
def approve_profile_edit(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """Applies the requested fields to the employee record."""
    return profile_edit_service.edit_request_to_dict(
        profile_edit_service.approve_profile_edit(db, actor, request_id)
    )


@router.post("/{request_id}/reject", response_model=ProfileEditResponse)
def reject_profile_edit(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return profile_edit_service.edit_request_to_dict(
        profile_edit_service.reject_profile_edit(db, actor, request_id)
    )
