from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional
from app.models.profile_edit_request import EditRequestStatus


class ProfileEditCreate(BaseModel):
    requested_name: Optional[str] = Field(None, min_length=1, max_length=200)
    requested_dob: Optional[date] = None
    requested_department_id: Optional[int] = None


class ProfileEditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    requested_name: Optional[str] = None
    requested_dob: Optional[date] = None
    requested_department_id: Optional[int] = None
    status: EditRequestStatus
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
