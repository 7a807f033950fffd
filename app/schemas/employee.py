from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import date, datetime


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8)
    dob: Optional[date] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    dob: Optional[date] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    dob: Optional[date] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    created_at: Optional[datetime] = None
