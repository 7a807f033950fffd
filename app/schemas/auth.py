from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from app.models.profile import ProfileRole
from datetime import datetime


class ProfileBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None


class RegisterRequest(ProfileBase):
    password: str = Field(..., min_length=8)


class ProfileResponse(ProfileBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: ProfileRole
    department_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: Optional[dict] = None


class TokenData(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None


class Actor(BaseModel):
    """
    The authenticated caller of a service operation.
    Every mutating service call receives one so authorization is enforced
    where the mutation executes, not only in the router.
    """
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: ProfileRole
    employee_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN
