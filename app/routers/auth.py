from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user
from app.schemas.auth import LoginRequest, ProfileResponse, RegisterRequest, Token
from app.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body instead of form-data for frontend compatibility
    profile = auth_service.authenticate(db, login_data.email, login_data.password)
    employee_id = profile.employee.id if profile.employee else None
    logger.info(f"Profile {profile.id} logged in")
    return {
        "access_token": auth_service.token_for_profile(profile),
        "token_type": "bearer",
        "user": {
            "id": profile.id,
            "email": profile.email,
            "role": profile.role.value,
            "employee_id": employee_id,
        },
    }


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    return auth_service.register(db, data.email, data.password, data.full_name)


@router.post("/logout")
def logout(current_user: Profile = Depends(get_current_user)):
    # Access tokens are stateless; the client discards its copy.
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=ProfileResponse)
def get_me(current_user: Profile = Depends(get_current_user)):
    return current_user
