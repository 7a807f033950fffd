"""
Authentication helpers: password hashing and JWT access tokens.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, DuplicateError
from app.models.profile import Profile, ProfileRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": to_encode.get("type", "access")})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Returns the token payload, {"error": "TOKEN_EXPIRED"} for an expired
    token, or None when the token cannot be validated at all.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return {"error": "TOKEN_EXPIRED"}
    except JWTError as e:
        logger.debug(f"Token decode failed: {e}")
        return None


def token_for_profile(profile: Profile) -> str:
    employee_id = profile.employee.id if profile.employee else None
    return create_access_token(data={
        "sub": profile.email,
        "role": profile.role.value,
        "user_id": profile.id,
        "employee_id": employee_id,
    })


def authenticate(db: Session, email: str, password: str) -> Profile:
    profile = db.query(Profile).filter(Profile.email == email).first()
    if not profile or not verify_password(password, profile.hashed_password):
        logger.warning("Failed login", extra={"email": email})
        raise AuthenticationError("Incorrect email or password")
    if not profile.is_active:
        raise AuthenticationError("User is inactive")
    return profile


def create_profile(
    db: Session,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    role: ProfileRole = ProfileRole.EMPLOYEE,
) -> Profile:
    """Adds a profile to the session and flushes it; the caller commits."""
    if db.query(Profile).filter(Profile.email == email).first():
        raise DuplicateError(f"A profile with email {email} already exists")
    profile = Profile(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        role=role,
        is_active=True,
    )
    db.add(profile)
    db.flush()
    return profile


def register(db: Session, email: str, password: str, full_name: Optional[str] = None) -> Profile:
    """Self sign-up: always creates an employee-role profile."""
    try:
        profile = create_profile(db, email, password, full_name, ProfileRole.EMPLOYEE)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(profile)
    logger.info(f"Registered profile {profile.id}")
    return profile
