import pytest
from app.core.exceptions import AuthenticationError, DuplicateError
from app.models.profile import Profile, ProfileRole
from app.services import auth as auth_service

def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)

def test_register_creates_employee_role(db_session):
    """Self sign-up never grants admin."""
    profile = auth_service.register(db_session, "newuser@example.com", "Password123!", "New User")

    saved = db_session.query(Profile).filter(Profile.email == "newuser@example.com").first()
    assert saved.id == profile.id
    assert saved.role == ProfileRole.EMPLOYEE
    assert auth_service.verify_password("Password123!", saved.hashed_password)

def test_register_duplicate_email(db_session):
    auth_service.register(db_session, "dup@example.com", "Password123!")
    with pytest.raises(DuplicateError):
        auth_service.register(db_session, "dup@example.com", "Password123!")

def test_authenticate_wrong_password(db_session, admin_user):
    with pytest.raises(AuthenticationError):
        auth_service.authenticate(db_session, admin_user.email, "not-the-password")

def test_token_round_trip(admin_user):
    token = auth_service.token_for_profile(admin_user)
    payload = auth_service.decode_access_token(token)
    assert payload["sub"] == admin_user.email
    assert payload["role"] == "admin"
    assert payload["type"] == "access"
    assert payload["employee_id"] is None

def test_decode_garbage_token():
    assert auth_service.decode_access_token("not.a.token") is None
