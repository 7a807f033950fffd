import pytest
import os
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from app.database import Base, get_db
from app.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "AdminPassword123!"
EMPLOYEE_PASSWORD = "EmployeePass123!"


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """
    Fresh schema for every test. Services commit and roll back on their own,
    so an outer rollback-only transaction cannot isolate them.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def admin_user(db_session):
    """Create a default admin profile for tests."""
    from app.models.profile import Profile, ProfileRole
    from app.services import auth as auth_service

    user = Profile(
        email="admin@example.com",
        hashed_password=auth_service.get_password_hash(ADMIN_PASSWORD),
        role=ProfileRole.ADMIN,
        is_active=True,
        full_name="System Admin"
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def admin_actor(admin_user):
    from app.schemas.auth import Actor
    return Actor(user_id=admin_user.id, role=admin_user.role)


@pytest.fixture(scope="function")
def make_employee(db_session, admin_actor):
    """Factory creating an employee (and its login profile) through the service."""
    from app.services import employee_service

    def _make_employee(name="Jane Doe", email=None, department_id=None):
        return employee_service.create_employee(db_session, admin_actor, {
            "name": name,
            "email": email or f"{name.lower().replace(' ', '.')}@example.com",
            "password": EMPLOYEE_PASSWORD,
            "department_id": department_id,
        })
    return _make_employee


@pytest.fixture(scope="function")
def employee(make_employee):
    return make_employee()


@pytest.fixture(scope="function")
def employee_actor(employee):
    from app.models.profile import ProfileRole
    from app.schemas.auth import Actor
    return Actor(user_id=employee.profile_id, role=ProfileRole.EMPLOYEE, employee_id=employee.id)


@pytest.fixture(scope="function")
def leave_type(db_session, admin_actor):
    from app.services import leave_service
    return leave_service.create_leave_type(db_session, admin_actor, {"name": "Annual", "max_days": 20})


@pytest.fixture(scope="function")
def set_salary(db_session, admin_actor):
    """Assign a salary structure; keyword arguments override the defaults."""
    from app.services import salary_service

    def _set_salary(employee_id, effective_from=date(2024, 1, 1), **overrides):
        fields = {
            "base_salary": Decimal("5000"),
            "housing_allowance": Decimal("1000"),
            "transport_allowance": Decimal("500"),
            "medical_allowance": Decimal("0"),
            "other_allowance": Decimal("0"),
            "tax_percentage": Decimal("10"),
            "provident_fund_percentage": Decimal("5"),
        }
        fields.update(overrides)
        return salary_service.set_salary_structure(db_session, admin_actor, employee_id, fields, effective_from)
    return _set_salary


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for a profile."""
    from app.services.auth import token_for_profile

    def _get_token(profile):
        return token_for_profile(profile)
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(profile):
        return {"Authorization": f"Bearer {get_token(profile)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
