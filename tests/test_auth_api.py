import pytest
from fastapi import status

ADMIN_PASSWORD = "AdminPassword123!"
EMPLOYEE_PASSWORD = "EmployeePass123!"

def test_login_success(client, admin_user):
    """Test successful login with valid credentials."""
    response = client.post("/api/auth/login", json={"email": admin_user.email, "password": ADMIN_PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"

def test_login_invalid_credentials(client):
    """Test login failure with wrong password."""
    response = client.post("/api/auth/login", json={"email": "nonexistent@example.com", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "AUTH_FAILED"

def test_employee_login_carries_employee_id(client, employee):
    response = client.post("/api/auth/login", json={"email": employee.email, "password": EMPLOYEE_PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["employee_id"] == employee.id

def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_me_returns_profile(client, admin_user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == admin_user.email

def test_register_endpoint(client):
    response = client.post("/api/auth/register", json={
        "email": "signup@example.com", "password": "Password123!", "full_name": "Sign Up"
    })
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["role"] == "employee"
