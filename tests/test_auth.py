import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clinic_booking.core.database import get_db
from clinic_booking.main import app

from .conftest import PASSWORD, engine, login_headers, override_get_db, register

# Test data
test_user_data = {
    "name": "Test User",
    "email": "test@hospital.com",
    "password": PASSWORD,
    "role": "patient"
}

test_login_data = {
    "email": "test@hospital.com",
    "password": PASSWORD
}

class TestAuthentication:

    def test_register_user(self, client):
        """Test user registration."""
        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 200

        data = response.json()
        assert data["email"] == test_user_data["email"]
        assert data["role"] == test_user_data["role"]
        assert data["name"] == test_user_data["name"]
        assert "password" not in data
        assert "password_hash" not in data

    def test_register_duplicate_email(self, client):
        """Test registration with duplicate email."""
        client.post("/api/v1/auth/register", json=test_user_data)

        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]

    def test_register_invalid_password(self, client):
        """Test registration with invalid password."""
        invalid_data = test_user_data.copy()
        invalid_data["password"] = "weak"

        response = client.post("/api/v1/auth/register", json=invalid_data)
        assert response.status_code == 422
        assert response.json()["success"] is False
        assert response.json()["error"] == "invalid_input"
        assert "password" in response.json()["message"]

    def test_register_invalid_role(self, client):
        invalid_data = test_user_data.copy()
        invalid_data["role"] = "admin"

        response = client.post("/api/v1/auth/register", json=invalid_data)
        assert response.status_code == 422

    def test_register_doctor_requires_specialty(self, client):
        doctor_data = test_user_data.copy()
        doctor_data["role"] = "doctor"

        response = client.post("/api/v1/auth/register", json=doctor_data)
        assert response.status_code == 422

    def test_register_doctor_creates_profile(self, client):
        """A registered doctor shows up in the doctor list with the specialty."""
        doctor = register(client, "Dr. Ayse Demir", "ayse@hospital.com", "doctor", "Cardiology")
        headers = login_headers(client, "ayse@hospital.com")

        response = client.get("/api/v1/doctors", headers=headers)
        assert response.status_code == 200
        assert response.json() == [
            {"id": doctor["id"], "name": "Dr. Ayse Demir", "specialty": "Cardiology"}
        ]

    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/v1/auth/register", json=test_user_data)

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == test_user_data["email"]

    def test_login_invalid_credentials(self, client):
        """Test login with invalid credentials."""
        invalid_login = {
            "email": "nonexistent@hospital.com",
            "password": "wrongpassword"
        }

        response = client.post("/api/v1/auth/login", json=invalid_login)
        assert response.status_code == 401

    def test_login_wrong_password(self, client):
        """Test login with wrong password."""
        client.post("/api/v1/auth/register", json=test_user_data)

        wrong_login = test_login_data.copy()
        wrong_login["password"] = "wrongpassword"

        response = client.post("/api/v1/auth/login", json=wrong_login)
        assert response.status_code == 401

    def test_get_current_user(self, client):
        """Test getting current user info."""
        client.post("/api/v1/auth/register", json=test_user_data)
        headers = login_headers(client, test_user_data["email"])

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["email"] == test_user_data["email"]

    def test_get_current_user_invalid_token(self, client):
        """Test get current user with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    def test_get_current_user_without_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_root_shows_logged_in_user(self, client):
        client.post("/api/v1/auth/register", json=test_user_data)
        headers = login_headers(client, test_user_data["email"])

        assert client.get("/").json()["user"] is None
        assert client.get("/", headers=headers).json()["user"] == "Test User"

class UnreachableSession(Session):
    """Session whose every query fails as if the database were down."""

    def query(self, *entities, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("could not connect to server"))

@pytest.fixture
def take_database_down(monkeypatch):
    """Returns a callable that points request sessions at an unreachable database."""
    monkeypatch.setattr("clinic_booking.services.gateway.time.sleep", lambda seconds: None)

    def unreachable_db():
        db = UnreachableSession(bind=engine)
        try:
            yield db
        finally:
            db.close()

    def go_down():
        app.dependency_overrides[get_db] = unreachable_db

    yield go_down
    app.dependency_overrides[get_db] = override_get_db

class TestAuthenticationDatabaseOutage:

    def test_current_user_lookup(self, client, take_database_down):
        client.post("/api/v1/auth/register", json=test_user_data)
        headers = login_headers(client, test_user_data["email"])
        take_database_down()

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 503
        assert response.json()["success"] is False
        assert response.json()["error"] == "downstream_failure"

    def test_login(self, client, take_database_down):
        client.post("/api/v1/auth/register", json=test_user_data)
        take_database_down()

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 503
        assert response.json()["error"] == "downstream_failure"

    def test_register(self, client, take_database_down):
        take_database_down()

        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 503
        assert response.json()["error"] == "downstream_failure"

    def test_optional_user_on_root(self, client, take_database_down):
        client.post("/api/v1/auth/register", json=test_user_data)
        headers = login_headers(client, test_user_data["email"])
        take_database_down()

        assert client.get("/", headers=headers).status_code == 503
