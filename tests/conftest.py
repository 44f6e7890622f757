import os

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic_booking.main import app
from clinic_booking.core.database import get_db, Base
from clinic_booking.core.security import UserRole
from clinic_booking.models.appointment import Appointment, AppointmentStatus
from clinic_booking.models.doctor import Doctor
from clinic_booking.models.user import User

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

PASSWORD = "TestPassword123"

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

# Direct row helpers for unit tests (no password hashing)
def make_user(db, name, email, role=UserRole.PATIENT, specialty=None):
    user = User(name=name, email=email, password_hash="not-a-real-hash", role=role)
    db.add(user)
    db.flush()
    if role == UserRole.DOCTOR:
        db.add(Doctor(user_id=user.id, specialty=specialty or "Cardiology"))
    db.commit()
    db.refresh(user)
    return user

def make_appointment(db, doctor, patient, when, status=AppointmentStatus.SCHEDULED):
    appointment = Appointment(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_date=when,
        status=status
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment

# API helpers
def register(client, name, email, role="patient", specialty=None):
    payload = {
        "name": name,
        "email": email,
        "password": PASSWORD,
        "role": role,
    }
    if specialty:
        payload["specialty"] = specialty
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 200, response.text
    return response.json()

def login_headers(client, email):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
