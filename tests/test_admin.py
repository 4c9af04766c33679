import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from werkzeug.security import check_password_hash
from paywall.main import app as fastapi_app
from paywall.database import Base
from paywall.models import Employee

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_admin.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    db.add(Employee(id="admin-1", email="admin@example.com", password_hash="x",
                    full_name="Admin", role="admin"))
    db.add(Employee(id="staff-1", email="staff@example.com", password_hash="x",
                    full_name="Staff", role="karyawan"))
    db.commit()
    db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr("paywall.auth.SessionLocal", TestingSessionLocal)
    monkeypatch.setattr("paywall.admin_routes.SessionLocal", TestingSessionLocal)
    with TestClient(fastapi_app) as c:
        yield c


def auth_header(user_id, secret="test-jwt-secret"):
    token = jwt.encode({"sub": user_id}, secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def test_add_employee(client):
    response = client.post("/api/admin/add-karyawan", headers=auth_header("admin-1"), json={
        "email": "new@example.com",
        "password": "s3cret-pass",
        "full_name": "Budi",
        "position": "Editor",
    })

    assert response.status_code == 200
    new_id = response.json()["id"]
    db = TestingSessionLocal()
    employee = db.get(Employee, new_id)
    assert employee.role == "karyawan"
    assert employee.position == "Editor"
    assert check_password_hash(employee.password_hash, "s3cret-pass")
    db.close()


@pytest.mark.parametrize("payload", [
    {"password": "p", "full_name": "A"},
    {"email": "a@example.com", "full_name": "A"},
    {"email": "a@example.com", "password": "p"},
])
def test_add_employee_requires_fields(client, payload):
    response = client.post("/api/admin/add-karyawan",
                           headers=auth_header("admin-1"), json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "email, password and full_name are required"}


def test_add_employee_rejects_duplicate_email(client):
    response = client.post("/api/admin/add-karyawan", headers=auth_header("admin-1"), json={
        "email": "staff@example.com", "password": "p", "full_name": "Dup"})

    assert response.status_code == 400


def test_edit_employee_updates_only_given_fields(client):
    response = client.put("/api/admin/edit-karyawan", headers=auth_header("admin-1"), json={
        "id": "staff-1", "position": "Photographer", "address": "Jakarta"})

    assert response.status_code == 200
    db = TestingSessionLocal()
    employee = db.get(Employee, "staff-1")
    assert employee.position == "Photographer"
    assert employee.address == "Jakarta"
    assert employee.full_name == "Staff"
    db.close()


def test_edit_employee_validation(client):
    headers = auth_header("admin-1")

    assert client.put("/api/admin/edit-karyawan", headers=headers,
                      json={"full_name": "X"}).status_code == 400
    assert client.put("/api/admin/edit-karyawan", headers=headers,
                      json={"id": "staff-1", "role": "owner"}).status_code == 400
    assert client.put("/api/admin/edit-karyawan", headers=headers,
                      json={"id": "ghost"}).status_code == 404


def test_delete_employee(client):
    response = client.request("DELETE", "/api/admin/delete-karyawan",
                              headers=auth_header("admin-1"), json={"id": "staff-1"})

    assert response.status_code == 200
    db = TestingSessionLocal()
    assert db.get(Employee, "staff-1") is None
    db.close()


def test_delete_unknown_employee(client):
    response = client.request("DELETE", "/api/admin/delete-karyawan",
                              headers=auth_header("admin-1"), json={"id": "ghost"})

    assert response.status_code == 404


def test_staff_is_forbidden(client):
    response = client.post("/api/admin/add-karyawan", headers=auth_header("staff-1"), json={
        "email": "new@example.com", "password": "p", "full_name": "Budi"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden"


@pytest.mark.parametrize("headers", [
    {"Authorization": "Bearer not-a-jwt"},
    {"Authorization": "Basic abc"},
    auth_header("admin-1", secret="wrong-secret"),
])
def test_bad_token_is_unauthorized(client, headers):
    response = client.post("/api/admin/add-karyawan", headers=headers, json={})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or missing token"


def test_missing_token(client):
    response = client.post("/api/admin/add-karyawan", json={})

    assert response.status_code == 422


def test_edit_ignores_explicit_nulls(client):
    response = client.put("/api/admin/edit-karyawan", headers=auth_header("admin-1"), json={
        "id": "staff-1", "full_name": None, "position": "Driver"})

    assert response.status_code == 200
    db = TestingSessionLocal()
    employee = db.get(Employee, "staff-1")
    assert employee.full_name == "Staff"
    assert employee.position == "Driver"
    db.close()


def test_missing_jwt_secret_is_unauthorized(client, monkeypatch):
    headers = auth_header("admin-1")
    monkeypatch.delenv("JWT_SECRET")

    response = client.post("/api/admin/add-karyawan", headers=headers, json={})

    assert response.status_code == 401
