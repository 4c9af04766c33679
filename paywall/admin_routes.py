import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from werkzeug.security import generate_password_hash

from paywall.auth import ADMIN_ROLES, require_admin
from paywall.database import SessionLocal
from paywall.exceptions import NotFoundError, ValidationError
from paywall.models import Employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")

EMPLOYEE_ROLES = ADMIN_ROLES + ("karyawan",)


class AddEmployeeRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    position: Optional[str] = None
    birth_date: Optional[str] = None
    address: Optional[str] = None


class EditEmployeeRequest(BaseModel):
    id: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    position: Optional[str] = None
    birth_date: Optional[str] = None
    address: Optional[str] = None


class DeleteEmployeeRequest(BaseModel):
    id: Optional[str] = None


@router.post("/add-karyawan")
def add_employee(request: AddEmployeeRequest, admin_id: str = Depends(require_admin)):
    if not request.email or not request.password or not request.full_name:
        raise ValidationError("email, password and full_name are required")

    db = SessionLocal()
    try:
        if db.query(Employee).filter_by(email=request.email).first():
            raise ValidationError(f"Email {request.email} is already registered")

        employee = Employee(
            email=request.email,
            password_hash=generate_password_hash(request.password),
            full_name=request.full_name,
            role="karyawan",
            position=request.position,
            birth_date=request.birth_date,
            address=request.address,
        )
        db.add(employee)
        db.commit()
        logger.info("Admin %s added employee %s", admin_id, employee.id)
        return {"message": "Employee added", "id": employee.id}
    finally:
        db.close()


@router.put("/edit-karyawan")
def edit_employee(request: EditEmployeeRequest, admin_id: str = Depends(require_admin)):
    if not request.id:
        raise ValidationError("Target id is required")
    if request.role is not None and request.role not in EMPLOYEE_ROLES:
        raise ValidationError(f"Unknown role: {request.role}")

    db = SessionLocal()
    try:
        employee = db.get(Employee, request.id)
        if employee is None:
            raise NotFoundError(f"Employee {request.id} not found")

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"}).items():
            setattr(employee, field, value)
        db.commit()
        logger.info("Admin %s updated employee %s", admin_id, request.id)
        return {"message": "Employee updated"}
    finally:
        db.close()


@router.delete("/delete-karyawan")
def delete_employee(request: DeleteEmployeeRequest, admin_id: str = Depends(require_admin)):
    if not request.id:
        raise ValidationError("Target id is required")

    db = SessionLocal()
    try:
        employee = db.get(Employee, request.id)
        if employee is None:
            raise NotFoundError(f"Employee {request.id} not found")

        db.delete(employee)
        db.commit()
        logger.info("Admin %s deleted employee %s", admin_id, request.id)
        return {"message": "Employee deleted"}
    finally:
        db.close()
