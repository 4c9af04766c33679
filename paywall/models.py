import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from paywall.database import Base


def _now():
    return datetime.now(timezone.utc)


class Movie(Base):
    __tablename__ = "movies"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    image = Column(String)
    minute = Column(Integer)
    price = Column(Integer, nullable=False)        # rupiah
    drive_url = Column(String)
    created_at = Column(DateTime(timezone=True), default=_now)
    paid = Column(Boolean, default=False, nullable=False)
    completed_at = Column(String)


class Purchase(Base):
    __tablename__ = "purchases"

    order_id = Column(String, primary_key=True)    # movie id + "_" + client id
    movie_id = Column(String, index=True, nullable=False)
    client_id = Column(String, index=True, nullable=False)
    amount = Column(Integer)
    status = Column(String, default="pending")     # pending | completed | failed
    payment_method = Column(String)
    completed_at = Column(String)


class Employee(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, default="karyawan")      # admin | super_admin | karyawan
    position = Column(String)
    birth_date = Column(String)
    address = Column(String)
