"""
Configuration partagée pour tous les tests.

- `client` : override la dépendance get_db par un MagicMock (tests d'API, services patchés)
- `db` : vraie session SQLAlchemy sur SQLite en mémoire (tests de services)
"""

import os
import uuid
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import MagicMock

from app.auth import Actor
from app.database import Base, get_db
from app.main import app
from app.models.drive import Drive
from app.models.student import Student


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """Session sur une base SQLite en mémoire (clés étrangères actives), recréée pour chaque test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        # SQLite n'applique les clés étrangères qu'avec ce PRAGMA
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def actor():
    return Actor(id=uuid.uuid4())


@pytest.fixture
def auth_headers(actor):
    return {"X-User-Id": str(actor.id)}


def add_student(db, **kwargs) -> Student:
    """Insère un élève directement en base."""
    student = Student(
        student_code=kwargs.get("student_code", f"STU-{uuid.uuid4().hex[:6]}"),
        name=kwargs.get("name", "Asha Verma"),
        date_of_birth=kwargs.get("date_of_birth", date(2015, 3, 14)),
        gender=kwargs.get("gender", "Female"),
        grade=kwargs.get("grade", "5"),
        section=kwargs.get("section", "A"),
        guardian_name=kwargs.get("guardian_name", "Ravi Verma"),
        contact_number=kwargs.get("contact_number", "9876543210"),
        address=kwargs.get("address", ""),
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def add_drive(db, drive_date: date, **kwargs) -> Drive:
    """Insère une campagne directement en base (sans contrôle de préavis)."""
    drive = Drive(
        vaccine_name=kwargs.get("vaccine_name", "MMR"),
        description=kwargs.get("description"),
        date=drive_date,
        doses=kwargs.get("doses", 10),
        doses_administered=kwargs.get("doses_administered", 0),
        applicable_grades=kwargs.get("applicable_grades", ["5"]),
        status=kwargs.get("status", "scheduled"),
        created_by=kwargs.get("created_by"),
    )
    db.add(drive)
    db.commit()
    db.refresh(drive)
    return drive
