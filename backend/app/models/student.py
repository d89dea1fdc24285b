"""
Modèle SQLAlchemy pour la table students.
student_code est l'identifiant externe (fourni par l'école), clé naturelle de l'import CSV.
"""

import uuid
from sqlalchemy import Column, Date, DateTime, String, Text, Uuid, func

from app.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)  # Male, Female, Other
    grade = Column(String(50), nullable=False, index=True)
    section = Column(String(20), nullable=False)
    guardian_name = Column(String(200), nullable=False)
    contact_number = Column(String(30), nullable=False)
    address = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
