"""
Modèle SQLAlchemy pour les vaccinations administrées (historique, jamais modifié).

vaccine_name est copié depuis la campagne au moment de l'administration :
l'unicité (élève, vaccin) tient même si la campagne est renommée ensuite.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid, func

from app.database import Base


class VaccinationRecord(Base):
    __tablename__ = "vaccination_records"
    __table_args__ = (
        UniqueConstraint("student_id", "vaccine_name", name="uq_records_student_vaccine"),
        UniqueConstraint("student_id", "drive_id", name="uq_records_student_drive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    drive_id = Column(Uuid, ForeignKey("drives.id", ondelete="RESTRICT"), nullable=False, index=True)
    vaccine_name = Column(String(100), nullable=False)
    administered_at = Column(DateTime(timezone=True), nullable=False)
    administered_by = Column(Uuid, nullable=True)  # identifiant de l'acteur (X-User-Id)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())
