"""
Modèle SQLAlchemy pour les campagnes de vaccination (drives).

Contraintes portées par la base :
- doses_administered ne dépasse jamais doses
- une seule campagne non annulée par jour (index unique partiel)
"""

import uuid
from sqlalchemy import (
    JSON, CheckConstraint, Column, Date, DateTime, Index, Integer, String, Text, Uuid,
    func, text,
)

from app.database import Base

DRIVE_STATUSES = ("scheduled", "completed", "cancelled")


class Drive(Base):
    __tablename__ = "drives"
    __table_args__ = (
        CheckConstraint("doses >= 1", name="ck_drives_doses_positive"),
        CheckConstraint(
            "doses_administered >= 0 AND doses_administered <= doses",
            name="ck_drives_doses_administered_range",
        ),
        Index(
            "uq_drives_active_date",
            "date",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vaccine_name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    doses = Column(Integer, nullable=False)
    doses_administered = Column(Integer, nullable=False, default=0)
    applicable_grades = Column(JSON, nullable=False)  # liste de libellés de classes
    status = Column(String(20), nullable=False, default="scheduled")  # scheduled, completed, cancelled
    created_by = Column(Uuid, nullable=True)  # identifiant de l'acteur (X-User-Id)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
