"""
Schémas Pydantic pour les vaccinations administrées.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VaccinationCreate(BaseModel):
    """Corps optionnel de POST /drives/{drive_id}/vaccinate/{student_id}."""
    administered_at: Optional[datetime] = None  # défaut : maintenant
    notes: Optional[str] = None


class VaccinationRecordResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    drive_id: uuid.UUID
    vaccine_name: str
    administered_at: datetime
    administered_by: Optional[uuid.UUID]
    notes: str
    created_at: datetime

    model_config = {"from_attributes": True}


class VaccinationReportRow(BaseModel):
    """Ligne du rapport de vaccination (jointure vaccination + élève + campagne)."""
    id: uuid.UUID
    student_id: uuid.UUID
    student_code: str
    student_name: str
    grade: str
    section: str
    vaccine_name: str
    administered_at: datetime
    drive_id: uuid.UUID
    drive_date: dt.date
    notes: str
