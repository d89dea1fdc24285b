"""
Schémas Pydantic pour les campagnes de vaccination.

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre le champ `date` et le type `datetime.date` dans Pydantic v2.

Le préavis minimum et les conflits de date dépendent de la base et de la
configuration : ils sont vérifiés dans drive_service, pas ici.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.schemas.student import check_grade_label


def _clean_grades(v: List[str]) -> List[str]:
    grades = []
    for grade in v:
        grade = grade.strip()
        if grade and grade not in grades:
            grades.append(check_grade_label(grade))
    if not grades:
        raise ValueError("Au moins une classe doit être sélectionnée.")
    return grades


class DriveCreate(BaseModel):
    vaccine_name: str
    description: Optional[str] = None
    date: dt.date
    doses: int
    applicable_grades: List[str]

    @field_validator("vaccine_name")
    @classmethod
    def vaccine_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom du vaccin ne peut pas être vide.")
        return v.strip()

    @field_validator("doses")
    @classmethod
    def at_least_one_dose(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Le nombre de doses doit être au moins 1.")
        return v

    @field_validator("applicable_grades")
    @classmethod
    def at_least_one_grade(cls, v: List[str]) -> List[str]:
        return _clean_grades(v)


class DriveUpdate(BaseModel):
    """Modification partielle. Le statut et le compteur de doses ne sont pas modifiables."""
    vaccine_name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    doses: Optional[int] = None
    applicable_grades: Optional[List[str]] = None

    model_config = {"extra": "forbid"}

    @field_validator("vaccine_name")
    @classmethod
    def vaccine_name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom du vaccin ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("doses")
    @classmethod
    def at_least_one_dose(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Le nombre de doses doit être au moins 1.")
        return v

    @field_validator("applicable_grades")
    @classmethod
    def at_least_one_grade(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_grades(v) if v is not None else v


class DriveResponse(BaseModel):
    id: uuid.UUID
    vaccine_name: str
    description: Optional[str]
    date: dt.date
    doses: int
    doses_administered: int
    doses_remaining: int
    applicable_grades: List[str]
    status: str
    created_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime
