"""
Schémas Pydantic pour les élèves et l'import CSV.
"""

import uuid
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

from app.config import settings

GENDERS = ("Male", "Female", "Other")


def check_grade_label(v: str) -> str:
    if settings.ENFORCE_GRADE_LABELS and v not in settings.GRADE_LABELS:
        raise ValueError(f"Classe inconnue : {v}")
    return v


class StudentCreate(BaseModel):
    """Schéma de création d'un élève (POST /students et lignes CSV valides)."""
    student_code: str
    name: str
    date_of_birth: date
    gender: str
    grade: str
    section: str
    guardian_name: str
    contact_number: str
    address: str = ""

    @field_validator(
        "student_code", "name", "grade", "section", "guardian_name", "contact_number"
    )
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        return v.strip()

    @field_validator("gender")
    @classmethod
    def valid_gender(cls, v: str) -> str:
        v = v.strip()
        if v not in GENDERS:
            raise ValueError(f"Genre invalide : {v!r}. Valeurs acceptées : Male, Female, Other")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("La date de naissance ne peut pas être dans le futur.")
        return v

    @field_validator("grade")
    @classmethod
    def known_grade(cls, v: str) -> str:
        return check_grade_label(v)


class StudentUpdate(BaseModel):
    """Schéma de mise à jour d'un élève (PUT /students/{id}). student_code est immuable."""
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("name", "grade", "section", "guardian_name", "contact_number")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("gender")
    @classmethod
    def valid_gender(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.strip() not in GENDERS:
            raise ValueError(f"Genre invalide : {v!r}. Valeurs acceptées : Male, Female, Other")
        return v.strip() if v else v

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v > date.today():
            raise ValueError("La date de naissance ne peut pas être dans le futur.")
        return v

    @field_validator("grade")
    @classmethod
    def known_grade(cls, v: Optional[str]) -> Optional[str]:
        return check_grade_label(v) if v is not None else v


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève (GET /students)."""
    id: uuid.UUID
    student_code: str
    name: str
    date_of_birth: date
    gender: str
    grade: str
    section: str
    guardian_name: str
    contact_number: str
    address: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RowRejection(BaseModel):
    """Ligne CSV rejetée : toutes les erreurs de la ligne, jamais d'import partiel."""
    row: int
    content: str
    errors: List[str]


class RowOutcome(BaseModel):
    """Résultat du rapprochement d'une ligne CSV."""
    row: int
    status: Literal["created", "updated", "rejected", "skipped"]
    student_code: Optional[str] = None
    content: str = ""
    errors: List[str] = []


class StudentImportReport(BaseModel):
    """
    Rapport retourné après un import CSV.

    total_rows compte les lignes non vides (succeeded + failed) ; les lignes
    entièrement vides sont comptées à part dans skipped mais gardent leur numéro.
    """
    total_rows: int
    succeeded: int
    failed: int
    created: int
    updated: int
    skipped: int = 0
    errors: List[RowRejection]
