"""
Schémas Pydantic pour le tableau de bord.
"""

from typing import List

from pydantic import BaseModel

from app.schemas.drive import DriveResponse
from app.schemas.vaccination import VaccinationReportRow


class VaccineCount(BaseModel):
    vaccine_name: str
    count: int


class DashboardStats(BaseModel):
    total_students: int
    students_vaccinated: int
    vaccination_percentage: float   # arrondi à 2 décimales
    upcoming_drives: List[DriveResponse]
    vaccine_counts: List[VaccineCount]
    recent_vaccinations: List[VaccinationReportRow]
