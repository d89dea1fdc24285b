"""
Router pour le rapport des vaccinations (lecture seule).
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.vaccination import VaccinationReportRow
from app.services import vaccination_service

router = APIRouter(prefix="/api/v1/vaccinations", tags=["Vaccinations"])


@router.get("", response_model=List[VaccinationReportRow], summary="Rapport des vaccinations")
def list_vaccinations(
    vaccine_name: Optional[str] = None,
    grade: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Vaccinations de la plus récente à la plus ancienne, filtrables par vaccin, classe et période."""
    return vaccination_service.list_records(
        db, vaccine_name=vaccine_name, grade=grade, start_date=start_date, end_date=end_date
    )
