"""
Router pour le tableau de bord.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.dashboard import DashboardStats
from app.services import dashboard_service

router = APIRouter(prefix="/api/v1/dashboard", tags=["Tableau de bord"])


@router.get("", response_model=DashboardStats, summary="Statistiques du tableau de bord")
def get_dashboard(db: Session = Depends(get_db)):
    return dashboard_service.get_dashboard_stats(db)
