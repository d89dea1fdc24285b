"""
Agrégats du tableau de bord : couverture vaccinale, campagnes à venir, dernières vaccinations.
Lecture seule, aucune synchronisation nécessaire.
"""

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.drive import Drive
from app.models.student import Student
from app.models.vaccination_record import VaccinationRecord
from app.schemas.dashboard import DashboardStats, VaccineCount
from app.services import vaccination_service
from app.services.drive_service import to_response

UPCOMING_DRIVES_LIMIT = 5
RECENT_VACCINATIONS_LIMIT = 5


def get_dashboard_stats(db: Session) -> DashboardStats:
    total_students = db.execute(select(func.count(Student.id))).scalar() or 0
    students_vaccinated = db.execute(
        select(func.count(func.distinct(VaccinationRecord.student_id)))
    ).scalar() or 0

    percentage = (students_vaccinated / total_students) * 100 if total_students else 0.0

    today = date.today()
    upcoming = db.execute(
        select(Drive)
        .where(
            Drive.status == "scheduled",
            Drive.date >= today,
            Drive.date <= today + timedelta(days=settings.UPCOMING_WINDOW_DAYS),
        )
        .order_by(Drive.date)
        .limit(UPCOMING_DRIVES_LIMIT)
    ).scalars().all()

    return DashboardStats(
        total_students=total_students,
        students_vaccinated=students_vaccinated,
        vaccination_percentage=round(percentage, 2),
        upcoming_drives=[to_response(d) for d in upcoming],
        vaccine_counts=[
            VaccineCount(vaccine_name=name, count=count)
            for name, count in vaccination_service.count_by_vaccine(db)
        ],
        recent_vaccinations=vaccination_service.list_records(db, limit=RECENT_VACCINATIONS_LIMIT),
    )
