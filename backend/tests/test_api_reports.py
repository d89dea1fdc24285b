"""
Tests d'intégration API : rapport des vaccinations, tableau de bord, santé.
"""

import uuid
from datetime import date, datetime
from unittest.mock import patch

from app.schemas.dashboard import DashboardStats, VaccineCount
from app.schemas.vaccination import VaccinationReportRow


def make_report_row(**kwargs) -> VaccinationReportRow:
    return VaccinationReportRow(
        id=uuid.uuid4(),
        student_id=uuid.uuid4(),
        student_code=kwargs.get("student_code", "STU001"),
        student_name=kwargs.get("student_name", "Asha Verma"),
        grade=kwargs.get("grade", "5"),
        section="A",
        vaccine_name=kwargs.get("vaccine_name", "Polio"),
        administered_at=datetime(2026, 3, 2, 9, 0),
        drive_id=uuid.uuid4(),
        drive_date=date(2026, 3, 2),
        notes="",
    )


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_vaccinations_filtres(client):
    with patch("app.routers.vaccinations.vaccination_service.list_records") as mock:
        mock.return_value = [make_report_row()]

        response = client.get(
            "/api/v1/vaccinations?vaccine_name=Polio&grade=5&start_date=2026-01-01&end_date=2026-06-30"
        )

    assert response.status_code == 200
    assert response.json()[0]["vaccine_name"] == "Polio"
    assert mock.call_args.kwargs == {
        "vaccine_name": "Polio",
        "grade": "5",
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 6, 30),
    }


def test_list_vaccinations_date_invalide(client):
    response = client.get("/api/v1/vaccinations?start_date=pas-une-date")
    assert response.status_code == 422


def test_dashboard(client):
    stats = DashboardStats(
        total_students=3,
        students_vaccinated=2,
        vaccination_percentage=66.67,
        upcoming_drives=[],
        vaccine_counts=[VaccineCount(vaccine_name="MMR", count=2)],
        recent_vaccinations=[make_report_row()],
    )
    with patch("app.routers.dashboard.dashboard_service.get_dashboard_stats") as mock:
        mock.return_value = stats

        response = client.get("/api/v1/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["vaccination_percentage"] == 66.67
    assert data["vaccine_counts"] == [{"vaccine_name": "MMR", "count": 2}]
