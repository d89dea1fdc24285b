"""
Tests des agrégats du tableau de bord.
"""

from datetime import date, timedelta

from app.services.dashboard_service import get_dashboard_stats
from app.services.vaccination_service import record_vaccination
from conftest import add_drive, add_student


def in_days(days: int) -> date:
    return date.today() + timedelta(days=days)


def test_dashboard_base_vide(db):
    stats = get_dashboard_stats(db)

    assert stats.total_students == 0
    assert stats.students_vaccinated == 0
    assert stats.vaccination_percentage == 0
    assert stats.upcoming_drives == []
    assert stats.vaccine_counts == []


def test_dashboard_statistiques(db, actor):
    polio = add_drive(db, in_days(-10), vaccine_name="Polio")
    mmr = add_drive(db, in_days(-1), vaccine_name="MMR")
    add_drive(db, in_days(20), vaccine_name="HPV")
    add_drive(db, in_days(25), vaccine_name="Typhoid", status="cancelled")
    add_drive(db, in_days(45), vaccine_name="Hepatitis B")
    students = [add_student(db, student_code=f"STU{i}") for i in range(3)]

    record_vaccination(db, polio.id, students[0].id, actor)
    record_vaccination(db, mmr.id, students[0].id, actor)
    record_vaccination(db, mmr.id, students[1].id, actor)

    stats = get_dashboard_stats(db)

    assert stats.total_students == 3
    assert stats.students_vaccinated == 2
    assert stats.vaccination_percentage == 66.67
    assert [d.vaccine_name for d in stats.upcoming_drives] == ["HPV"]
    assert [(c.vaccine_name, c.count) for c in stats.vaccine_counts] == [("MMR", 2), ("Polio", 1)]
    assert len(stats.recent_vaccinations) == 3
