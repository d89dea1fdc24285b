"""
Service d'enregistrement des vaccinations (administration d'une dose).

Un élève ne reçoit un vaccin donné qu'une seule fois, toutes campagnes confondues.

Concurrence : plusieurs enregistrements simultanés sur la même campagne sont sérialisés.
- la ligne de la campagne est verrouillée (SELECT ... FOR UPDATE) avant les contrôles
  de doublon et de stock
- la dose est réservée par un UPDATE conditionnel (doses_administered < doses),
  le compteur ne peut donc jamais dépasser le stock
- les contraintes uniques (élève, campagne) et (élève, vaccin) rattrapent une insertion
  concurrente qui aurait échappé aux contrôles
"""

import uuid
import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import Actor
from app.exceptions import (
    AlreadyImmunized,
    ConcurrentUpdate,
    DriveNotActive,
    DuplicateInDrive,
    IneligibleGrade,
    NoDosesRemaining,
    NotFound,
    NotYetOccurred,
    ServiceError,
)
from app.models.drive import Drive
from app.models.student import Student
from app.models.vaccination_record import VaccinationRecord
from app.schemas.vaccination import VaccinationReportRow

logger = logging.getLogger(__name__)


def _find_record_in_drive(db: Session, student_id: uuid.UUID, drive_id: uuid.UUID) -> Optional[VaccinationRecord]:
    return db.execute(
        select(VaccinationRecord).where(
            VaccinationRecord.student_id == student_id,
            VaccinationRecord.drive_id == drive_id,
        )
    ).scalar_one_or_none()


def _find_record_for_vaccine(db: Session, student_id: uuid.UUID, vaccine_name: str) -> Optional[VaccinationRecord]:
    return db.execute(
        select(VaccinationRecord).where(
            VaccinationRecord.student_id == student_id,
            VaccinationRecord.vaccine_name == vaccine_name,
        )
    ).scalar_one_or_none()


def _check_not_vaccinated(db: Session, student: Student, drive: Drive) -> None:
    """Lève DuplicateInDrive ou AlreadyImmunized si l'élève a déjà une vaccination."""
    if _find_record_in_drive(db, student.id, drive.id) is not None:
        raise DuplicateInDrive("Cet élève a déjà été vacciné lors de cette campagne.")

    previous = _find_record_for_vaccine(db, student.id, drive.vaccine_name)
    if previous is not None:
        raise AlreadyImmunized(drive.vaccine_name, previous.administered_at)


def _claim_dose(db: Session, drive_id: uuid.UUID) -> bool:
    """
    Réserve une dose : incrémente le compteur uniquement s'il reste du stock.
    Retourne False si le stock est épuisé.
    """
    result = db.execute(
        update(Drive)
        .where(Drive.id == drive_id, Drive.doses_administered < Drive.doses)
        .values(doses_administered=Drive.doses_administered + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _complete_if_exhausted(db: Session, drive_id: uuid.UUID) -> bool:
    """Passe la campagne en completed si la dernière dose vient d'être administrée."""
    result = db.execute(
        update(Drive)
        .where(
            Drive.id == drive_id,
            Drive.doses_administered >= Drive.doses,
            Drive.status == "scheduled",
        )
        .values(status="completed")
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def record_vaccination(
    db: Session,
    drive_id: uuid.UUID,
    student_id: uuid.UUID,
    actor: Actor,
    administered_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> VaccinationRecord:
    """
    Enregistre la vaccination d'un élève lors d'une campagne.

    Étapes :
    1. Campagne et élève doivent exister (NotFound)
    2. La campagne doit avoir eu lieu (NotYetOccurred) et ne pas être annulée (DriveNotActive)
    3. La classe de l'élève doit être éligible (IneligibleGrade)
    4. Verrou sur la campagne, puis contrôles de doublon (DuplicateInDrive, AlreadyImmunized)
    5. Réservation d'une dose (NoDosesRemaining) et création de la vaccination
    6. Dernière dose → campagne completed
    """
    drive = db.get(Drive, drive_id)
    if drive is None:
        raise NotFound("Campagne de vaccination introuvable.")

    student = db.get(Student, student_id)
    if student is None:
        raise NotFound("Élève introuvable.")

    if drive.date > date.today():
        raise NotYetOccurred(
            "Impossible d'enregistrer une vaccination pour une campagne qui n'a pas encore eu lieu."
        )
    if drive.status == "cancelled":
        raise DriveNotActive("Impossible d'enregistrer une vaccination pour une campagne annulée.")

    if student.grade not in (drive.applicable_grades or []):
        raise IneligibleGrade(
            f"La classe {student.grade} de cet élève n'est pas concernée par cette campagne."
        )

    # Verrou ligne : les enregistrements concurrents sur cette campagne attendent ici
    drive = db.execute(
        select(Drive)
        .where(Drive.id == drive_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one()

    try:
        _check_not_vaccinated(db, student, drive)
        if drive.doses_administered >= drive.doses or not _claim_dose(db, drive.id):
            raise NoDosesRemaining("Plus aucune dose disponible pour cette campagne.")
    except ServiceError:
        db.rollback()  # libère le verrou
        raise

    record = VaccinationRecord(
        student_id=student.id,
        drive_id=drive.id,
        vaccine_name=drive.vaccine_name,
        administered_at=administered_at or datetime.now(timezone.utc),
        administered_by=actor.id,
        notes=(notes or "").strip(),
    )
    db.add(record)

    try:
        db.flush()
    except IntegrityError as exc:
        # Insertion concurrente pour le même élève : on annule la réservation de dose
        db.rollback()
        logger.warning(
            "Vaccination concurrente refusée : élève %s, campagne %s", student_id, drive_id
        )
        _check_not_vaccinated(db, student, drive)
        raise ConcurrentUpdate(
            "La vaccination n'a pas pu être enregistrée suite à une modification concurrente. Réessayez."
        ) from exc

    completed = _complete_if_exhausted(db, drive.id)
    db.commit()
    db.refresh(record)

    logger.info(
        "Vaccination enregistrée : élève %s, vaccin %s, campagne %s",
        student.student_code, record.vaccine_name, drive.id,
    )
    if completed:
        logger.info("Campagne %s terminée : toutes les doses ont été administrées.", drive.id)
    return record


def list_student_records(db: Session, student_id: uuid.UUID) -> List[VaccinationRecord]:
    """Historique des vaccinations d'un élève, de la plus récente à la plus ancienne."""
    if db.get(Student, student_id) is None:
        raise NotFound("Élève introuvable.")
    return list(db.execute(
        select(VaccinationRecord)
        .where(VaccinationRecord.student_id == student_id)
        .order_by(VaccinationRecord.administered_at.desc())
    ).scalars().all())


def list_records(
    db: Session,
    vaccine_name: Optional[str] = None,
    grade: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[VaccinationReportRow]:
    """
    Rapport des vaccinations (jointure élève + campagne), de la plus récente à la plus ancienne.
    Filtres optionnels : vaccin, classe, période d'administration (bornes incluses).
    """
    query = (
        select(VaccinationRecord, Student, Drive)
        .join(Student, Student.id == VaccinationRecord.student_id)
        .join(Drive, Drive.id == VaccinationRecord.drive_id)
    )
    if vaccine_name:
        query = query.where(VaccinationRecord.vaccine_name == vaccine_name)
    if grade:
        query = query.where(Student.grade == grade)
    if start_date:
        query = query.where(VaccinationRecord.administered_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(VaccinationRecord.administered_at <= datetime.combine(end_date, time.max))

    query = query.order_by(VaccinationRecord.administered_at.desc())
    if limit:
        query = query.limit(limit)

    return [
        VaccinationReportRow(
            id=record.id,
            student_id=student.id,
            student_code=student.student_code,
            student_name=student.name,
            grade=student.grade,
            section=student.section,
            vaccine_name=record.vaccine_name,
            administered_at=record.administered_at,
            drive_id=drive.id,
            drive_date=drive.date,
            notes=record.notes,
        )
        for record, student, drive in db.execute(query).all()
    ]


def count_by_vaccine(db: Session) -> List[tuple[str, int]]:
    """Nombre de vaccinations par vaccin, du plus administré au moins administré."""
    total = func.count(VaccinationRecord.id)
    rows = db.execute(
        select(VaccinationRecord.vaccine_name, total)
        .group_by(VaccinationRecord.vaccine_name)
        .order_by(total.desc(), VaccinationRecord.vaccine_name)
    ).all()
    return [(name, count) for name, count in rows]
