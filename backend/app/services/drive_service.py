"""
Service métier pour les campagnes de vaccination (drives).
Gère la planification, la modification, l'annulation et la suppression des campagnes.

Règles de planification :
- la date doit respecter un préavis minimum (DRIVE_LEAD_TIME_DAYS, 15 jours par défaut)
- une seule campagne non annulée par jour calendaire
- une campagne dont la date est arrivée (aujourd'hui ou passée) n'est plus modifiable
"""

import uuid
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import Actor
from app.config import settings
from app.exceptions import (
    DriveNotActive,
    ImmutableAfterOccurrence,
    LeadTimeViolation,
    NotAuthorized,
    NotFound,
    SchedulingConflict,
    ValidationError,
)
from app.models.drive import Drive
from app.models.vaccination_record import VaccinationRecord
from app.schemas.drive import DriveCreate, DriveResponse, DriveUpdate

logger = logging.getLogger(__name__)


def check_lead_time(drive_date: date, lead_time_days: Optional[int] = None) -> None:
    """Lève LeadTimeViolation si la date ne respecte pas le préavis minimum."""
    if lead_time_days is None:
        lead_time_days = settings.DRIVE_LEAD_TIME_DAYS
    minimum = date.today() + timedelta(days=lead_time_days)
    if drive_date < minimum:
        raise LeadTimeViolation(
            f"Une campagne doit être planifiée au moins {lead_time_days} jours à l'avance "
            f"(au plus tôt le {minimum.isoformat()})."
        )


def check_date_available(db: Session, drive_date: date, exclude_id: Optional[uuid.UUID] = None) -> None:
    """Lève SchedulingConflict si une campagne non annulée occupe déjà ce jour."""
    query = select(Drive.id).where(Drive.date == drive_date, Drive.status != "cancelled")
    if exclude_id is not None:
        query = query.where(Drive.id != exclude_id)
    if db.execute(query.limit(1)).scalar() is not None:
        raise SchedulingConflict(
            f"Une campagne de vaccination est déjà planifiée le {drive_date.isoformat()}."
        )


def has_occurred(drive: Drive) -> bool:
    """Une campagne a eu lieu dès que sa date est aujourd'hui ou passée."""
    return drive.date <= date.today()


def _is_date_conflict(exc: IntegrityError) -> bool:
    """Vrai si la violation vient de l'index unique partiel sur la date (PostgreSQL ou SQLite)."""
    message = str(exc.orig)
    return "uq_drives_active_date" in message or "drives.date" in message


def _get_or_404(db: Session, drive_id: uuid.UUID) -> Drive:
    drive = db.get(Drive, drive_id)
    if drive is None:
        raise NotFound("Campagne de vaccination introuvable.")
    return drive


def create_drive(
    db: Session, data: DriveCreate, actor: Actor, lead_time_days: Optional[int] = None
) -> DriveResponse:
    """
    Planifie une nouvelle campagne en statut scheduled, 0 dose administrée.
    Lève LeadTimeViolation ou SchedulingConflict.
    """
    check_lead_time(data.date, lead_time_days)
    check_date_available(db, data.date)

    drive = Drive(
        vaccine_name=data.vaccine_name,
        description=data.description,
        date=data.date,
        doses=data.doses,
        doses_administered=0,
        applicable_grades=data.applicable_grades,
        status="scheduled",
        created_by=actor.id,
    )
    db.add(drive)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not _is_date_conflict(exc):
            raise
        # une autre requête a pris ce jour entre-temps
        raise SchedulingConflict(
            f"Une campagne de vaccination est déjà planifiée le {data.date.isoformat()}."
        )
    db.refresh(drive)

    logger.info(
        "Campagne créée : %s le %s (%s), %d doses, classes %s",
        drive.vaccine_name, drive.date, drive.id, drive.doses, ", ".join(drive.applicable_grades),
    )
    return to_response(drive)


def get_drive(db: Session, drive_id: uuid.UUID) -> DriveResponse:
    """Retourne une campagne par son ID. Lève NotFound si elle n'existe pas."""
    return to_response(_get_or_404(db, drive_id))


def list_drives(
    db: Session,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    upcoming: bool = False,
) -> List[DriveResponse]:
    """
    Liste les campagnes par date croissante.
    `upcoming` limite aux campagnes entre aujourd'hui et UPCOMING_WINDOW_DAYS,
    ignoré si une période explicite est fournie.
    """
    query = select(Drive)
    if status:
        query = query.where(Drive.status == status)
    if start_date or end_date:
        if start_date:
            query = query.where(Drive.date >= start_date)
        if end_date:
            query = query.where(Drive.date <= end_date)
    elif upcoming:
        today = date.today()
        query = query.where(
            Drive.date >= today,
            Drive.date <= today + timedelta(days=settings.UPCOMING_WINDOW_DAYS),
        )

    drives = db.execute(query.order_by(Drive.date)).scalars().all()
    return [to_response(d) for d in drives]


def update_drive(
    db: Session,
    drive_id: uuid.UUID,
    data: DriveUpdate,
    actor: Actor,
    lead_time_days: Optional[int] = None,
) -> DriveResponse:
    """
    Met à jour les champs fournis d'une campagne encore à venir.
    Si la date change, le préavis et l'absence de conflit sont revérifiés
    (la campagne elle-même est exclue du contrôle de conflit).
    """
    drive = _get_or_404(db, drive_id)
    if has_occurred(drive):
        raise ImmutableAfterOccurrence("Impossible de modifier une campagne qui a déjà eu lieu.")
    if drive.status == "cancelled":
        raise DriveNotActive("Impossible de modifier une campagne annulée.")

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    new_date = update_data.get("date")
    if new_date is not None and new_date != drive.date:
        check_lead_time(new_date, lead_time_days)
        check_date_available(db, new_date, exclude_id=drive.id)

    new_doses = update_data.get("doses")
    if new_doses is not None and new_doses < drive.doses_administered:
        raise ValidationError(
            f"Le nombre de doses ne peut pas être inférieur aux doses déjà administrées "
            f"({drive.doses_administered})."
        )

    for field, value in update_data.items():
        setattr(drive, field, value)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not _is_date_conflict(exc):
            raise
        raise SchedulingConflict("Une campagne de vaccination est déjà planifiée à cette date.")
    db.refresh(drive)

    logger.info("Campagne %s modifiée par %s : %s", drive.id, actor.id, ", ".join(update_data))
    return to_response(drive)


def cancel_drive(db: Session, drive_id: uuid.UUID, actor: Actor) -> DriveResponse:
    """
    Annule une campagne à venir (scheduled → cancelled).
    Le jour est libéré pour une autre campagne.
    """
    drive = _get_or_404(db, drive_id)
    if has_occurred(drive):
        raise ImmutableAfterOccurrence("Impossible d'annuler une campagne qui a déjà eu lieu.")
    if drive.status != "scheduled":
        raise DriveNotActive(f"Impossible d'annuler une campagne en statut {drive.status}.")

    drive.status = "cancelled"
    db.commit()
    db.refresh(drive)

    logger.info("Campagne annulée : %s (%s) par %s", drive.vaccine_name, drive.id, actor.id)
    return to_response(drive)


def delete_drive(db: Session, drive_id: uuid.UUID, actor: Actor) -> None:
    """
    Supprime une campagne à venir. Seul son créateur peut la supprimer.
    Refusé dès qu'une vaccination la référence : aucune vaccination orpheline.
    """
    drive = _get_or_404(db, drive_id)
    if has_occurred(drive):
        raise ImmutableAfterOccurrence("Impossible de supprimer une campagne qui a déjà eu lieu.")
    if drive.created_by != actor.id:
        raise NotAuthorized("Seul le créateur de la campagne peut la supprimer.")

    has_records = db.execute(
        select(VaccinationRecord.id).where(VaccinationRecord.drive_id == drive.id).limit(1)
    ).scalar()
    if has_records:
        raise ImmutableAfterOccurrence(
            "Impossible de supprimer une campagne pour laquelle des vaccinations sont enregistrées."
        )

    db.delete(drive)
    db.commit()
    logger.info("Campagne supprimée : %s par %s", drive_id, actor.id)


def to_response(drive: Drive) -> DriveResponse:
    """Construit le schéma de réponse avec le nombre de doses restantes."""
    return DriveResponse(
        id=drive.id,
        vaccine_name=drive.vaccine_name,
        description=drive.description,
        date=drive.date,
        doses=drive.doses,
        doses_administered=drive.doses_administered,
        doses_remaining=max(drive.doses - drive.doses_administered, 0),
        applicable_grades=list(drive.applicable_grades or []),
        status=drive.status,
        created_by=drive.created_by,
        created_at=drive.created_at,
        updated_at=drive.updated_at,
    )
