"""
Router pour les campagnes de vaccination.
Planification, modification, annulation, suppression et enregistrement des vaccinations.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.auth import Actor, get_current_actor
from app.database import get_db
from app.schemas.drive import DriveCreate, DriveResponse, DriveUpdate
from app.schemas.vaccination import VaccinationCreate, VaccinationRecordResponse
from app.services import drive_service, vaccination_service

router = APIRouter(prefix="/api/v1/drives", tags=["Campagnes"])


@router.get("", response_model=List[DriveResponse], summary="Lister les campagnes")
def list_drives(
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    upcoming: bool = False,
    db: Session = Depends(get_db),
):
    """Retourne les campagnes par date croissante, filtrables par statut et période."""
    return drive_service.list_drives(
        db, status=status, start_date=start_date, end_date=end_date, upcoming=upcoming
    )


@router.get("/{drive_id}", response_model=DriveResponse, summary="Détail d'une campagne")
def get_drive(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    return drive_service.get_drive(db, drive_id)


@router.post("", response_model=DriveResponse, status_code=201, summary="Planifier une campagne")
def create_drive(
    data: DriveCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Planifie une nouvelle campagne.
    La date doit respecter le préavis minimum et aucune autre campagne ne doit occuper ce jour.
    """
    return drive_service.create_drive(db, data, actor)


@router.put("/{drive_id}", response_model=DriveResponse, summary="Modifier une campagne")
def update_drive(
    drive_id: uuid.UUID,
    data: DriveUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Modifie une campagne à venir. Seuls les champs fournis sont modifiés."""
    return drive_service.update_drive(db, drive_id, data, actor)


@router.post("/{drive_id}/cancel", response_model=DriveResponse, summary="Annuler une campagne")
def cancel_drive(
    drive_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return drive_service.cancel_drive(db, drive_id, actor)


@router.delete("/{drive_id}", status_code=204, summary="Supprimer une campagne")
def delete_drive(
    drive_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Supprime une campagne à venir. Réservé à son créateur."""
    drive_service.delete_drive(db, drive_id, actor)


@router.post(
    "/{drive_id}/vaccinate/{student_id}",
    response_model=VaccinationRecordResponse,
    status_code=201,
    summary="Enregistrer la vaccination d'un élève",
)
def vaccinate_student(
    drive_id: uuid.UUID,
    student_id: uuid.UUID,
    data: Optional[VaccinationCreate] = Body(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Enregistre qu'un élève a reçu le vaccin de la campagne.

    Refusé si la campagne n'a pas encore eu lieu, si la classe de l'élève n'est pas
    concernée, si l'élève a déjà reçu ce vaccin ou s'il ne reste plus de dose.
    La dernière dose fait passer la campagne en statut completed.
    """
    data = data or VaccinationCreate()
    return vaccination_service.record_vaccination(
        db,
        drive_id,
        student_id,
        actor,
        administered_at=data.administered_at,
        notes=data.notes,
    )
