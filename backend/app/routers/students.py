"""
Router pour les élèves.
Annuaire : listage, détail, création, mise à jour, suppression.
Import CSV (POST /api/v1/students/upload).
Historique des vaccinations d'un élève.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.auth import Actor, get_current_actor
from app.config import settings
from app.database import get_db
from app.schemas.student import StudentCreate, StudentImportReport, StudentResponse, StudentUpdate
from app.schemas.vaccination import VaccinationRecordResponse
from app.services import student_service, vaccination_service
from app.services.student_import import parse_and_import_csv

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=List[StudentResponse], summary="Lister les élèves")
def list_students(
    search: Optional[str] = None,
    grade: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Retourne les élèves triés par nom, filtrables par recherche (nom / identifiant) et classe."""
    return student_service.list_students(db, search=search, grade=grade)


@router.get("/{student_id}", response_model=StudentResponse, summary="Détail d'un élève")
def get_student(student_id: uuid.UUID, db: Session = Depends(get_db)):
    return student_service.get_student(db, student_id)


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève")
def create_student(
    data: StudentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Crée un élève manuellement (hors import CSV). L'identifiant externe doit être unique."""
    return student_service.create_student(db, data)


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    return student_service.update_student(db, student_id, data)


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_student(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Supprime un élève sans vaccination enregistrée (409 sinon)."""
    student_service.delete_student(db, student_id)


@router.get(
    "/{student_id}/vaccinations",
    response_model=List[VaccinationRecordResponse],
    summary="Historique des vaccinations d'un élève",
)
def list_student_vaccinations(student_id: uuid.UUID, db: Session = Depends(get_db)):
    return vaccination_service.list_student_records(db, student_id)


ALLOWED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel"}


@router.post("/upload", response_model=StudentImportReport, summary="Importer des élèves via CSV")
async def upload_students(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Importe ou met à jour des élèves depuis un fichier CSV.

    Format attendu du CSV :
    - Colonnes obligatoires : `name`, `studentId`, `dateOfBirth`, `gender`, `grade`,
      `section`, `parentName`, `contactNumber`
    - Colonne optionnelle : `address`
    - Séparateur : virgule (`,`) ou point-virgule (`;`)
    - Encodage : UTF-8 (avec ou sans BOM)

    Un élève déjà connu (même `studentId`) est entièrement remplacé par la ligne du fichier.
    Retourne un rapport : lignes traitées, réussies, rejetées et le détail des rejets.
    """
    # Validation du type de fichier
    if file.content_type not in ALLOWED_CONTENT_TYPES and not (file.filename or "").endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Format invalide. Seuls les fichiers CSV sont acceptés."
        )

    content = await file.read()

    # Validation de la taille
    if len(content) > settings.MAX_CSV_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {settings.MAX_CSV_SIZE_MB} Mo."
        )

    if not content:
        raise HTTPException(status_code=400, detail="Le fichier CSV est vide.")

    return parse_and_import_csv(content, db)
