"""
Service métier pour l'annuaire des élèves.
Lecture / écriture utilisées par l'API, l'import CSV et l'enregistrement des vaccinations.
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import NotFound, StudentInUse, ValidationError
from app.models.student import Student
from app.models.vaccination_record import VaccinationRecord
from app.schemas.student import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)


def find_by_external_id(db: Session, student_code: str) -> Optional[Student]:
    """Retourne l'élève portant cet identifiant externe, ou None."""
    return db.execute(
        select(Student).where(Student.student_code == student_code.strip())
    ).scalar_one_or_none()


def get_student(db: Session, student_id: uuid.UUID) -> Student:
    """Retourne un élève par son ID. Lève NotFound s'il n'existe pas."""
    student = db.get(Student, student_id)
    if student is None:
        raise NotFound("Élève introuvable.")
    return student


def list_students(
    db: Session, search: Optional[str] = None, grade: Optional[str] = None
) -> List[Student]:
    """
    Liste les élèves triés par nom.
    `search` filtre sur le nom ou l'identifiant externe (insensible à la casse).
    """
    query = select(Student)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(or_(
            func.lower(Student.name).like(pattern),
            func.lower(Student.student_code).like(pattern),
        ))
    if grade:
        query = query.where(Student.grade == grade)
    return list(db.execute(query.order_by(Student.name)).scalars().all())


def list_by_grade(db: Session, grade: str) -> List[Student]:
    return list_students(db, grade=grade)


def create_student(db: Session, data: StudentCreate) -> Student:
    """
    Crée un élève.
    Lève ValidationError si l'identifiant externe est déjà attribué.
    """
    if find_by_external_id(db, data.student_code) is not None:
        raise ValidationError(f"L'identifiant élève '{data.student_code}' existe déjà.")

    student = Student(**data.model_dump())
    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError(f"L'identifiant élève '{data.student_code}' existe déjà.")
    db.refresh(student)
    logger.info("Élève créé : %s (%s)", student.student_code, student.id)
    return student


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate) -> Student:
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    student = get_student(db, student_id)

    # null explicite ignoré : toutes les colonnes sont NOT NULL
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    return student


def replace_student(db: Session, student: Student, data: StudentCreate) -> Student:
    """
    Remplace tous les champs d'un élève existant (pas de fusion).
    Utilisé par le rapprochement CSV ; le commit est laissé à l'appelant.
    """
    for field, value in data.model_dump().items():
        setattr(student, field, value)
    return student


def delete_student(db: Session, student_id: uuid.UUID) -> None:
    """
    Supprime un élève.
    Refusé si des vaccinations le référencent : l'historique est conservé.
    """
    student = get_student(db, student_id)

    has_records = db.execute(
        select(VaccinationRecord.id)
        .where(VaccinationRecord.student_id == student.id)
        .limit(1)
    ).scalar()
    if has_records:
        raise StudentInUse(
            "Impossible de supprimer cet élève : des vaccinations sont enregistrées à son nom."
        )

    db.delete(student)
    db.commit()
    logger.info("Élève supprimé : %s", student_id)
