"""
Service d'import CSV pour les élèves (rapprochement avec l'annuaire).
Gère le décodage, la validation ligne par ligne et l'upsert par identifiant externe.

Chaque ligne est traitée indépendamment : une ligne invalide est rejetée en entier
(aucune mise à jour partielle) et n'interrompt jamais le lot. Les lignes valides
sont commitées une à une, elles restent acquises même si une ligne suivante échoue.
"""

import csv
import io
import logging
from datetime import date, datetime
from typing import Iterable, Iterator, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import ValidationError
from app.models.student import Student
from app.schemas.student import (
    GENDERS,
    RowOutcome,
    RowRejection,
    StudentCreate,
    StudentImportReport,
)
from app.services import student_service

logger = logging.getLogger(__name__)

# En-têtes acceptés (normalisés : minuscules, sans espaces ni _ ni -) → champ du modèle
COLUMN_ALIASES = {
    "name": "name",
    "studentname": "name",
    "studentid": "student_code",
    "studentcode": "student_code",
    "dateofbirth": "date_of_birth",
    "dob": "date_of_birth",
    "birthdate": "date_of_birth",
    "gender": "gender",
    "grade": "grade",
    "class": "grade",
    "section": "section",
    "parentname": "guardian_name",
    "guardianname": "guardian_name",
    "guardian": "guardian_name",
    "contactnumber": "contact_number",
    "contact": "contact_number",
    "phone": "contact_number",
    "address": "address",
}

REQUIRED_FIELDS = {
    "name": "name",
    "student_code": "studentId",
    "date_of_birth": "dateOfBirth",
    "gender": "gender",
    "grade": "grade",
    "section": "section",
    "guardian_name": "parentName",
    "contact_number": "contactNumber",
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d")


def _normalize_header(raw: str) -> str:
    """Normalise un nom de colonne : minuscules, sans espaces, tirets ni underscores."""
    return raw.strip().lower().replace(" ", "").replace("_", "").replace("-", "")


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") > sample.count(","):
        return ";"
    return ","


def _parse_date(raw: str) -> Optional[date]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _canonical_row(raw: Mapping[str, Optional[str]]) -> dict[str, str]:
    """Ramène les clés d'une ligne brute aux noms de champs du modèle Student."""
    row: dict[str, str] = {}
    for key, value in raw.items():
        if key is None or not isinstance(value, str):
            continue  # colonnes excédentaires de csv.DictReader
        field = COLUMN_ALIASES.get(_normalize_header(key))
        if field is not None:
            row[field] = value
    return row


def read_csv_rows(content: bytes) -> list[dict[str, Optional[str]]]:
    """
    Décode un fichier CSV en lignes clé → valeur.
    Lève ValidationError si le fichier est vide ou illisible.
    """
    try:
        text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    except UnicodeDecodeError:
        raise ValidationError("Fichier CSV illisible : encodage UTF-8 attendu.")

    lines = text.splitlines()
    if not lines:
        raise ValidationError("Fichier CSV vide ou illisible.")

    reader = csv.DictReader(io.StringIO(text), delimiter=_detect_separator(lines[0]))
    if not reader.fieldnames:
        raise ValidationError("Fichier CSV vide ou illisible.")
    return [dict(row) for row in reader]


def validate_row(
    raw: Mapping[str, Optional[str]], row_number: int
) -> Union[StudentCreate, RowRejection]:
    """
    Valide une ligne brute.
    Retourne l'élève prêt à être enregistré, ou le rejet avec toutes les erreurs de la ligne.
    """
    row = _canonical_row(raw)
    content = f"{row.get('student_code', '').strip()}, {row.get('name', '').strip()}"
    errors: list[str] = []

    for field, label in REQUIRED_FIELDS.items():
        if not row.get(field, "").strip():
            errors.append(f"Champ obligatoire manquant : {label}")

    raw_dob = row.get("date_of_birth", "").strip()
    date_of_birth = _parse_date(raw_dob) if raw_dob else None
    if raw_dob and date_of_birth is None:
        errors.append(f"Date de naissance invalide : {raw_dob}")

    raw_gender = row.get("gender", "").strip()
    if raw_gender and raw_gender not in GENDERS:
        errors.append(f"Genre invalide : {raw_gender} (Male, Female ou Other)")

    if errors:
        return RowRejection(row=row_number, content=content, errors=errors)

    try:
        return StudentCreate(
            student_code=row["student_code"],
            name=row["name"],
            date_of_birth=date_of_birth,
            gender=raw_gender,
            grade=row["grade"],
            section=row["section"],
            guardian_name=row["guardian_name"],
            contact_number=row["contact_number"],
            address=row.get("address", ""),
        )
    except PydanticValidationError as exc:
        return RowRejection(
            row=row_number,
            content=content,
            errors=[err["msg"].removeprefix("Value error, ") for err in exc.errors()],
        )


def reconcile_rows(
    db: Session, rows: Iterable[Mapping[str, Optional[str]]]
) -> Iterator[RowOutcome]:
    """
    Rapproche les lignes avec l'annuaire, au fil de l'eau (générateur).

    Pour chaque ligne :
    1. Ligne entièrement vide → skipped (ni créée, ni rejetée)
    2. Validation → rejet si au moins une erreur
    3. Élève existant (même identifiant externe) → tous les champs écrasés
    4. Sinon → création
    5. Commit de la ligne ; en cas de conflit BDD, rollback de cette seule ligne
    """
    for index, raw in enumerate(rows):
        row_number = index + 2  # ligne 1 = header
        if not any(isinstance(v, str) and v.strip() for v in raw.values()):
            yield RowOutcome(row=row_number, status="skipped")
            continue

        result = validate_row(raw, row_number)
        if isinstance(result, RowRejection):
            logger.debug("Ligne %d rejetée : %s", row_number, "; ".join(result.errors))
            yield RowOutcome(
                row=row_number, status="rejected", content=result.content, errors=result.errors
            )
            continue

        existing = student_service.find_by_external_id(db, result.student_code)
        if existing is not None:
            student_service.replace_student(db, existing, result)
            status = "updated"
        else:
            db.add(Student(**result.model_dump()))
            status = "created"

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning("Ligne %d : conflit en base (%s)", row_number, exc.orig)
            yield RowOutcome(
                row=row_number,
                status="rejected",
                student_code=result.student_code,
                content=f"{result.student_code}, {result.name}",
                errors=["Conflit en base de données, ligne non importée."],
            )
            continue

        yield RowOutcome(row=row_number, status=status, student_code=result.student_code)


def reconcile_students(
    db: Session, rows: Iterable[Mapping[str, Optional[str]]]
) -> StudentImportReport:
    """Consomme reconcile_rows et agrège le rapport d'import."""
    created = updated = skipped = total = 0
    errors: list[RowRejection] = []

    for outcome in reconcile_rows(db, rows):
        if outcome.status == "skipped":
            skipped += 1
            continue
        total += 1
        if outcome.status == "created":
            created += 1
        elif outcome.status == "updated":
            updated += 1
        else:
            errors.append(RowRejection(row=outcome.row, content=outcome.content, errors=outcome.errors))

    logger.info(
        "Import élèves : %d lignes, %d créés, %d mis à jour, %d rejetées, %d vides ignorées",
        total, created, updated, len(errors), skipped,
    )
    return StudentImportReport(
        total_rows=total,
        succeeded=created + updated,
        failed=len(errors),
        created=created,
        updated=updated,
        skipped=skipped,
        errors=errors,
    )


def parse_and_import_csv(content: bytes, db: Session) -> StudentImportReport:
    """Décode le fichier CSV puis rapproche toutes ses lignes avec l'annuaire."""
    return reconcile_students(db, read_csv_rows(content))
