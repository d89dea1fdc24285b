"""
Erreurs métier levées par les services.

Chaque erreur porte un code machine et le statut HTTP correspondant ;
app.main les convertit en réponse JSON {"detail", "code"}.
Elles héritent de ValueError.
"""

from datetime import datetime
from typing import Optional


class ServiceError(ValueError):
    """Base des erreurs métier (toujours récupérables, jamais fatales au process)."""

    code = "SERVICE_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Données d'entrée mal formées, corrigibles par l'appelant."""
    code = "VALIDATION_ERROR"
    status_code = 422


class LeadTimeViolation(ServiceError):
    code = "LEAD_TIME_VIOLATION"
    status_code = 400


class SchedulingConflict(ServiceError):
    code = "SCHEDULING_CONFLICT"
    status_code = 409


class ImmutableAfterOccurrence(ServiceError):
    code = "IMMUTABLE_AFTER_OCCURRENCE"
    status_code = 400


class NotAuthorized(ServiceError):
    code = "NOT_AUTHORIZED"
    status_code = 403


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404


class NotYetOccurred(ServiceError):
    code = "NOT_YET_OCCURRED"
    status_code = 400


class IneligibleGrade(ServiceError):
    code = "INELIGIBLE_GRADE"
    status_code = 400


class DuplicateInDrive(ServiceError):
    code = "DUPLICATE_IN_DRIVE"
    status_code = 409


class AlreadyImmunized(ServiceError):
    """L'élève a déjà reçu ce vaccin (toutes campagnes confondues)."""
    code = "ALREADY_IMMUNIZED"
    status_code = 409

    def __init__(self, vaccine_name: str, administered_at: Optional[datetime]):
        when = administered_at.strftime("%d/%m/%Y") if administered_at else "une date inconnue"
        super().__init__(f"L'élève a déjà reçu le vaccin {vaccine_name} le {when}.")
        self.vaccine_name = vaccine_name
        self.administered_at = administered_at


class NoDosesRemaining(ServiceError):
    code = "NO_DOSES_REMAINING"
    status_code = 409


class DriveNotActive(ServiceError):
    code = "DRIVE_NOT_ACTIVE"
    status_code = 409


class StudentInUse(ServiceError):
    code = "STUDENT_IN_USE"
    status_code = 409


class ConcurrentUpdate(ServiceError):
    """Écriture concurrente non rattachable à une règle métier ; l'appelant peut réessayer."""
    code = "CONCURRENT_UPDATE"
    status_code = 409
