# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles
# (vaccination_records.student_id → students.id, vaccination_records.drive_id → drives.id).

from app.models.student import Student  # noqa: F401
from app.models.drive import Drive  # noqa: F401
from app.models.vaccination_record import VaccinationRecord  # noqa: F401
