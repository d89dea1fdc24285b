"""
Tests d'intégration API pour les élèves.
Testent les URLs, les codes HTTP, l'authentification et le format des réponses.
"""

import uuid
from datetime import date, datetime
from unittest.mock import patch

from app.exceptions import NotFound, StudentInUse, ValidationError
from app.schemas.student import RowRejection, StudentImportReport, StudentResponse


# --- Helpers ---

def make_student_response(**kwargs) -> StudentResponse:
    return StudentResponse(
        id=kwargs.get("id", uuid.uuid4()),
        student_code=kwargs.get("student_code", "STU001"),
        name=kwargs.get("name", "Asha Verma"),
        date_of_birth=kwargs.get("date_of_birth", date(2015, 3, 14)),
        gender=kwargs.get("gender", "Female"),
        grade=kwargs.get("grade", "5"),
        section=kwargs.get("section", "A"),
        guardian_name=kwargs.get("guardian_name", "Ravi Verma"),
        contact_number=kwargs.get("contact_number", "9876543210"),
        address=kwargs.get("address", ""),
        created_at=datetime.now(),
    )


STUDENT_PAYLOAD = {
    "student_code": "STU001",
    "name": "Asha Verma",
    "date_of_birth": "2015-03-14",
    "gender": "Female",
    "grade": "5",
    "section": "A",
    "guardian_name": "Ravi Verma",
    "contact_number": "9876543210",
}


# ============================================================
# GET /api/v1/students
# ============================================================

def test_list_students(client):
    with patch("app.routers.students.student_service.list_students") as mock:
        mock.return_value = [make_student_response(), make_student_response(student_code="STU002")]

        response = client.get("/api/v1/students?grade=5&search=asha")

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert mock.call_args.kwargs == {"search": "asha", "grade": "5"}


def test_get_student_introuvable(client):
    """Une erreur métier NotFound est convertie en 404 avec son code."""
    with patch("app.routers.students.student_service.get_student") as mock:
        mock.side_effect = NotFound("Élève introuvable.")

        response = client.get(f"/api/v1/students/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"detail": "Élève introuvable.", "code": "NOT_FOUND"}


# ============================================================
# POST /api/v1/students
# ============================================================

def test_create_student_succes(client, auth_headers):
    with patch("app.routers.students.student_service.create_student") as mock:
        mock.return_value = make_student_response()

        response = client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["student_code"] == "STU001"


def test_create_student_sans_authentification(client):
    response = client.post("/api/v1/students", json=STUDENT_PAYLOAD)
    assert response.status_code == 401


def test_create_student_identifiant_utilisateur_invalide(client):
    response = client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers={"X-User-Id": "abc"})
    assert response.status_code == 401


def test_create_student_genre_invalide(client, auth_headers):
    response = client.post(
        "/api/v1/students", json={**STUDENT_PAYLOAD, "gender": "X"}, headers=auth_headers
    )
    assert response.status_code == 422


def test_create_student_identifiant_deja_pris(client, auth_headers):
    with patch("app.routers.students.student_service.create_student") as mock:
        mock.side_effect = ValidationError("L'identifiant élève 'STU001' existe déjà.")

        response = client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


# ============================================================
# PUT / DELETE /api/v1/students/{id}
# ============================================================

def test_update_student_identifiant_refuse(client, auth_headers):
    response = client.put(
        f"/api/v1/students/{uuid.uuid4()}", json={"student_code": "STU999"}, headers=auth_headers
    )
    assert response.status_code == 422


def test_delete_student_vaccine(client, auth_headers):
    with patch("app.routers.students.student_service.delete_student") as mock:
        mock.side_effect = StudentInUse("Impossible de supprimer cet élève.")

        response = client.delete(f"/api/v1/students/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "STUDENT_IN_USE"


def test_delete_student_succes(client, auth_headers):
    with patch("app.routers.students.student_service.delete_student"):
        response = client.delete(f"/api/v1/students/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 204


# ============================================================
# POST /api/v1/students/upload
# ============================================================

def test_upload_csv_succes(client, auth_headers):
    report = StudentImportReport(
        total_rows=3, succeeded=2, failed=1, created=2, updated=0,
        errors=[RowRejection(row=3, content="STU002, Karan", errors=["Genre invalide : X"])],
    )
    with patch("app.routers.students.parse_and_import_csv") as mock:
        mock.return_value = report

        response = client.post(
            "/api/v1/students/upload",
            files={"file": ("students.csv", b"name,studentId\n", "text/csv")},
            headers=auth_headers,
        )

    assert response.status_code == 200
    data = response.json()
    assert data["total_rows"] == 3
    assert data["failed"] == 1
    assert data["errors"][0]["row"] == 3


def test_upload_format_invalide(client, auth_headers):
    response = client.post(
        "/api/v1/students/upload",
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_upload_fichier_vide(client, auth_headers):
    response = client.post(
        "/api/v1/students/upload",
        files={"file": ("students.csv", b"", "text/csv")},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "vide" in response.json()["detail"]


def test_upload_sans_authentification(client):
    response = client.post(
        "/api/v1/students/upload",
        files={"file": ("students.csv", b"name\n", "text/csv")},
    )
    assert response.status_code == 401
