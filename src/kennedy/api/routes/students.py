from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from kennedy.db.connect import get_session_dep
from kennedy.db.crud import StudentCRUD, StudentDocumentCRUD
from kennedy.errors import DuplicateStudentError
from kennedy.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])

student_crud = StudentCRUD()
document_crud = StudentDocumentCRUD()


class CareerOut(BaseModel):
    id: int
    name: str
    fees: str | None = None
    modality: str | None = None

    model_config = {"from_attributes": True}


class StudentOut(BaseModel):
    id: int
    full_name: str
    dni: str | None = None
    legajo: str | None = None
    career_id: int | None = None
    career: CareerOut | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    career_interest: str | None = None
    location: str | None = None
    status: str | None = None
    general_notes: str | None = None
    is_student_the_contact: bool | None = None
    contact_person_name: str | None = None
    bot_students: bool | None = None
    secretaria: bool | None = None
    last_interaction_at: datetime | None = None

    model_config = {"from_attributes": True}


class StudentDocumentOut(BaseModel):
    id: int
    document_type: str
    file_name: str
    mime_type: str | None = None
    uploaded_at: datetime | None = None

    model_config = {"from_attributes": True}


class StudentCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=256)
    dni: str | None = None
    legajo: str | None = None
    career_id: int | None = None
    contact_phone: str | None = None
    contact_email: str | None = Field(
        default=None, validation_alias=AliasChoices("contact_email", "email")
    )
    career_interest: str | None = None
    location: str | None = None
    is_student_the_contact: bool | None = None
    contact_person_name: str | None = None
    general_notes: str | None = Field(
        default=None, validation_alias=AliasChoices("general_notes", "notes")
    )


class NotesUpdate(BaseModel):
    notes: str | None = None


class StudentPage(BaseModel):
    data: list[StudentOut]
    total: int
    page: int


@router.get("", response_model=StudentPage)
@router.get("/", response_model=StudentPage)
def list_students(
    page: int = Query(default=1, ge=1),
    search: str | None = None,
    career_id: int | None = None,
    status: str | None = None,
    location: str | None = None,
    db: Session = Depends(get_session_dep),
):
    result = student_crud.list(
        db,
        page=page,
        search=search,
        career_id=career_id,
        status=status,
        location=location,
    )
    return StudentPage(
        data=[StudentOut.model_validate(row) for row in result["data"]],
        total=result["total"],
        page=result["page"],
    )


@router.post("", status_code=201)
@router.post("/", status_code=201)
def create_student(payload: StudentCreate, db: Session = Depends(get_session_dep)):
    # email/notes arrive under their form names and are mapped by the aliases
    record = payload.model_dump(exclude_none=True)
    try:
        student = student_crud.create(db, record)
    except DuplicateStudentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "message": "Alumno creado con éxito",
        "data": StudentOut.model_validate(student).model_dump(mode="json"),
    }


@router.get("/{student_id}")
def read_student(student_id: int, db: Session = Depends(get_session_dep)):
    student = student_crud.get(db, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Alumno no encontrado")
    documents = document_crud.for_student(db, student_id)
    return {
        "student": StudentOut.model_validate(student).model_dump(mode="json"),
        "documents": [
            StudentDocumentOut.model_validate(doc).model_dump(mode="json") for doc in documents
        ],
    }


@router.patch("/{student_id}/notes")
def update_notes(student_id: int, payload: NotesUpdate, db: Session = Depends(get_session_dep)):
    student = student_crud.update_notes(db, student_id, payload.notes)
    if student is None:
        raise HTTPException(status_code=404, detail="Alumno no encontrado")
    return {"success": True}
