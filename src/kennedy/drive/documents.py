from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kennedy.db.crud import StudentDocumentCRUD
from kennedy.db.models import Student, StudentDocument
from kennedy.errors import (
    DocumentNotFoundError,
    DocumentStoreError,
    DriveUnavailableError,
    StudentNotFoundError,
)
from kennedy.logging import get_logger

logger = get_logger(__name__)

document_crud = StudentDocumentCRUD()


class BlobStorage(Protocol):
    def upload(self, data: bytes, *, name: str, mime_type: str | None) -> str: ...

    def download(self, file_id: str) -> bytes: ...

    def delete(self, file_id: str) -> None: ...


@dataclass(frozen=True)
class DocumentDownload:
    data: bytes
    file_name: str
    mime_type: str


def safe_filename(name: str | None) -> str:
    if not name:
        return "upload"
    filename = PurePath(name).name.strip()
    return filename or "upload"


def drive_file_name(document_type: str, file_name: str, *, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{document_type}_{now_ms}_{file_name}"


def upload_student_document(
    db: Session,
    storage: BlobStorage,
    *,
    student_id: int,
    document_type: str,
    file_name: str | None,
    mime_type: str | None,
    data: bytes,
) -> StudentDocument:
    """Store ``data`` in Drive and record it for ``student_id``.

    When the metadata insert fails the Drive file is removed again so no
    orphan is left behind.
    """

    if db.get(Student, student_id) is None:
        raise StudentNotFoundError(f"student {student_id} not found")

    original_name = safe_filename(file_name)
    drive_file_id = storage.upload(
        data,
        name=drive_file_name(document_type, original_name),
        mime_type=mime_type,
    )

    try:
        return document_crud.create(
            db,
            {
                "student_id": student_id,
                "document_type": document_type,
                "drive_file_id": drive_file_id,
                "file_name": original_name,
                "mime_type": mime_type,
            },
        )
    except (SQLAlchemyError, ValueError) as exc:
        db.rollback()
        try:
            storage.delete(drive_file_id)
        except Exception as cleanup_exc:
            logger.warning("Could not remove orphaned Drive file %s: %s", drive_file_id, cleanup_exc)
        raise DocumentStoreError(f"Error BD: {exc}") from exc


def open_student_document(db: Session, storage: BlobStorage, document_id: int) -> DocumentDownload:
    document = db.get(StudentDocument, document_id)
    if document is None:
        raise DocumentNotFoundError("Documento no encontrado en base de datos")

    try:
        data = storage.download(document.drive_file_id)
    except DriveUnavailableError:
        raise
    except Exception as exc:
        logger.warning("Drive download failed for %s: %s", document.drive_file_id, exc)
        raise DocumentNotFoundError("El archivo ya no existe en Google Drive") from exc

    return DocumentDownload(
        data=data,
        file_name=document.file_name,
        mime_type=document.mime_type or "application/octet-stream",
    )
