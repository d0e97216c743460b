from __future__ import annotations

import os

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from kennedy.db.connect import get_session_dep
from kennedy.drive.client import DriveStorage, get_storage_dep
from kennedy.drive.documents import open_student_document, safe_filename, upload_student_document
from kennedy.errors import (
    DocumentNotFoundError,
    DocumentStoreError,
    DriveUnavailableError,
    StudentNotFoundError,
)
from kennedy.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Drive"])


def _max_upload_bytes() -> int:
    raw = os.getenv("KENNEDY_UPLOAD_MAX_BYTES") or "10485760"  # 10MB default
    try:
        return max(1, int(raw))
    except ValueError:
        return 10_485_760


async def _read_upload_file(file: UploadFile, *, max_bytes: int) -> bytes:
    parts: list[bytes] = []
    total = 0

    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(status_code=413, detail=f"file too large (max {max_bytes} bytes)")
        parts.append(chunk)

    return b"".join(parts)


@router.post("/drive/students/{student_id}/upload", status_code=201)
@router.post("/students/{student_id}/documents", status_code=201)
async def upload_document(
    student_id: int,
    file: UploadFile | None = File(default=None),
    documentType: str = Form(default="documento"),
    db: Session = Depends(get_session_dep),
    storage: DriveStorage = Depends(get_storage_dep),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No se envió ningún archivo")

    data = await _read_upload_file(file, max_bytes=_max_upload_bytes())
    try:
        document = upload_student_document(
            db,
            storage,
            student_id=student_id,
            document_type=documentType.strip() or "documento",
            file_name=safe_filename(file.filename),
            mime_type=file.content_type,
            data=data,
        )
    except StudentNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Alumno no encontrado") from exc
    except DriveUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except DocumentStoreError as exc:
        logger.error("Upload Error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {"success": True, "fileId": document.drive_file_id}


@router.get("/drive/download/{document_id}")
@router.get("/documents/{document_id}/download")
def download_document(
    document_id: int,
    db: Session = Depends(get_session_dep),
    storage: DriveStorage = Depends(get_storage_dep),
):
    try:
        download = open_student_document(db, storage, document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DriveUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    filename = safe_filename(download.file_name)
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "X-Content-Type-Options": "nosniff",
    }
    return Response(content=download.data, media_type=download.mime_type, headers=headers)
