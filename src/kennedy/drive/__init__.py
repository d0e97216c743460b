from .client import DriveStorage, get_drive_service, get_storage_dep
from .documents import DocumentDownload, open_student_document, upload_student_document

__all__ = [
    "DriveStorage",
    "get_drive_service",
    "get_storage_dep",
    "DocumentDownload",
    "open_student_document",
    "upload_student_document",
]
