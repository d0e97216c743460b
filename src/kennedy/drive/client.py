"""Google Drive access through a service account."""

from __future__ import annotations

import io
import os
from functools import lru_cache
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from kennedy.errors import DriveUnavailableError
from kennedy.logging import get_logger

logger = get_logger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
_DOWNLOAD_CHUNK_BYTES = 1024 * 1024


def _service_account_path() -> str:
    return (
        os.getenv("KENNEDY_GOOGLE_SERVICE_ACCOUNT_PATH")
        or os.getenv("GOOGLE_SERVICE_ACCOUNT_PATH")
        or "service-account.json"
    ).strip()


def _folder_id() -> str | None:
    raw = (os.getenv("KENNEDY_GOOGLE_DRIVE_FOLDER_ID") or os.getenv("GOOGLE_DRIVE_FOLDER_ID") or "").strip()
    return raw or None


@lru_cache(maxsize=None)
def _build_service(path: str) -> Any | None:
    try:
        credentials = service_account.Credentials.from_service_account_file(path, scopes=DRIVE_SCOPES)
        return build("drive", "v3", credentials=credentials, cache_discovery=False)
    except Exception as exc:
        logger.error("Google Drive client unavailable (%s): %s", path, exc)
        return None


def get_drive_service() -> Any | None:
    """Return the Drive v3 client, or ``None`` when credentials are unusable.

    One client is built per credentials file and reused for the life of the
    process, so a fixed credentials file needs a restart to be picked up.
    """

    return _build_service(_service_account_path())


class DriveStorage:
    """Thin wrapper over the Drive ``files`` resource."""

    def __init__(self, service: Any | None = None, *, folder_id: str | None = None):
        self._service = service
        self.folder_id = folder_id if folder_id is not None else _folder_id()

    @property
    def service(self) -> Any:
        # built on first use; only the document endpoints need credentials
        if self._service is None:
            self._service = get_drive_service()
        if self._service is None:
            raise DriveUnavailableError("Servicio de Drive no disponible")
        return self._service

    def upload(self, data: bytes, *, name: str, mime_type: str | None) -> str:
        metadata: dict[str, Any] = {"name": name}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]
        media = MediaIoBaseUpload(
            io.BytesIO(data),
            mimetype=mime_type or "application/octet-stream",
            resumable=False,
        )
        created = (
            self.service.files()
            .create(body=metadata, media_body=media, fields="id", supportsAllDrives=True)
            .execute()
        )
        file_id = created["id"]
        logger.info("Uploaded %s to Drive as %s", name, file_id)
        return file_id

    def download(self, file_id: str) -> bytes:
        request = self.service.files().get_media(fileId=file_id, supportsAllDrives=True)
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, request, chunksize=_DOWNLOAD_CHUNK_BYTES)
        done = False
        while not done:
            _, done = downloader.next_chunk()
        return buffer.getvalue()

    def delete(self, file_id: str) -> None:
        self.service.files().delete(fileId=file_id, supportsAllDrives=True).execute()
        logger.info("Deleted Drive file %s", file_id)


def get_storage_dep() -> DriveStorage:
    """FastAPI dependency returning Drive storage configured from the environment."""

    return DriveStorage()
