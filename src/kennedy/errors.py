"""Domain exceptions raised by services and translated by the API layer."""


class KennedyError(Exception):
    """Base class for backend errors."""


class StudentNotFoundError(KennedyError):
    pass


class DuplicateStudentError(KennedyError):
    """A student with the same DNI or legajo already exists."""


class DocumentNotFoundError(KennedyError):
    pass


class DocumentStoreError(KennedyError):
    """The document metadata could not be persisted after upload."""


class DriveUnavailableError(KennedyError):
    """Google Drive credentials are missing or the client failed to build."""


class GenerationError(KennedyError):
    """The text-generation call failed (network, rate limit, bad key...)."""
