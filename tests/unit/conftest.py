import pytest

from kennedy.db.connect import make_session_factory
from kennedy.db.models import make_engine


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path}/test.db")
    factory = make_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    with session_factory() as session:
        yield session


class FakeStorage:
    """In-memory stand-in for :class:`kennedy.drive.client.DriveStorage`."""

    def __init__(self, files=None, *, fail_download=(), fail_upload=False):
        self.files = dict(files or {})
        self.fail_download = set(fail_download)
        self.fail_upload = fail_upload
        self.uploads = []
        self.deleted = []

    def upload(self, data, *, name, mime_type):
        if self.fail_upload:
            raise RuntimeError("drive quota exceeded")
        file_id = f"drive-{len(self.uploads) + 1}"
        self.files[file_id] = data
        self.uploads.append({"id": file_id, "name": name, "mime_type": mime_type})
        return file_id

    def download(self, file_id):
        if file_id in self.fail_download or file_id not in self.files:
            raise RuntimeError(f"File not found: {file_id}")
        return self.files[file_id]

    def delete(self, file_id):
        self.deleted.append(file_id)
        self.files.pop(file_id, None)


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def storage_factory():
    return FakeStorage
