# crud.py
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from kennedy.errors import DuplicateStudentError
from kennedy.logging import get_logger
from kennedy.db.models import (
    DEFAULT_LOCATION,
    DEFAULT_STATUS,
    SETTINGS_ROW_ID,
    BotSettings,
    ChatHistory,
    Student,
    digits_only,
    StudentDocument,
    utcnow,
)


logger = get_logger(__name__)

PAGE_SIZE = 20

class CRUDBase:

    def __init__(self, model, req_cols: Optional[List[str]] = None):
        self.model = model
        self.req_cols = req_cols

    def get_columns(self):
        return [col.name for col in self.model.__table__.columns]

    def validate_input(self, session: Session, record: dict) -> dict:
        if session is None:
            raise ValueError("A database session is required for validation.")

        allowed_keys = self.get_columns()
        cleaned_record = {}
        for k, v in record.items():
            if k in allowed_keys:
                cleaned_record[k] = v
            else:
                logger.warning("Key '%s' not in %s columns, removing from record.", k, self.model.__tablename__)

        if self.req_cols is not None:
            for col in self.req_cols:
                if cleaned_record.get(col) in (None, ""):
                    raise ValueError(f"{col} not in input record")

        return cleaned_record

    def get(self, session: Session, id: int):
        return session.get(self.model, id)

    def create(self, session: Session, record: dict):
        record = self.validate_input(session, record)
        obj = self.model(**record)
        session.add(obj)
        session.commit()
        session.refresh(obj)
        logger.info("Inserted into %s: id=%s", self.model.__tablename__, obj.id)
        return obj

    def delete(self, session: Session, id: int) -> bool:
        obj = self.get(session, id)
        if obj:
            session.delete(obj)
            session.commit()
            return True
        return False


class StudentCRUD(CRUDBase):

    def __init__(self):
        super().__init__(Student, req_cols=["full_name"])

    def list(
        self,
        session: Session,
        *,
        page: int = 1,
        search: str | None = None,
        career_id: int | None = None,
        status: str | None = None,
        location: str | None = None,
        page_size: int = PAGE_SIZE,
    ) -> dict[str, Any]:
        """Paginated student listing with the dashboard filters.

        ``status == "Todos"`` and ``location == "Todas"`` are the UI's "no
        filter" values.
        """

        page = max(1, int(page or 1))
        query = session.query(Student).options(selectinload(Student.career))

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Student.full_name.ilike(pattern),
                    Student.dni.ilike(pattern),
                    Student.legajo.ilike(pattern),
                )
            )
        if career_id is not None:
            query = query.filter(Student.career_id == career_id)
        if status and status != "Todos":
            query = query.filter(Student.status == status)
        if location and location != "Todas":
            query = query.filter(Student.location == location)

        total = query.order_by(None).count()
        rows = (
            query.order_by(
                Student.last_interaction_at.is_(None),
                Student.last_interaction_at.desc(),
                Student.id.desc(),
            )
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"data": rows, "total": total, "page": page}

    def find_duplicate(self, session: Session, *, dni: str | None, legajo: str | None) -> Student | None:
        clauses = []
        if dni:
            clauses.append(Student.dni == dni)
        if legajo:
            clauses.append(Student.legajo == legajo)
        if not clauses:
            return None
        return session.query(Student).filter(or_(*clauses)).first()

    def validate_input(self, session: Session, record: dict) -> dict:
        record = super().validate_input(session, record)

        # blank identifiers are stored as NULL so they never collide
        for key in ("dni", "legajo"):
            value = record.get(key)
            if isinstance(value, str):
                value = value.strip()
            record[key] = value or None

        existing = self.find_duplicate(session, dni=record["dni"], legajo=record["legajo"])
        if existing is not None:
            raise DuplicateStudentError("DUPLICATE_ENTRY: El DNI o Legajo ya existe en el sistema.")

        record.setdefault("location", DEFAULT_LOCATION)
        if not record.get("location"):
            record["location"] = DEFAULT_LOCATION
        # new prospects always start at the first funnel stage
        record["status"] = DEFAULT_STATUS
        record.setdefault("bot_students", True)
        record.setdefault("secretaria", False)
        record["last_interaction_at"] = utcnow()
        return record

    def create(self, session: Session, record: dict) -> Student:
        try:
            return super().create(session, record)
        except IntegrityError as exc:
            # a concurrent insert won the race past find_duplicate
            session.rollback()
            raise DuplicateStudentError("DUPLICATE_ENTRY: El DNI o Legajo ya existe en el sistema.") from exc

    def update_notes(self, session: Session, id: int, notes: str | None) -> Student | None:
        student = self.get(session, id)
        if student is None:
            return None
        student.general_notes = notes
        student.last_interaction_at = utcnow()
        session.commit()
        session.refresh(student)
        return student


class StudentDocumentCRUD(CRUDBase):

    def __init__(self):
        super().__init__(
            StudentDocument, req_cols=["document_type", "drive_file_id", "file_name"]
        )

    def for_student(
        self,
        session: Session,
        student_id: int,
        phones: Sequence[str] = (),
    ) -> list[StudentDocument]:
        clauses = [StudentDocument.student_id == student_id]
        owner_digits = digits_only(StudentDocument.owner_phone)
        for phone in phones:
            clauses.append(owner_digits.contains(phone))
        return (
            session.query(StudentDocument)
            .filter(or_(*clauses))
            .order_by(StudentDocument.id.asc())
            .all()
        )


class ChatHistoryCRUD(CRUDBase):

    def __init__(self):
        super().__init__(ChatHistory, req_cols=["session_id"])

    def recent_for_phones(
        self,
        session: Session,
        phones: Iterable[str],
        *,
        limit: int = 20,
    ) -> list[ChatHistory]:
        """Newest ``limit`` messages whose session id contains any phone.

        Rows come back newest first, as stored order is only meaningful
        through ``id``.
        """

        phones = [phone for phone in phones if phone]
        if not phones or limit <= 0:
            return []
        session_digits = digits_only(ChatHistory.session_id)
        return (
            session.query(ChatHistory)
            .filter(or_(*(session_digits.contains(phone) for phone in phones)))
            .order_by(ChatHistory.id.desc())
            .limit(limit)
            .all()
        )


class BotSettingsCRUD(CRUDBase):

    EDITABLE = ("is_active", "welcome_message", "away_message")

    def __init__(self):
        super().__init__(BotSettings)

    def get(self, session: Session, id: int = SETTINGS_ROW_ID) -> BotSettings:
        settings = session.get(BotSettings, id)
        if settings is None:
            settings = BotSettings(id=id, is_active=False)
            session.add(settings)
            session.commit()
            session.refresh(settings)
            logger.info("Created default bot_settings row %s", id)
        return settings

    def update(self, session: Session, fields: dict[str, Any]) -> BotSettings:
        settings = self.get(session)
        for key in self.EDITABLE:
            if key in fields:
                setattr(settings, key, fields[key])
        settings.updated_at = utcnow()
        session.commit()
        session.refresh(settings)
        logger.info("Updated bot_settings: %s", sorted(k for k in fields if k in self.EDITABLE))
        return settings
