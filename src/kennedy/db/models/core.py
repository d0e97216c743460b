from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, utcnow

DEFAULT_STATUS = "Sólo preguntó"
DEFAULT_LOCATION = "Catamarca"


class Career(Base):
    __tablename__ = "careers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    fees: Mapped[str | None] = mapped_column(Text, nullable=True)
    modality: Mapped[str | None] = mapped_column(Text, nullable=True)

    students: Mapped[list["Student"]] = relationship(back_populates="career")


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    dni: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    legajo: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    career_id: Mapped[int | None] = mapped_column(ForeignKey("careers.id"), nullable=True)

    contact_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    career_interest: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, default=DEFAULT_LOCATION, nullable=True)
    status: Mapped[str | None] = mapped_column(Text, default=DEFAULT_STATUS, nullable=True)
    general_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_student_the_contact: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    contact_person_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    # routing flags consumed by the WhatsApp bot
    bot_students: Mapped[bool] = mapped_column(Boolean, default=True)
    secretaria: Mapped[bool] = mapped_column(Boolean, default=False)

    last_interaction_at: Mapped[datetime | None] = mapped_column(
        DateTime, default=utcnow, nullable=True
    )

    career: Mapped["Career"] = relationship(back_populates="students")
    documents: Mapped[list["StudentDocument"]] = relationship(back_populates="student")
