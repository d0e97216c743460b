from typing import Any

from sqlalchemy import JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ChatHistory(Base):
    """One stored bot conversation message (written by the n8n workflow).

    ``message`` has no enforced schema: plain text, JSON-encoded text or a
    JSON object. ``id`` increases monotonically and doubles as the time order.
    """

    __tablename__ = "n8n_chat_histories"

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    message: Mapped[Any] = mapped_column(JSON, nullable=True)
