"""Assemble the bot-analysis prompt for one student.

The prompt combines the student's profile, the most recent bot conversation
(matched by phone number) and text from the student's stored documents, and
is answered by a single text-generation call.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import Session

from kennedy.assistant.documents import document_block, extract_document_text
from kennedy.assistant.service import AssistantReply, generate_reply
from kennedy.assistant.transcript import TranscriptEntry, build_transcript, format_transcript
from kennedy.db.connect import SessionFactory
from kennedy.db.crud import BotSettingsCRUD, ChatHistoryCRUD, StudentDocumentCRUD
from kennedy.db.models import Student
from kennedy.drive.documents import BlobStorage
from kennedy.errors import GenerationError, StudentNotFoundError
from kennedy.identifiers import split_phones
from kennedy.logging import get_logger

logger = get_logger(__name__)

BOT_DISABLED_ANSWER = (
    "El asistente de IA está desactivado. Activalo desde la configuración del bot para usar el análisis."
)
DEFAULT_HISTORY_LIMIT = 20

bot_settings_crud = BotSettingsCRUD()
chat_crud = ChatHistoryCRUD()
document_crud = StudentDocumentCRUD()

Generator = Callable[..., AssistantReply]


@dataclass
class AnalysisResult:
    answer: str
    prompt: str | None = None
    transcript: list[TranscriptEntry] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)
    generated: bool = False


def history_limit() -> int:
    raw = (os.getenv("KENNEDY_BOT_HISTORY_LIMIT") or "").strip()
    if not raw:
        return DEFAULT_HISTORY_LIMIT
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_HISTORY_LIMIT


def load_transcript(
    session_factory: SessionFactory,
    phones: list[str],
    *,
    limit: int,
) -> list[TranscriptEntry]:
    """Chronological transcript of the newest ``limit`` matching messages.

    Lookup failures produce an empty transcript.
    """

    if not phones:
        return []
    try:
        with session_factory() as db:
            rows = chat_crud.recent_for_phones(db, phones, limit=limit)
            return build_transcript(rows)
    except Exception as exc:
        logger.warning("Chat history lookup failed for %s: %s", phones, exc)
        return []


def load_document_blocks(
    session_factory: SessionFactory,
    storage: BlobStorage,
    *,
    student_id: int,
    phones: list[str],
) -> list[str]:
    """Readable blocks for every document referencing the student.

    Documents that fail to download or parse are logged and skipped.
    """

    with session_factory() as db:
        documents = document_crud.for_student(db, student_id, phones)
        refs = [
            (doc.id, doc.drive_file_id, doc.document_type, doc.file_name, doc.mime_type)
            for doc in documents
        ]

    blocks: list[str] = []
    for doc_id, drive_file_id, document_type, file_name, mime_type in refs:
        try:
            data = storage.download(drive_file_id)
            text = extract_document_text(data, mime_type=mime_type, file_name=file_name)
        except Exception as exc:
            logger.warning("Skipping document %s (%s): %s", doc_id, file_name, exc)
            continue
        blocks.append(document_block(document_type=document_type, file_name=file_name, text=text))
    return blocks


def build_analysis_prompt(
    student: Student,
    *,
    question: str,
    transcript: list[TranscriptEntry],
    documents: list[str],
) -> str:
    career = student.career.name if student.career is not None else (student.career_interest or "Sin definir")
    transcript_text = format_transcript(transcript) or "(sin mensajes registrados)"
    documents_text = "\n\n".join(documents) or "(sin documentos cargados)"

    return (
        "Sos un asistente de la secretaría de Punto Kennedy. Analizá la información del alumno.\n"
        "\n"
        "DATOS DEL ALUMNO:\n"
        f"- Nombre: {student.full_name}\n"
        f"- Estado: {student.status or 'Sin estado'}\n"
        f"- Sede: {student.location or 'Sin sede'}\n"
        f"- Carrera: {career}\n"
        f"- Notas: {student.general_notes or '-'}\n"
        "\n"
        "HISTORIAL DE CHAT RECIENTE:\n"
        f"{transcript_text}\n"
        "\n"
        "DOCUMENTOS:\n"
        f"{documents_text}\n"
        "\n"
        f"PREGUNTA DEL OPERADOR: {question.strip()}\n"
        "\n"
        "Respondé en español, de forma breve y concreta, usando solo la información anterior. "
        "Si falta información, indicalo."
    )


def analyze_student(
    db: Session,
    *,
    student_id: int,
    question: str,
    session_factory: SessionFactory,
    storage: BlobStorage,
    generate: Generator = generate_reply,
) -> AnalysisResult:
    """Answer ``question`` about a student from chat logs and documents.

    Returns the refusal text without any external call when the bot is
    disabled. Raises :class:`StudentNotFoundError` for unknown students and
    :class:`GenerationError` when the generation call fails.
    """

    settings = bot_settings_crud.get(db)
    if not settings.is_active:
        logger.info("Bot analysis requested for student %s while the bot is disabled", student_id)
        return AnalysisResult(answer=BOT_DISABLED_ANSWER)

    student = db.get(Student, student_id)
    if student is None:
        raise StudentNotFoundError(f"student {student_id} not found")

    phones = split_phones(student.contact_phone)
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="bot-analyze") as pool:
        transcript_future = pool.submit(load_transcript, session_factory, phones, limit=history_limit())
        documents_future = pool.submit(
            load_document_blocks,
            session_factory,
            storage,
            student_id=student_id,
            phones=phones,
        )
        transcript = transcript_future.result()
        try:
            documents = documents_future.result()
        except Exception as exc:
            logger.warning("Document lookup failed for student %s: %s", student_id, exc)
            documents = []

    prompt = build_analysis_prompt(student, question=question, transcript=transcript, documents=documents)
    reply = generate(prompt=prompt)
    if not reply.ok:
        raise GenerationError(reply.error or "generation failed")

    return AnalysisResult(
        answer=reply.content,
        prompt=prompt,
        transcript=transcript,
        documents=documents,
        generated=True,
    )
