import pytest

from kennedy.assistant.context import (
    BOT_DISABLED_ANSWER,
    analyze_student,
    build_analysis_prompt,
    history_limit,
)
from kennedy.assistant.service import AssistantReply, NO_ANSWER_FALLBACK
from kennedy.db.crud import BotSettingsCRUD
from kennedy.db.models import ChatHistory, Student, StudentDocument
from kennedy.errors import GenerationError, StudentNotFoundError


class RecordingGenerator:
    def __init__(self, reply=None):
        self.calls = []
        self.reply = reply or AssistantReply(content="Le falta el DNI.", provider="test")

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.reply


def _enable_bot(db, active=True):
    BotSettingsCRUD().update(db, {"is_active": active})


def _add_student(db, **fields):
    fields.setdefault("full_name", "Ana Pérez")
    fields.setdefault("contact_phone", "3834000000")
    fields.setdefault("status", "Interesado")
    fields.setdefault("location", "Catamarca")
    student = Student(**fields)
    db.add(student)
    db.commit()
    return student


def test_disabled_bot_short_circuits(db_session, session_factory, fake_storage):
    _enable_bot(db_session, active=False)
    generator = RecordingGenerator()

    for question in ("¿Qué documentos faltan?", "", "x" * 500):
        result = analyze_student(
            db_session,
            student_id=999,
            question=question,
            session_factory=session_factory,
            storage=fake_storage,
            generate=generator,
        )
        assert result.answer == BOT_DISABLED_ANSWER
        assert not result.generated

    assert generator.calls == []


def test_missing_settings_row_counts_as_disabled(db_session, session_factory, fake_storage):
    generator = RecordingGenerator()
    result = analyze_student(
        db_session,
        student_id=1,
        question="hola",
        session_factory=session_factory,
        storage=fake_storage,
        generate=generator,
    )
    assert result.answer == BOT_DISABLED_ANSWER
    assert generator.calls == []


def test_unknown_student_raises(db_session, session_factory, fake_storage):
    _enable_bot(db_session)
    with pytest.raises(StudentNotFoundError):
        analyze_student(
            db_session,
            student_id=404,
            question="hola",
            session_factory=session_factory,
            storage=fake_storage,
            generate=RecordingGenerator(),
        )


def test_transcript_in_id_order_and_single_generation_call(db_session, session_factory, fake_storage):
    _enable_bot(db_session)
    student = _add_student(db_session)
    db_session.add_all(
        [
            ChatHistory(id=12, session_id="5493834000000@s.whatsapp.net", message={"type": "ai", "content": "tercero"}),
            ChatHistory(id=10, session_id="3834000000", message="Mensaje de la persona: primero"),
            ChatHistory(id=11, session_id="+54 383 4000000", message='{"output": {"message": "segundo"}}'),
            ChatHistory(id=13, session_id="3839999999", message="Mensaje de la persona: otra persona"),
        ]
    )
    db_session.commit()
    generator = RecordingGenerator()

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="¿Qué le respondimos?",
        session_factory=session_factory,
        storage=fake_storage,
        generate=generator,
    )

    assert result.answer == "Le falta el DNI."
    assert result.generated
    assert [entry.id for entry in result.transcript] == [10, 11, 12]
    assert len(generator.calls) == 1

    prompt = generator.calls[0]["prompt"]
    assert prompt == result.prompt
    assert prompt.index("Alumno: primero") < prompt.index("Asistente: segundo") < prompt.index("Asistente: tercero")
    assert "otra persona" not in prompt
    assert "Ana Pérez" in prompt
    assert "Interesado" in prompt
    assert "Catamarca" in prompt
    assert "¿Qué le respondimos?" in prompt
    assert "(sin documentos cargados)" in prompt


def test_contact_phone_with_country_code_matches_national_session(db_session, session_factory, fake_storage):
    _enable_bot(db_session)
    student = _add_student(db_session, contact_phone="+54 9 383 400-0000")
    db_session.add_all(
        [
            ChatHistory(id=1, session_id="3834000000", message="Mensaje de la persona: hola"),
            ChatHistory(id=2, session_id="wa_383_400_0000", message={"type": "ai", "content": "buenas"}),
        ]
    )
    db_session.commit()

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="Resumen",
        session_factory=session_factory,
        storage=fake_storage,
        generate=RecordingGenerator(),
    )

    assert [entry.id for entry in result.transcript] == [1, 2]


def test_history_limit_keeps_newest_messages(db_session, session_factory, fake_storage, monkeypatch):
    monkeypatch.setenv("KENNEDY_BOT_HISTORY_LIMIT", "2")
    _enable_bot(db_session)
    student = _add_student(db_session)
    for message_id in (1, 2, 3):
        db_session.add(ChatHistory(id=message_id, session_id="3834000000", message=f"m{message_id}"))
    db_session.commit()

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="hola",
        session_factory=session_factory,
        storage=fake_storage,
        generate=RecordingGenerator(),
    )

    assert [entry.content for entry in result.transcript] == ["m2", "m3"]


def test_documents_are_extracted_and_failures_skipped(db_session, session_factory, storage_factory):
    _enable_bot(db_session)
    student = _add_student(db_session)
    db_session.add_all(
        [
            StudentDocument(
                student_id=student.id,
                document_type="dni",
                drive_file_id="ok-file",
                file_name="dni.png",
                mime_type="image/png",
            ),
            StudentDocument(
                student_id=student.id,
                document_type="titulo",
                drive_file_id="gone-file",
                file_name="titulo.pdf",
                mime_type="application/pdf",
            ),
            StudentDocument(
                owner_phone="+54 9 3834000000",
                document_type="certificado",
                drive_file_id="broken-pdf",
                file_name="cert.pdf",
                mime_type="application/pdf",
            ),
        ]
    )
    db_session.commit()
    storage = storage_factory({"ok-file": b"\x89PNG", "broken-pdf": b"not a pdf"}, fail_download={"gone-file"})
    generator = RecordingGenerator()

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="¿Qué documentos tiene?",
        session_factory=session_factory,
        storage=storage,
        generate=generator,
    )

    assert result.documents == ["--- DOCUMENTO: dni (dni.png) ---\n[Archivo binario no legible: dni.png]"]
    assert "titulo.pdf" not in result.prompt
    assert "cert.pdf" not in result.prompt
    assert len(generator.calls) == 1


def test_generation_failure_raises(db_session, session_factory, fake_storage):
    _enable_bot(db_session)
    student = _add_student(db_session, contact_phone=None)
    generator = RecordingGenerator(
        AssistantReply(content="", provider="openrouter", ok=False, error="OpenRouter Error 401: bad key")
    )

    with pytest.raises(GenerationError):
        analyze_student(
            db_session,
            student_id=student.id,
            question="hola",
            session_factory=session_factory,
            storage=fake_storage,
            generate=generator,
        )
    assert len(generator.calls) == 1


def test_empty_generation_is_relayed_as_fallback(db_session, session_factory, fake_storage):
    _enable_bot(db_session)
    student = _add_student(db_session)
    generator = RecordingGenerator(
        AssistantReply(content=NO_ANSWER_FALLBACK, provider="openrouter", meta={"empty": True})
    )

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="hola",
        session_factory=session_factory,
        storage=fake_storage,
        generate=generator,
    )
    assert result.answer == NO_ANSWER_FALLBACK


def test_chat_lookup_failure_yields_empty_transcript(db_session, session_factory, fake_storage, monkeypatch):
    from kennedy.assistant import context

    _enable_bot(db_session)
    student = _add_student(db_session)

    def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(context.chat_crud, "recent_for_phones", broken)

    result = analyze_student(
        db_session,
        student_id=student.id,
        question="hola",
        session_factory=session_factory,
        storage=fake_storage,
        generate=RecordingGenerator(),
    )
    assert result.transcript == []
    assert "(sin mensajes registrados)" in result.prompt


def test_prompt_falls_back_to_career_interest():
    student = Student(full_name="Juan", career_interest="Enfermería", status=None, location=None)
    prompt = build_analysis_prompt(student, question="  ¿Cuándo cursa?  ", transcript=[], documents=[])
    assert "- Carrera: Enfermería" in prompt
    assert "PREGUNTA DEL OPERADOR: ¿Cuándo cursa?\n" in prompt


def test_history_limit_env(monkeypatch):
    monkeypatch.delenv("KENNEDY_BOT_HISTORY_LIMIT", raising=False)
    assert history_limit() == 20
    monkeypatch.setenv("KENNEDY_BOT_HISTORY_LIMIT", "-3")
    assert history_limit() == 0
