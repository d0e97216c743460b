from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from kennedy.assistant.context import analyze_student
from kennedy.assistant.service import AssistantReply, get_generator_dep
from kennedy.db.connect import SessionFactory, get_session_dep, get_session_factory_dep
from kennedy.db.crud import BotSettingsCRUD
from kennedy.drive.client import DriveStorage, get_storage_dep
from kennedy.errors import GenerationError, StudentNotFoundError
from kennedy.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/bot", tags=["Bot"])

bot_settings_crud = BotSettingsCRUD()


class BotSettingsOut(BaseModel):
    id: int
    is_active: bool
    welcome_message: str | None = None
    away_message: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BotSettingsUpdate(BaseModel):
    is_active: bool | None = None
    welcome_message: str | None = None
    away_message: str | None = None


class GenerateRequest(BaseModel):
    prompt: str | None = None
    messages: list[dict[str, Any]] | None = None


class AnalyzeRequest(BaseModel):
    student_id: int = Field(validation_alias=AliasChoices("studentId", "personId", "student_id"))
    question: str = ""


class AnalyzeResponse(BaseModel):
    answer: str


@router.get("", response_model=BotSettingsOut)
@router.get("/", response_model=BotSettingsOut)
def read_settings(db: Session = Depends(get_session_dep)):
    return bot_settings_crud.get(db)


@router.put("")
@router.put("/")
def update_settings(payload: BotSettingsUpdate, db: Session = Depends(get_session_dep)):
    settings = bot_settings_crud.update(db, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": BotSettingsOut.model_validate(settings).model_dump(mode="json")}


@router.post("/ai/generate")
def generate(
    payload: GenerateRequest,
    generator: Callable[..., AssistantReply] = Depends(get_generator_dep),
):
    if not payload.prompt and not payload.messages:
        raise HTTPException(status_code=400, detail="Falta prompt")

    if payload.messages:
        reply = generator(messages=payload.messages)
    else:
        reply = generator(prompt=payload.prompt)
    if not reply.ok:
        logger.error("AI Error: %s", reply.error)
        raise HTTPException(status_code=500, detail=reply.error or "Error generando respuesta")
    return {"result": reply.content}


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    payload: AnalyzeRequest,
    db: Session = Depends(get_session_dep),
    session_factory: SessionFactory = Depends(get_session_factory_dep),
    storage: DriveStorage = Depends(get_storage_dep),
    generator: Callable[..., AssistantReply] = Depends(get_generator_dep),
):
    try:
        result = analyze_student(
            db,
            student_id=payload.student_id,
            question=payload.question,
            session_factory=session_factory,
            storage=storage,
            generate=generator,
        )
    except StudentNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Alumno no encontrado") from exc
    except GenerationError as exc:
        logger.error("Bot analysis failed for student %s: %s", payload.student_id, exc)
        raise HTTPException(status_code=500, detail="Error al consultar la IA") from exc
    return AnalyzeResponse(answer=result.answer)
