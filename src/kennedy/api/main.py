from __future__ import annotations

# src/kennedy/api/main.py
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from kennedy.api.routes.routes import router
from kennedy.api.security import require_token


def _parse_csv_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


cors_origins = _parse_csv_list(os.getenv("KENNEDY_CORS_ORIGINS")) or ["*"]

app = FastAPI(title="Kennedy Backend")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/", response_class=PlainTextResponse)
def root():
    return "Kennedy Backend v2.0 Online"


@app.get("/status")
def status():
    return {"ok": True}


app.include_router(router, prefix="/api", dependencies=[Depends(require_token)])
