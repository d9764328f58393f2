from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_db
from campusdesk.core.config import get_settings
from campusdesk.db.bootstrap import missing_schema

router = APIRouter()

settings = get_settings()


@router.get("/health")
def health() -> dict:
    return {"status": "success", "message": f"{settings.project_name} is running"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "success", "data": {"timestamp": datetime.now(timezone.utc).isoformat()}}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    db_ok = True
    db_error: str | None = None
    missing: dict[str, list[str]] = {}
    try:
        db.execute(text("SELECT 1"))
        missing = missing_schema(db.get_bind())
    except SQLAlchemyError as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc) if settings.is_development else "Database unavailable"

    ready = db_ok and not missing
    payload = {
        "status": "success" if ready else "error",
        "message": "ready" if ready else "degraded",
        "data": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": {
                "ok": db_ok,
                "schemaOk": not missing,
                "missing": missing,
                "error": db_error,
            },
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
