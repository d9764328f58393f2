from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from campusdesk.core.exceptions import ValidationFailedError
from campusdesk.schemas.common import ListQuery, Pagination

ModelT = TypeVar("ModelT", bound=BaseModel)


def success(data: Any = None, message: str | None = None) -> dict:
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def format_validation_errors(errors: list[dict]) -> list[dict]:
    formatted = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(location) or "body", "message": message})
    return formatted


def validate_payload(model: type[ModelT], data: dict) -> ModelT:
    """Validate form-built payloads with the same 400 shape as JSON bodies."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailedError(errors=format_validation_errors(exc.errors())) from exc


def paginate(
    db: Session,
    query: Select,
    params: ListQuery,
    *,
    sortable: dict[str, Any],
    default_sort: str,
    pinned_first: Any = None,
) -> tuple[list, Pagination]:
    """Apply sort, offset and limit to ``query``; unknown sort keys fall back to the default."""
    total = int(db.execute(select(func.count()).select_from(query.order_by(None).subquery())).scalar_one())
    column = sortable.get(params.sort_by or default_sort, sortable[default_sort])
    ordering = column.asc() if params.sort_order == "asc" else column.desc()
    ordered = query.order_by(pinned_first.desc(), ordering) if pinned_first is not None else query.order_by(ordering)
    items = list(db.execute(ordered.offset(params.offset).limit(params.limit)).scalars())
    return items, Pagination.build(page=params.page, limit=params.limit, total=total)
