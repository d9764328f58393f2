"""Attachment storage for issues and announcements.

A request's files are read and validated as a batch before anything touches
the disk, so one bad file rejects the whole request. Written files are
returned as metadata dicts stored on the owning record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import secrets

from fastapi import UploadFile

from campusdesk.core.config import get_settings
from campusdesk.core.exceptions import ResourceNotFoundError, ServerError, ValidationFailedError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    }
)
ISSUE_FOLDER = "issues"
ANNOUNCEMENT_FOLDER = "announcements"
FOLDERS = (ISSUE_FOLDER, ANNOUNCEMENT_FOLDER)

_SAFE_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._-")


@dataclass
class PendingFile:
    original_name: str
    mime_type: str
    content: bytes


def upload_root() -> Path:
    return Path(get_settings().upload_dir)


def ensure_upload_dirs() -> None:
    for folder in FOLDERS:
        (upload_root() / folder).mkdir(parents=True, exist_ok=True)


def safe_filename(filename: str) -> str:
    name = "".join(ch for ch in os.path.basename(filename or "") if ch in _SAFE_CHARS).lstrip(".-")
    if len(name) > 100:
        stem, ext = os.path.splitext(name)
        name = stem[: 100 - len(ext)] + ext
    return name or "file"


def generate_unique_filename(original_name: str, *, prefix: str) -> str:
    stem, ext = os.path.splitext(safe_filename(original_name))
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{secrets.token_hex(6)}-{stem}{ext.lower()}"


def read_uploads(files: list[UploadFile] | None) -> list[PendingFile]:
    """Read and validate every upload; raises before any file is stored."""
    settings = get_settings()
    uploads = [item for item in files or [] if item is not None and item.filename]
    if len(uploads) > settings.max_upload_files:
        raise ValidationFailedError.for_field(
            "attachments", f"Too many files. Maximum is {settings.max_upload_files} files."
        )

    pending: list[PendingFile] = []
    errors: list[dict] = []
    for upload in uploads:
        mime_type = (upload.content_type or "").split(";")[0].strip().lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            errors.append(
                {
                    "field": "attachments",
                    "message": f"{upload.filename}: invalid file type. Only images, PDFs, and documents are allowed.",
                }
            )
            continue
        content = upload.file.read(settings.max_upload_file_bytes + 1)
        if len(content) > settings.max_upload_file_bytes:
            limit_mb = settings.max_upload_file_bytes / (1024 * 1024)
            errors.append(
                {"field": "attachments", "message": f"{upload.filename}: file too large. Maximum size is {limit_mb:g}MB."}
            )
            continue
        pending.append(PendingFile(original_name=upload.filename, mime_type=mime_type, content=content))

    if errors:
        raise ValidationFailedError("File upload failed", errors=errors)
    return pending


def store_files(pending: list[PendingFile], *, folder: str) -> list[dict]:
    """Write validated files under ``<upload_dir>/<folder>``; a failed write removes the earlier ones."""
    if folder not in FOLDERS:
        raise ValueError(f"Unknown upload folder: {folder}")
    target_dir = upload_root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    stored: list[dict] = []
    try:
        for item in pending:
            filename = generate_unique_filename(item.original_name, prefix=folder.rstrip("s"))
            (target_dir / filename).write_bytes(item.content)
            stored.append(
                {
                    "filename": filename,
                    "originalName": item.original_name,
                    "mimeType": item.mime_type,
                    "size": len(item.content),
                    "path": f"{folder}/{filename}",
                    "uploadedAt": datetime.now(timezone.utc).isoformat(),
                }
            )
    except OSError as exc:
        remove_files(stored)
        logger.exception("Writing attachments to %s failed", target_dir)
        raise ServerError("File upload failed", detail=str(exc)) from exc
    if stored:
        logger.info("Stored %d attachment(s) in %s", len(stored), folder)
    return stored


def remove_files(attachments: list[dict]) -> None:
    root = upload_root()
    for item in attachments:
        path = root / item.get("path", "")
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove attachment %s", path)


def resolve_attachment(attachments: list[dict], filename: str) -> tuple[Path, dict]:
    """Find a stored attachment by its generated name and return its path on disk."""
    for item in attachments or []:
        if item.get("filename") == filename:
            path = (upload_root() / item.get("path", "")).resolve()
            if upload_root().resolve() not in path.parents or not path.is_file():
                break
            return path, item
    raise ResourceNotFoundError("Attachment")
