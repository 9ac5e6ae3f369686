# app/services/storage.py
import logging
import mimetypes
import re
import time
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from app.config.settings import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def upload_root() -> Path:
    root = Path(settings.upload_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def sanitize_filename(filename: str) -> str:
    name = Path(filename or "upload").name
    return _UNSAFE_CHARS.sub("_", name) or "upload"


async def save_upload(upload: UploadFile) -> str:
    """
    Write an uploaded file under ``upload_dir``.

    The stored name is ``<unix-ms>-<sanitised original name>``. Files larger
    than ``max_upload_size_mb`` are rejected with 413 and nothing is kept.

    Returns:
        The stored file name, relative to ``upload_dir``
    """
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    stored_name = f"{int(time.time() * 1000)}-{sanitize_filename(upload.filename)}"
    target = upload_root() / stored_name

    written = 0
    try:
        with open(target, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"File exceeds the {settings.max_upload_size_mb} MB limit",
                    )
                out.write(chunk)
    except HTTPException:
        target.unlink(missing_ok=True)
        logger.warning(f"Rejected upload '{upload.filename}' larger than {max_bytes} bytes")
        raise
    except OSError as e:
        target.unlink(missing_ok=True)
        logger.error(f"Failed to store upload '{upload.filename}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="File upload failed")

    logger.info(f"Stored upload '{upload.filename}' as {stored_name} ({written} bytes)")
    return stored_name


def resolve_upload(file_path: Optional[str]) -> Optional[Path]:
    """Absolute path of a stored upload, or None when missing or outside ``upload_dir``."""
    if not file_path:
        return None
    root = upload_root()
    candidate = (root / Path(file_path).name).resolve()
    if candidate.parent != root or not candidate.is_file():
        return None
    return candidate


def delete_upload(file_path: Optional[str]) -> None:
    path = resolve_upload(file_path)
    if path is None:
        return
    try:
        path.unlink()
        logger.info(f"Deleted stored upload {path.name}")
    except OSError as e:
        logger.error(f"Could not delete stored upload {path.name}: {e}")


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"
