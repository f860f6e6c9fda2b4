"""Photo uploads for resources with a ``photo`` column.

Files are written under <upload_dir>/<folder>/ with a name derived from the
folder, the resource id and a UTC timestamp. The previous photo is removed
best-effort: a failure to remove it is logged and otherwise ignored.
"""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)


def photo_filename(folder: str, resource_id: Any, original_name: Optional[str] = None) -> str:
    """``<folder>-<id>-<timestamp><ext>``, keeping the uploaded file's extension."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    suffix = Path(original_name).suffix.lower() if original_name else ""
    return f"{folder}-{resource_id}-{timestamp}{suffix}"


def remove_file(path: Optional[str]) -> bool:
    """Delete ``path`` if it exists. Returns False instead of raising on failure."""
    if not path:
        return False
    try:
        Path(path).unlink()
    except OSError as e:
        logger.info("old_photo_not_removed", path=path, reason=str(e))
        return False
    return True


def store_photo(
    db: Session,
    resource: Any,
    upload: Any,
    folder: str,
    upload_dir: str = "data/uploads",
) -> Any:
    """Move an uploaded file into storage and point ``resource.photo`` at it.

    ``upload`` is a FastAPI UploadFile (or anything with ``file`` and
    ``filename``). Without a file, or for a resource that has no photo
    column, the resource is returned unchanged.
    """
    if upload is None or getattr(upload, "file", None) is None:
        return resource
    if "photo" not in resource.__table__.columns:
        return resource

    target_dir = Path(upload_dir) / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    resource_id = getattr(resource, resource.primary_key_name())
    target = target_dir / photo_filename(folder, resource_id, getattr(upload, "filename", None))

    upload.file.seek(0)
    with open(target, "wb") as fh:
        shutil.copyfileobj(upload.file, fh)

    previous = resource.photo
    resource.photo = str(target)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_file(str(target))
        raise

    logger.info(
        "photo_stored",
        table=resource.table_name(),
        resource_id=resource_id,
        path=str(target),
        size_bytes=target.stat().st_size,
    )

    if previous and previous != str(target):
        remove_file(previous)

    return resource
