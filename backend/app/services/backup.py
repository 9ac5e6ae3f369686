# app/services/backup.py
"""
JSON backups of the whole database.

A backup file holds every table of ``Base.metadata`` as a list of row dicts.
Restoring replaces the contents of all tables inside one transaction.
"""
import json
import logging
import re
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple

from fastapi import HTTPException, status
from sqlalchemy import Date, DateTime, Integer, Time, delete, func, insert, select, text
from sqlalchemy.ext.asyncio import AsyncSession

import app.db.models  # noqa: F401  (registers every table on Base.metadata)
from app.config.settings import settings
from app.db.base import Base

logger = logging.getLogger(__name__)

BACKUP_FORMAT_VERSION = 1
_BACKUP_NAME = re.compile(r"^[A-Za-z0-9._-]+\.json$")


def backup_root() -> Path:
    root = Path(settings.backup_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def resolve_backup(filename: str, must_exist: bool = True) -> Path:
    """
    Map a client-supplied backup name to a file inside ``backup_dir``.

    Raises:
        HTTPException: 400 for names with path components, 404 when missing
    """
    if not filename or not _BACKUP_NAME.match(filename) or ".." in filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid backup file name")
    root = backup_root()
    path = (root / filename).resolve()
    if path.parent != root:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid backup file name")
    if must_exist and not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Backup file not found")
    return path


def describe(path: Path) -> Dict[str, Any]:
    stat = path.stat()
    return {
        "filename": path.name,
        "size": stat.st_size,
        "created_at": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    }


def list_backups() -> List[Dict[str, Any]]:
    files = [describe(p) for p in backup_root().glob("*.json") if p.is_file()]
    return sorted(files, key=lambda f: f["created_at"], reverse=True)


def _to_json(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _from_json(column, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column.type, DateTime):
        return datetime.fromisoformat(value)
    if isinstance(column.type, Date):
        return date.fromisoformat(value)
    if isinstance(column.type, Time):
        return time.fromisoformat(value)
    return value


async def dump_tables(db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
    tables = {}
    for table in Base.metadata.sorted_tables:
        result = await db.execute(select(table))
        tables[table.name] = [dict(row._mapping) for row in result]
    return tables


async def create_backup(db: AsyncSession) -> Tuple[Path, Dict[str, int]]:
    """Write a JSON dump of every table and return its path and per-table row counts."""
    tables = await dump_tables(db)
    created = datetime.now(timezone.utc)
    path = resolve_backup(f"backup-{created.strftime('%Y%m%d-%H%M%S-%f')}.json", must_exist=False)
    payload = {
        "version": BACKUP_FORMAT_VERSION,
        "created_at": created.isoformat(),
        "tables": tables,
    }
    path.write_text(json.dumps(payload, default=_to_json, indent=2), encoding="utf-8")
    counts = {name: len(rows) for name, rows in tables.items()}
    logger.info(f"Backup written to {path.name}: {sum(counts.values())} rows")
    return path, counts


def load_backup(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        tables = payload["tables"]
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Unreadable backup {path.name}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Backup file is not a valid backup")

    if not isinstance(tables, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Backup file is not a valid backup")
    unknown = set(tables) - set(Base.metadata.tables)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Backup contains unknown tables: {', '.join(sorted(unknown))}",
        )
    return tables


async def _reset_sequences(db: AsyncSession) -> None:
    """Move Postgres id sequences past the restored rows."""
    if db.get_bind().dialect.name != "postgresql":
        return
    for table in Base.metadata.sorted_tables:
        pk = list(table.primary_key.columns)
        if len(pk) != 1 or not isinstance(pk[0].type, Integer):
            continue
        max_id = await db.scalar(select(func.max(pk[0])))
        if max_id is None:
            continue
        await db.execute(
            text("SELECT setval(pg_get_serial_sequence(:table, :column), :value)"),
            {"table": table.name, "column": pk[0].name, "value": max_id},
        )


async def restore_backup(db: AsyncSession, path: Path) -> Dict[str, int]:
    """
    Replace the contents of every table with the rows stored in ``path``.
    Runs as a single transaction; on any failure nothing is changed.
    """
    tables = load_backup(path)
    counts = {}
    try:
        for table in reversed(Base.metadata.sorted_tables):
            await db.execute(delete(table))
        for table in Base.metadata.sorted_tables:
            rows = [
                {col.name: _from_json(col, row.get(col.name)) for col in table.columns if col.name in row}
                for row in tables.get(table.name, [])
            ]
            if rows:
                await db.execute(insert(table), rows)
            counts[table.name] = len(rows)
        await _reset_sequences(db)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Restore from {path.name} failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Restore failed: {e}")

    logger.info(f"Restored backup {path.name}: {sum(counts.values())} rows")
    return counts
