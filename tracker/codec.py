"""
Import and export of the four record collections as one JSON document.

The document mirrors storage: each field holds the raw JSON string that is
persisted under the same key (so values are JSON encoded twice), or null when
that key was never written.
"""

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Union

import structlog

from tracker.functional import Either, Right, failure
from tracker.storage import KeyValueStorage

logger = structlog.get_logger(__name__)

EXPORT_KEYS = ("expenses", "income", "goals", "categories")


def export_all(storage: KeyValueStorage) -> str:
    data = {key: storage.get(key) for key in EXPORT_KEYS}
    return json.dumps(data, ensure_ascii=False, indent=2)


def export_filename(today: Optional[date] = None) -> str:
    return f"finance-data-{(today or date.today()).isoformat()}.json"


def write_export(storage: KeyValueStorage, directory: Union[str, Path], today: Optional[date] = None) -> Path:
    path = Path(directory) / export_filename(today)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_all(storage), encoding="utf-8")
    logger.info("data_exported", path=str(path))
    return path


def _import_failed(reason: str, **context) -> Either:
    logger.warning("import_failed", reason=reason, **context)
    return failure("import_failed", f"Failed to import data: {reason}", "messages.importFailed", **context)


def parse_document(document: Union[str, bytes]) -> Either[dict, Dict[str, str]]:
    """Check a whole export document before anything is written.

    Returns the fields to write. Absent or null fields are left out; any
    malformed field rejects the entire document.
    """
    try:
        data = json.loads(document)
    except ValueError as e:
        return _import_failed("document is not valid JSON", detail=str(e))
    if not isinstance(data, dict):
        return _import_failed("document must be a JSON object")

    updates: Dict[str, str] = {}
    for key in EXPORT_KEYS:
        value = data.get(key)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            return _import_failed("field must hold a JSON string", field=key)
        try:
            decoded = json.loads(value)
        except ValueError:
            return _import_failed("field is not valid JSON", field=key)
        if not isinstance(decoded, list):
            return _import_failed("field must encode a list", field=key)
        updates[key] = value
    return Right(updates)


def import_all(storage: KeyValueStorage, document: Union[str, bytes]) -> Either[dict, Dict[str, str]]:
    parsed = parse_document(document)
    if parsed.is_right():
        updates = parsed.get_or_else({})
        storage.set_many(updates)
        logger.info("data_imported", keys=sorted(updates))
    return parsed


async def import_file(storage: KeyValueStorage, path: Union[str, Path]) -> Either[dict, Dict[str, str]]:
    """Read ``path`` without blocking the loop, then import in one step."""
    try:
        document = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return _import_failed("cannot read file", path=str(path), detail=str(e))
    return import_all(storage, document)
