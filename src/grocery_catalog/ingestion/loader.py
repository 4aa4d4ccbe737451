"""Product source-file loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from grocery_catalog.database.models import ProductRecord
from grocery_catalog.errors import InputError


def load_products(path: str | Path) -> list[dict[str, Any]]:
    """Load the JSON array of product records stored at *path*.

    Entries are returned as-is; missing fields are not an error here.

    Raises
    ------
    InputError
        If the file is missing or unreadable, is not valid JSON, is not a
        JSON array, or contains an entry that is not an object.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InputError(f"Source file not found: {path}", exc) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Could not read source file {path}", exc) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InputError(f"Source file {path} is not valid JSON", exc) from exc

    if not isinstance(data, list):
        raise InputError(
            f"Source file {path} must contain a JSON array of products, "
            f"got {type(data).__name__}"
        )
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise InputError(
                f"Entry {index} in {path} is {type(entry).__name__}, expected an object"
            )
    return data


def validate_products(records: list[dict[str, Any]]) -> list[ProductRecord]:
    """Check every record has string ``name``, ``description`` and ``category``.

    Raises
    ------
    InputError
        Naming the first invalid record.
    """
    validated: list[ProductRecord] = []
    for index, record in enumerate(records):
        try:
            validated.append(ProductRecord.model_validate(record))
        except ValidationError as exc:
            raise InputError(
                f"Product {index} ({record.get('name')!r}) failed validation", exc
            ) from exc
    return validated
