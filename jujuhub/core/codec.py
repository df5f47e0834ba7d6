"""Encoding of collections to and from their durable blob.

A blob is a JSON array of flat objects. Values are limited to strings,
booleans, numbers and null; anything nested is rejected so that a record
always round-trips to an equal record.
"""

from __future__ import annotations

import json
from typing import Any

from ..exceptions import MalformedStateError

PRIMITIVE_TYPES = (str, bool, int, float, type(None))


def encode_records(records: list[dict[str, Any]]) -> str:
    """Serialize records to a JSON blob.

    Args:
        records: Flat record mappings

    Returns:
        JSON text (compact, key order preserved)

    Raises:
        TypeError: If a record holds a value JSON cannot represent
    """
    return json.dumps(records, ensure_ascii=False, separators=(",", ":"))


def decode_records(blob: str | bytes, id_field: str = "id") -> list[dict[str, Any]]:
    """Parse a JSON blob back into records.

    Args:
        blob: Text previously produced by ``encode_records`` (or by the
            browser application)
        id_field: Name of the identifier field every record must carry

    Returns:
        List of record dicts in stored order

    Raises:
        MalformedStateError: If the blob is not a JSON array of flat objects
            each carrying a string id
    """
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedStateError(f"Blob is not valid JSON: {e}", {"error": str(e)})

    if not isinstance(data, list):
        raise MalformedStateError(
            f"Blob must be a JSON array, got {type(data).__name__}",
            {"type": type(data).__name__},
        )

    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise MalformedStateError(
                f"Record {index} is not an object",
                {"index": index},
            )
        if not isinstance(record.get(id_field), str) or not record[id_field]:
            raise MalformedStateError(
                f"Record {index} has no '{id_field}'",
                {"index": index},
            )
        for name, value in record.items():
            if not isinstance(value, PRIMITIVE_TYPES):
                raise MalformedStateError(
                    f"Record {index} field '{name}' is not a primitive value",
                    {"index": index, "field": name},
                )

    return data
