from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic_core import to_jsonable_python


def stable_dumps(obj: Any) -> str:
    # sorted keys, compact separators: equal records dump to equal bytes
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def record_to_json(record: Any) -> Any:
    """JSON-compatible form of a record (models, dataclasses, plain classes)."""
    return to_jsonable_python(record, fallback=vars)


def config_hash(record: Any) -> str:
    """SHA-256 of the record's stable JSON form."""
    return hashlib.sha256(stable_dumps(record_to_json(record)).encode("utf-8")).hexdigest()
