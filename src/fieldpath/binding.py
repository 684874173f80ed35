from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError

from .errors import BindError
from .setter import is_field_settable, is_mutable_reference, record_fields

logger = logging.getLogger(__name__)


def _field_for_key(target: Any, fields: dict[str, Any], key: Any) -> Optional[str]:
    if key in fields:
        return key
    if isinstance(target, BaseModel):
        for name, info in type(target).model_fields.items():
            if key in (info.alias, info.validation_alias):
                return name
    return None


def _convert(annotation: Any, raw: Any, path: str) -> Any:
    if isinstance(annotation, str):
        # unresolved forward reference
        return raw
    try:
        return TypeAdapter(annotation).validate_python(raw)
    except ValidationError as e:
        raise BindError(f"invalid value for {path}: {e}", path) from e
    except PydanticSchemaGenerationError as e:
        raise BindError(
            f"cannot convert a value for {path} into {annotation!r}", path
        ) from e


def bind(target: Any, data: Mapping[str, Any], *, strict: bool = False) -> None:
    """Merge decoded config ``data`` into the record ``target`` in place.

    Nested mappings merge into nested records, so a partial document only
    replaces the keys it names. Lists and scalars replace the current value.
    Values are converted to each field's annotation with pydantic in lax mode,
    the same leniency a format decoder applies when filling typed fields.

    Args:
        target: A mutable record (dataclass, pydantic model or annotated class).
        data: Decoded document, keyed by field name or pydantic alias.
        strict: Raise on keys matching no field instead of ignoring them.

    Raises:
        BindError: If ``data`` is not a mapping, a value cannot be converted,
            or (strict) a key is unknown.
    """
    if not is_mutable_reference(target) or record_fields(target) is None:
        raise BindError(f"cannot bind into {type(target).__name__}: not a mutable record")
    _bind(target, data, strict, "")


def _bind(target: Any, data: Any, strict: bool, prefix: str) -> None:
    if not isinstance(data, Mapping):
        where = prefix or "document root"
        raise BindError(
            f"expected a mapping at {where}, got {type(data).__name__}", prefix or None
        )

    fields = record_fields(target) or {}
    for key, raw in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        name = _field_for_key(target, fields, key)
        if name is None:
            if strict:
                raise BindError(f"unknown field {path}", path)
            logger.debug(f"Ignoring unknown config key: {path}")
            continue

        current = getattr(target, name, None)
        if (
            isinstance(raw, Mapping)
            and record_fields(current) is not None
            and is_mutable_reference(current)
        ):
            _bind(current, raw, strict, path)
            continue

        if not is_field_settable(target, name):
            raise BindError(f"field {path} is not settable", path)
        value = _convert(fields[name], raw, path)
        try:
            setattr(target, name, value)
        except ValidationError as e:
            raise BindError(f"invalid value for {path}: {e}", path) from e
        except (AttributeError, TypeError) as e:
            raise BindError(f"cannot set field {path}: {e}", path) from e
