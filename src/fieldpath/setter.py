from __future__ import annotations

import collections.abc
import dataclasses
import enum
import functools
import re
import typing
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .assignable import (
    describe,
    element_type,
    is_assignable,
    is_nilable,
    mapping_types,
    zero_value,
)
from .errors import (
    FieldNotFoundError,
    FieldNotSettableError,
    FieldPathError,
    IndexOutOfRangeError,
    InvalidIndexError,
    InvalidPathError,
    NotAReferenceError,
    TypeMismatchError,
    UnsupportedTraversalError,
)

_INDEX = re.compile(r"[+-]?\d+")
_TEXT = (str, bytes, bytearray)


@functools.lru_cache(maxsize=256)
def _class_hints(cls: type) -> dict[str, Any]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        # unresolvable forward references: keep whatever is declared raw
        hints = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
    return {
        name: hint
        for name, hint in hints.items()
        if typing.get_origin(hint) is not typing.ClassVar
        and hint is not typing.ClassVar
    }


def _is_namedtuple(obj: Any) -> bool:
    return isinstance(obj, tuple) and hasattr(type(obj), "_fields")


def record_fields(obj: Any) -> Optional[dict[str, Any]]:
    """Declared fields of a record instance, mapped to their annotations.

    Records are pydantic models, dataclass instances and instances of plain
    classes that declare annotated attributes (NamedTuples included). Returns
    None for anything else.
    """
    cls = type(obj)
    if isinstance(obj, BaseModel):
        return {name: info.annotation for name, info in cls.model_fields.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        hints = _class_hints(cls)
        return {f.name: hints.get(f.name, f.type) for f in dataclasses.fields(obj)}
    if isinstance(obj, (type, enum.Enum)) or cls.__module__ == "builtins":
        return None
    if isinstance(obj, collections.abc.Collection) and not _is_namedtuple(obj):
        return None
    hints = _class_hints(cls)
    return hints or None


def _is_frozen(obj: Any) -> bool:
    if isinstance(obj, tuple):
        return True
    if isinstance(obj, BaseModel):
        return bool(type(obj).model_config.get("frozen"))
    params = getattr(type(obj), "__dataclass_params__", None)
    return params is not None and params.frozen


def is_field_settable(obj: Any, name: str) -> bool:
    if name.startswith("_") or _is_frozen(obj):
        return False
    if isinstance(obj, BaseModel):
        return not type(obj).model_fields[name].frozen
    return True


def _is_sequence(node: Any) -> bool:
    return isinstance(node, collections.abc.Sequence) and not isinstance(
        node, _TEXT
    )


def is_mutable_reference(obj: Any) -> bool:
    """Check whether ``obj`` can be the root of a mutation.

    Args:
        obj: Candidate root.

    Returns:
        True for non-frozen records, mutable sequences and mutable mappings.
    """
    if record_fields(obj) is not None:
        return not _is_frozen(obj)
    return isinstance(
        obj, (collections.abc.MutableSequence, collections.abc.MutableMapping)
    )


def split_path(path: str) -> list[str]:
    """Split a dotted path into its segments.

    Args:
        path: Dotted path such as ``"nested.items.0"``.

    Returns:
        The segments, in order.

    Raises:
        InvalidPathError: If the path is empty, not a string, or has an
            empty segment.
    """
    if not isinstance(path, str) or not path:
        raise InvalidPathError("path must be a non-empty string", path)
    segments = path.split(".")
    if "" in segments:
        raise InvalidPathError(f"path {path!r} contains an empty segment", path)
    return segments


def _parse_index(segment: str, size: int, path: str) -> int:
    if not _INDEX.fullmatch(segment):
        raise InvalidIndexError(f"invalid index: {segment} (path {path})", path)
    index = int(segment)
    if index < 0 or index >= size:
        raise IndexOutOfRangeError(
            f"index out of range: {index} (length {size}, path {path})", path
        )
    return index


def _checked(value: Any, annotation: Any, path: str) -> Any:
    if value is None and is_nilable(annotation):
        return zero_value(annotation)
    if not is_assignable(value, annotation):
        provided = describe(type(value))
        expected = describe(annotation)
        raise TypeMismatchError(
            f"value type {provided} is not assignable to {expected} (path {path})",
            path,
            provided=provided,
            expected=expected,
        )
    return value


def _assign_field(node: Any, name: str, value: Any, annotation: Any, path: str):
    try:
        setattr(node, name, value)
    except ValidationError as e:
        # validate_assignment models may still reject a correctly typed value
        raise TypeMismatchError(
            f"value rejected by {type(node).__name__}.{name}: {e} (path {path})",
            path,
            provided=describe(type(value)),
            expected=describe(annotation),
        ) from e
    except (AttributeError, TypeError) as e:
        raise FieldNotSettableError(f"cannot set field {name}: {e}", path) from e


def _set_recursive(
    node: Any, annotation: Any, segments: list[str], depth: int, value: Any, path: str
) -> None:
    segment = segments[depth]
    last = depth == len(segments) - 1

    fields = record_fields(node)
    if fields is not None:
        if segment not in fields:
            raise FieldNotFoundError(
                f"field {segment} does not exist on {type(node).__name__} (path {path})",
                path,
            )
        if not is_field_settable(node, segment):
            raise FieldNotSettableError(
                f"cannot set field {segment} on {type(node).__name__} (path {path})",
                path,
            )
        field_type = fields[segment]
        if last:
            new = _checked(value, field_type, path)
            _assign_field(node, segment, new, field_type, path)
            return
        # declared but never assigned reads as None
        _set_recursive(
            getattr(node, segment, None), field_type, segments, depth + 1, value, path
        )
        return

    if _is_sequence(node):
        index = _parse_index(segment, len(node), path)
        item_type = element_type(annotation, index)
        if last:
            if not isinstance(node, collections.abc.MutableSequence):
                raise FieldNotSettableError(
                    f"cannot set element {index} of immutable {type(node).__name__} (path {path})",
                    path,
                )
            node[index] = _checked(value, item_type, path)
            return
        _set_recursive(node[index], item_type, segments, depth + 1, value, path)
        return

    if isinstance(node, collections.abc.Mapping):
        if not last:
            raise UnsupportedTraversalError(
                f"cannot traverse past mapping key {segment} (path {path})", path
            )
        key_type, value_type = mapping_types(annotation)
        if not is_assignable(segment, key_type):
            raise TypeMismatchError(
                f"mapping key {segment!r} is not assignable to key type {describe(key_type)} (path {path})",
                path,
                provided="str",
                expected=describe(key_type),
            )
        if not isinstance(node, collections.abc.MutableMapping):
            raise FieldNotSettableError(
                f"cannot set key {segment} of immutable {type(node).__name__} (path {path})",
                path,
            )
        node[segment] = _checked(value, value_type, path)
        return

    raise UnsupportedTraversalError(
        f"unsupported type {type(node).__name__} at segment {segment} (path {path})",
        path,
    )


def set_value(root: Any, path: str, value: Any) -> None:
    """Assign ``value`` to the location addressed by a dotted ``path``.

    Each segment is read according to the runtime kind of the node reached so
    far: a field name on records, an integer index on sequences, a string key
    on mappings. The leaf must accept ``value`` exactly (see
    :func:`fieldpath.assignable.is_assignable`); ``None`` resets Optional and
    container locations to their empty state.

    Mapping entries can only be the last segment, and a key that itself
    contains a dot cannot be addressed because the path is split on every
    dot. Sequences never grow.

    Raises:
        FieldPathError: One of its subclasses, naming the failing path. The
            graph is left untouched on failure.
    """
    if not is_mutable_reference(root):
        raise NotAReferenceError(
            f"root must be a mutable record, list or dict, got {type(root).__name__}",
            path,
        )
    segments = split_path(path)
    _set_recursive(root, type(root), segments, 0, value, path)


def set_fields(
    root: Any, fields: Mapping[str, Any], soft: bool = False
) -> list[FieldPathError]:
    """Apply every ``path -> value`` pair in ``fields`` to ``root``.

    With ``soft=False`` the first failure stops the batch and is returned
    alone; pairs applied before it stay applied. With ``soft=True`` every pair
    is attempted and all failures are returned. An empty list means success.
    """
    errors: list[FieldPathError] = []
    for path, value in fields.items():
        try:
            set_value(root, path, value)
        except FieldPathError as e:
            if not soft:
                return [e]
            errors.append(e)
    return errors


def get_value(root: Any, path: str) -> Any:
    """Read the location addressed by ``path``.

    Uses the same segment rules as :func:`set_value`, except that reading
    through a mapping value is allowed and a missing key raises
    FieldNotFoundError.
    """
    node = root
    for segment in split_path(path):
        fields = record_fields(node)
        if fields is not None:
            if segment not in fields:
                raise FieldNotFoundError(
                    f"field {segment} does not exist on {type(node).__name__} (path {path})",
                    path,
                )
            node = getattr(node, segment, None)
        elif _is_sequence(node):
            node = node[_parse_index(segment, len(node), path)]
        elif isinstance(node, collections.abc.Mapping):
            if segment not in node:
                raise FieldNotFoundError(f"key {segment} does not exist (path {path})", path)
            node = node[segment]
        else:
            raise UnsupportedTraversalError(
                f"unsupported type {type(node).__name__} at segment {segment} (path {path})",
                path,
            )
    return node
