from __future__ import annotations

import collections.abc
import types
from typing import Annotated, Any, Literal, TypeVar, Union, get_args, get_origin

_UNION_ORIGINS = (Union, types.UnionType)
_NUMERIC = (int, float, complex)
_CONTAINERS = (
    collections.abc.MutableSequence,
    collections.abc.MutableMapping,
    collections.abc.MutableSet,
)


def _strip(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def describe(annotation: Any) -> str:
    """Readable name for an annotation, used in error messages."""
    annotation = _strip(annotation)
    if annotation is type(None):
        return "None"
    if isinstance(annotation, type) and not get_args(annotation):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")


def _is_any(annotation: Any) -> bool:
    # Unresolved forward references and type variables behave like Any
    return (
        annotation is Any
        or annotation is object
        or isinstance(annotation, (TypeVar, str))
    )


def _isinstance(value: Any, cls: type) -> bool:
    # bool subclasses int, but a flag is never a number here
    if isinstance(value, bool) and cls in _NUMERIC:
        return False
    return isinstance(value, cls)


def _container_class(annotation: Any) -> type | None:
    cls = get_origin(annotation) or annotation
    if isinstance(cls, type) and issubclass(cls, _CONTAINERS):
        return cls
    return None


def is_nilable(annotation: Any) -> bool:
    """True if assigning ``None`` to this annotation means "reset to empty"."""
    annotation = _strip(annotation)
    if _is_any(annotation) or annotation is None or annotation is type(None):
        return True
    if get_origin(annotation) in _UNION_ORIGINS:
        return type(None) in get_args(annotation)
    return _container_class(annotation) is not None


def zero_value(annotation: Any) -> Any:
    """Empty state written when ``None`` is assigned to a nilable location.

    Optional and untyped locations become ``None``; concrete containers become
    a fresh empty container of the declared class.
    """
    annotation = _strip(annotation)
    if get_origin(annotation) in _UNION_ORIGINS or _is_any(annotation):
        return None
    cls = _container_class(annotation)
    if cls is None:
        return None
    if not getattr(cls, "__abstractmethods__", None):
        return cls()
    # abstract collection annotations get the builtin of the same shape
    if issubclass(cls, collections.abc.MutableMapping):
        return {}
    if issubclass(cls, collections.abc.MutableSet):
        return set()
    return []


def is_assignable(value: Any, annotation: Any) -> bool:
    """Check ``value`` against a static annotation without coercion.

    No numeric widening (``int`` is not a ``float``) and ``bool`` is never a
    number. Parametrised containers have every member checked.
    """
    annotation = _strip(annotation)
    if _is_any(annotation):
        return True
    if annotation is None or annotation is type(None):
        return value is None

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin in _UNION_ORIGINS:
        return any(is_assignable(value, a) for a in args)
    if origin is Literal:
        return any(type(value) is type(a) and value == a for a in args)
    if origin is type:
        return isinstance(value, type) and (
            not args or _is_any(args[0]) or issubclass(value, args[0])
        )
    if origin is collections.abc.Callable:
        return callable(value)

    if origin is not None:
        if not isinstance(origin, type) or not _isinstance(value, origin):
            return False
        if not args:
            return True
        if issubclass(origin, collections.abc.Mapping):
            key_t, value_t = args
            return all(
                is_assignable(k, key_t) and is_assignable(v, value_t)
                for k, v in value.items()
            )
        if issubclass(origin, tuple):
            if len(args) == 2 and args[1] is Ellipsis:
                return all(is_assignable(v, args[0]) for v in value)
            return len(value) == len(args) and all(
                is_assignable(v, a) for v, a in zip(value, args)
            )
        if issubclass(origin, collections.abc.Iterable):
            return all(is_assignable(v, args[0]) for v in value)
        return True

    if isinstance(annotation, type):
        return _isinstance(value, annotation)
    return True


def _unwrap_optional(annotation: Any) -> Any:
    annotation = _strip(annotation)
    if get_origin(annotation) in _UNION_ORIGINS:
        members = [a for a in get_args(annotation) if a is not type(None)]
        return _strip(members[0]) if len(members) == 1 else Any
    return annotation


def element_type(annotation: Any, index: int) -> Any:
    """Declared type of item ``index`` inside a sequence annotation.

    Args:
        annotation: Sequence annotation, e.g. ``list[int]`` or
            ``tuple[str, int]``. ``Optional`` wrappers are looked through.
        index: Position of the item; only matters for fixed-size tuples.

    Returns:
        The item annotation, or ``Any`` when the sequence is unparametrised.
    """
    annotation = _unwrap_optional(annotation)
    args = get_args(annotation)
    if not args:
        return Any
    origin = get_origin(annotation)
    if isinstance(origin, type) and issubclass(origin, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        return args[index] if index < len(args) else Any
    return args[0]


def mapping_types(annotation: Any) -> tuple[Any, Any]:
    """Key and value types of a mapping annotation.

    Args:
        annotation: Mapping annotation, e.g. ``dict[str, int]``.

    Returns:
        ``(key type, value type)``; ``(Any, Any)`` when unparametrised.
    """
    args = get_args(_unwrap_optional(annotation))
    if len(args) == 2:
        return args[0], args[1]
    return Any, Any
