from __future__ import annotations

from typing import Any, Optional


class FieldPathError(Exception):
    """Base class for failures while resolving or assigning a dotted path.

    Attributes:
        path: The full path that was being resolved, when known.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NotAReferenceError(FieldPathError, TypeError):
    """Root is not a mutable record, list or dict."""


class InvalidPathError(FieldPathError, ValueError):
    """Path is empty or contains empty segments."""


class FieldNotFoundError(FieldPathError, AttributeError):
    pass


class FieldNotSettableError(FieldPathError, AttributeError):
    pass


class InvalidIndexError(FieldPathError, ValueError):
    pass


class IndexOutOfRangeError(FieldPathError, IndexError):
    pass


class UnsupportedTraversalError(FieldPathError, TypeError):
    """Path continues past a scalar or a mapping value."""


class TypeMismatchError(FieldPathError, TypeError):
    """Value is not assignable to the destination's declared type.

    Attributes:
        provided: Name of the value's runtime type.
        expected: Readable form of the destination annotation.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        provided: Optional[str] = None,
        expected: Optional[str] = None,
    ):
        super().__init__(message, path)
        self.provided = provided
        self.expected = expected


class ConfigError(Exception):
    """Base class for loader and deserializer failures."""


class DeserializeError(ConfigError, ValueError):
    pass


class BindError(ConfigError, ValueError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigLoadError(ConfigError):
    pass


class OverrideError(ConfigError):
    """One or more overrides could not be applied.

    Attributes:
        errors: Every failure collected while applying the overrides.
    """

    def __init__(self, errors: list[Any]):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"error setting fields: {details}")
