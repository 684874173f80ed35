from __future__ import annotations

import io
import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

import yaml
from dotenv import dotenv_values

from .binding import bind
from .errors import DeserializeError
from .setter import is_mutable_reference, record_fields

logger = logging.getLogger(__name__)


class Deserializer(Protocol):
    """Decodes raw bytes of one format into an existing record."""

    def deserialize(self, data: bytes, target: Any) -> None: ...


def _require_mapping(payload: Any, fmt: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise DeserializeError(
            f"{fmt} config must be a mapping at the top level, got {type(payload).__name__}"
        )
    return payload


class JSONDeserializer:
    def deserialize(self, data: bytes, target: Any) -> None:
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DeserializeError(f"invalid JSON: {e}") from e
        bind(target, _require_mapping(payload, "JSON"))


class YAMLDeserializer:
    def deserialize(self, data: bytes, target: Any) -> None:
        try:
            payload = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise DeserializeError(f"invalid YAML: {e}") from e
        if payload is None:
            return
        bind(target, _require_mapping(payload, "YAML"))


class TOMLDeserializer:
    def deserialize(self, data: bytes, target: Any) -> None:
        try:
            payload = tomllib.loads(data.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise DeserializeError(f"invalid TOML: {e}") from e
        bind(target, payload)


def _decode_env(raw: str) -> Any:
    # complex values may be given as JSON: LIST='["a", "b"]'
    stripped = raw.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return raw
    return raw


class EnvDeserializer:
    """Fills a record from environment variables.

    ``data`` is read as ``.env`` content; the process environment (or the
    ``environ`` mapping given) is layered on top and wins, as ``load_dotenv``
    does without ``override``. Field ``nested.field3`` is read from
    ``{PREFIX}NESTED__FIELD3``. Nested records that are currently None are
    not descended into.
    """

    def __init__(
        self,
        prefix: str = "",
        nested_delimiter: str = "__",
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.prefix = prefix
        self.nested_delimiter = nested_delimiter
        self.environ = environ

    def deserialize(self, data: bytes, target: Any) -> None:
        if record_fields(target) is None:
            raise DeserializeError(
                f"cannot read environment into {type(target).__name__}: not a record"
            )
        values: dict[str, Optional[str]] = {}
        if data:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DeserializeError(f"invalid .env content: {e}") from e
            values.update(dotenv_values(stream=io.StringIO(text)))
        values.update(os.environ if self.environ is None else self.environ)

        payload = self._collect(target, values, self.prefix)
        logger.debug(f"Read {len(payload)} top-level fields from environment")
        bind(target, payload)

    def _collect(
        self, record: Any, values: Mapping[str, Optional[str]], prefix: str
    ) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in record_fields(record) or {}:
            if name.startswith("_"):
                continue
            var = f"{prefix}{name}".upper()
            current = getattr(record, name, None)
            if record_fields(current) is not None and is_mutable_reference(current):
                nested = self._collect(current, values, var + self.nested_delimiter)
                if nested:
                    out[name] = nested
                continue
            raw = values.get(var)
            if raw is not None:
                out[name] = _decode_env(raw)
        return out


_BY_SUFFIX = {
    ".json": JSONDeserializer,
    ".yaml": YAMLDeserializer,
    ".yml": YAMLDeserializer,
    ".toml": TOMLDeserializer,
    ".env": EnvDeserializer,
}


def deserializer_for_path(path: Path | str) -> Deserializer:
    """Pick a deserializer from the file suffix.

    Raises:
        DeserializeError: If the suffix is not a supported format.
    """
    p = Path(path)
    # "foo.env" has suffix ".env"; a bare ".env" file has none
    suffix = p.suffix.lower() or p.name.lower()
    try:
        return _BY_SUFFIX[suffix]()
    except KeyError:
        raise DeserializeError(f"Unsupported config format: {p}") from None
