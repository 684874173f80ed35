from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .deserializers import Deserializer
from .errors import ConfigLoadError, OverrideError
from .setter import set_fields

logger = logging.getLogger(__name__)


class Loader(Protocol):
    """Something that can fill a config record and accept path overrides."""

    def load(self, config: Any) -> None: ...

    def override(self, path: str, value: Any) -> None: ...


class ConfigLoader:
    """Loads a main config file, an optional override file, then path overrides.

    Attributes:
        name: File name of the main config.
        path: Directory holding the main config.
        override_name: File name of the override config, if any.
        override_path: Directory holding the override config, if any.
        deserializer: Decoder for the main file.
        override_deserializer: Decoder for the override file; defaults to
            ``deserializer``.
        overrides: Dotted path -> value, applied last in soft mode.
    """

    def __init__(
        self,
        name: str,
        path: Path | str = ".",
        *,
        override_name: Optional[str] = None,
        override_path: Optional[Path | str] = None,
        deserializer: Optional[Deserializer] = None,
        override_deserializer: Optional[Deserializer] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.path = Path(path)
        self.override_name = override_name
        self.override_path = Path(override_path) if override_path else None
        self.deserializer = deserializer
        self.override_deserializer = override_deserializer
        self.overrides: Dict[str, Any] = dict(overrides or {})

    @property
    def has_override_file(self) -> bool:
        return bool(self.override_name) and self.override_path is not None

    def load(self, config: Any) -> None:
        """Fill ``config`` from the configured sources, in order.

        Raises:
            ConfigLoadError: If no deserializer is set.
            OSError: If a config file cannot be read.
            ConfigError: If a file cannot be decoded into ``config``.
            OverrideError: If any path override failed; the others are applied.
        """
        if self.deserializer is None:
            raise ConfigLoadError("no deserializer set for main configuration")

        main_file = self.path / self.name
        self.deserializer.deserialize(main_file.read_bytes(), config)
        logger.info(f"Loaded config from {main_file}")

        if self.has_override_file:
            decoder = self.override_deserializer or self.deserializer
            override_file = self.override_path / self.override_name
            decoder.deserialize(override_file.read_bytes(), config)
            logger.info(f"Applied override file {override_file}")

        errors = set_fields(config, self.overrides, soft=True)
        for e in errors:
            logger.warning(f"Override not applied: {e}")
        if errors:
            raise OverrideError(errors)
        logger.debug(f"Applied {len(self.overrides)} path overrides")

    def override(self, path: str, value: Any) -> None:
        self.overrides[path] = value
