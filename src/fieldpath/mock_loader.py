from __future__ import annotations

from typing import Any, Dict, Mapping

from .errors import OverrideError
from .setter import set_fields


class MockLoader:
    """In-memory stand-in for ConfigLoader, for tests.

    ``mock_data`` maps dotted paths to values and is applied strictly: a path
    that matches nothing fails the whole load. Overrides are applied after it
    in soft mode.
    """

    def __init__(self, mock_data: Mapping[str, Any]):
        self.mock_data: Dict[str, Any] = dict(mock_data)
        self._overrides: Dict[str, Any] = {}

    def load(self, config: Any) -> None:
        errors = set_fields(config, self.mock_data, soft=False)
        if errors:
            raise errors[0]

        errors = set_fields(config, self._overrides, soft=True)
        if errors:
            raise OverrideError(errors)

    def override(self, path: str, value: Any) -> None:
        self._overrides[path] = value
