"""
Dispatcher configuration, optionally loaded from TOML (via `tomlkit`).

```toml
[tool.typeforge]
exact-only = false
check-result = true
```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

import tomlkit
from tomlkit import TOMLDocument

__all__ = [
    "DispatchParams",
]

TABLE_PATHS = (("tool", "typeforge"), ("typeforge",))
"""
Locations of the config table within a document, in order of precedence.
"""


@dataclass(kw_only=True, frozen=True)
class DispatchParams:
    """
    Params controlling how a dispatcher resolves and invokes converters.
    """

    exact_only: bool = False
    """
    Whether to only resolve converters registered at exactly the requested
    signature, skipping the compatibility fallback.
    """

    check_result: bool = False
    """
    Whether to check that a converter's result is an instance of the requested
    target type.
    """

    @classmethod
    def load(cls, file: Path, /) -> Self:
        """
        Load params from a TOML file, e.g. `pyproject.toml`.

        :raises FileNotFoundError: If the file doesn't exist
        """
        return cls.loads(file.read_text())

    @classmethod
    def loads(cls, string: str, /) -> Self:
        return cls.from_document(tomlkit.loads(string))

    @classmethod
    def from_document(cls, document: TOMLDocument, /) -> Self:
        """
        Get params from the first config table found in the document; defaults if
        there's none.
        """
        for path in TABLE_PATHS:
            table: Any = document
            for key in path:
                table = table.get(key) if isinstance(table, Mapping) else None
            if isinstance(table, Mapping):
                return cls.from_mapping(table)
        return cls()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], /) -> Self:
        """
        Get params from a mapping of option names; dashes and underscores are
        interchangeable.

        :raises ValueError: If an option is unknown or not a boolean
        """
        names = {f.name for f in fields(cls)}
        kwargs: dict[str, bool] = {}

        for key, value in mapping.items():
            name = str(key).replace("-", "_")
            if name not in names:
                raise ValueError(f"Unknown option: {key}")

            # unwrap tomlkit items
            raw = value.unwrap() if hasattr(value, "unwrap") else value
            if not isinstance(raw, bool):
                raise ValueError(f"Option {key} must be a boolean, got {raw!r}")
            kwargs[name] = raw

        return cls(**kwargs)
