"""Strict configuration-section parsing with consumed-keys tracking."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    """Wraps one mapping section; every getter marks its key as consumed.

    After a section has been read, `unconsumed_keys()` lists what nobody asked
    for (typos, unsupported options) so the caller can warn or fail.
    """

    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: list["ConfigNamespace"] = field(default_factory=list, init=False, repr=False)

    def _key_path(self, key: str) -> str:
        return _join_path(self.path, key)

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        self._consumed.add(normalized)

        if normalized not in self.data or self.data.get(normalized) is None:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {self._key_path(normalized)}")
            return default
        return self.data[normalized]

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        """Unknown keys in this section and, recursively, in child sections."""

        unknown = [
            self._key_path(str(key)) for key in self.data.keys() if str(key) not in self._consumed
        ]
        for child in self._children:
            unknown.extend(child.unconsumed_keys())
        return tuple(sorted(unknown))

    def assert_consumed(self) -> None:
        unknown = self.unconsumed_keys()
        if unknown:
            path = self.path or "<root>"
            raise ValueError(f"Unknown config keys under {path}: {', '.join(unknown)}")

    def namespace(self, key: str) -> "ConfigNamespace":
        raw = self._get_raw(key, default=None)
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a mapping (type={type(raw).__name__})"
            )
        child = ConfigNamespace(dict(raw), path=self._key_path(key.strip()))
        self._children.append(child)
        return child

    def namespaces(self, key: str) -> list["ConfigNamespace"]:
        """A list of mapping sections (e.g. `publishers:`), each tracked on its own."""

        raw = self._get_raw(key, default=[])
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a list of mappings (type={type(raw).__name__})"
            )
        children: list[ConfigNamespace] = []
        for idx, item in enumerate(raw):
            item_path = f"{self._key_path(key.strip())}[{idx}]"
            if not isinstance(item, Mapping):
                raise TypeError(f"{item_path} must be a mapping (type={type(item).__name__})")
            child = ConfigNamespace(dict(item), path=item_path)
            self._children.append(child)
            children.append(child)
        return children

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        raw = self._get_raw(key, default=default)
        if not isinstance(raw, bool):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a boolean (type={type(raw).__name__})"
            )
        return raw

    def get_int(
        self,
        key: str,
        *,
        default: int | object = _MISSING,
        min_value: int | None = None,
    ) -> int:
        raw = self._get_raw(key, default=default)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TypeError(
                f"{self._key_path(key.strip())} must be an int (type={type(raw).__name__})"
            )
        if min_value is not None and raw < min_value:
            raise ValueError(f"{self._key_path(key.strip())} must be >= {min_value} (got {raw})")
        return raw

    def get_optional_float(
        self,
        key: str,
        *,
        min_value: float | None = None,
    ) -> float | None:
        raw = self._get_raw(key, default=None)
        if raw is None:
            return None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a float or null (type={type(raw).__name__})"
            )
        value = float(raw)
        if min_value is not None and value < min_value:
            raise ValueError(f"{self._key_path(key.strip())} must be >= {min_value} (got {value})")
        return value

    def get_str(self, key: str, *, default: str | object = _MISSING) -> str:
        """A string value, kept verbatim (templates are sensitive to whitespace)."""

        raw = self._get_raw(key, default=default)
        if not isinstance(raw, str):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a string (type={type(raw).__name__})"
            )
        return raw

    def get_template_bool(self, key: str, *, default: str = "") -> str:
        """A boolean or a template that evaluates to one; booleans become "true"/"false"."""

        raw = self._get_raw(key, default=default)
        if isinstance(raw, bool):
            return "true" if raw else "false"
        if not isinstance(raw, str):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a boolean or a template string "
                f"(type={type(raw).__name__})"
            )
        return raw

    def get_list_str(self, key: str, *, default: list[str] | tuple[str, ...] = ()) -> list[str]:
        raw = self._get_raw(key, default=list(default))
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{self._key_path(key.strip())} must be a list[str] (type={type(raw).__name__})"
            )

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise TypeError(
                    f"{self._key_path(key.strip())}[{idx}] must be a string (type={type(item).__name__})"
                )
            if not item.strip():
                raise ValueError(f"{self._key_path(key.strip())}[{idx}] cannot be empty")
            items.append(item)
        return items
