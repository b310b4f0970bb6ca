from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Any, Iterable

from pipekit.stage_types import Stage, StageRef


@dataclass(frozen=True)
class StageRegistry:
    _by_id: dict[str, StageRef]

    @classmethod
    def from_refs(cls, refs: Iterable[StageRef]) -> "StageRegistry":
        entries: dict[str, StageRef] = {}
        for ref in refs:
            if ref.id in entries:
                raise ValueError(f"Duplicate stage id: {ref.id}")
            entries[ref.id] = ref
        return cls(_by_id=entries)

    def available(self) -> tuple[str, ...]:
        return tuple(self._by_id.keys())

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for ref in self._by_id.values():
            rows.append(
                {
                    "stage_id": ref.id,
                    "doc": ref.doc,
                    "tags": list(ref.tags),
                }
            )
        return tuple(rows)

    def get(self, stage_id: str) -> StageRef:
        if not isinstance(stage_id, str) or not stage_id.strip():
            raise ValueError("stage_id must be a non-empty string")
        ref = self._by_id.get(stage_id.strip())
        if ref is None:
            available = ", ".join(self.available()) or "<none>"
            hint = ""
            suggestions = self.suggest(stage_id)
            if suggestions:
                hint = f"; did you mean: {', '.join(suggestions)}"
            raise ValueError(f"Unknown stage id: {stage_id} (available: {available}{hint})")
        return ref

    def build(self, stage_ids: Iterable[str]) -> list[Stage]:
        return [self.get(stage_id).build() for stage_id in stage_ids]

    def suggest(self, stage_id: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (stage_id or "").strip()
        if not key:
            return ()
        return tuple(difflib.get_close_matches(key, list(self.available()), n=limit))
