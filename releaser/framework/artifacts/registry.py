from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Callable, Iterable

from .artifact import Artifact, ArtifactFilter

METADATA_FILENAME = "artifacts.json"

logger = logging.getLogger(__name__)


class ArtifactRegistry:
    """Ordered, thread-safe store of the artifacts produced during one release run.

    Insertion order is the iteration order; filtering never reorders. Readers get
    snapshots, so visiting while another thread adds is safe.
    """

    def __init__(self, artifacts: Iterable[Artifact] = ()):
        self._lock = threading.Lock()
        self._items: list[Artifact] = list(artifacts)

    def add(self, artifact: Artifact) -> None:
        with self._lock:
            self._items.append(artifact)
        logger.debug("added new artifact: name=%s type=%s path=%s", artifact.name, artifact.type, artifact.path)

    def remove(self, predicate: ArtifactFilter) -> int:
        """Drop every artifact matching `predicate`; returns how many were removed."""

        with self._lock:
            kept = [artifact for artifact in self._items if not predicate(artifact)]
            removed = len(self._items) - len(kept)
            self._items = kept
        if removed:
            logger.debug("removed %d artifact(s)", removed)
        return removed

    def list(self) -> list[Artifact]:
        with self._lock:
            return list(self._items)

    def filter(self, predicate: ArtifactFilter) -> list[Artifact]:
        return [artifact for artifact in self.list() if predicate(artifact)]

    def visit(self, fn: Callable[[Artifact], Any]) -> None:
        """Call `fn` for each artifact in order; the first exception stops the walk."""

        for artifact in self.list():
            fn(artifact)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def to_json_list(self) -> list[dict[str, Any]]:
        return [artifact.to_dict() for artifact in self.list()]

    def write_metadata(self, path: str) -> None:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(self.to_json_list(), handle, indent=2, default=str)
            handle.write("\n")

    @classmethod
    def load_metadata(cls, path: str) -> "ArtifactRegistry":
        with open(path, "r", encoding="utf-8") as handle:
            try:
                payload = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid artifact metadata in {path}: {exc}") from exc
        if not isinstance(payload, list):
            raise ValueError(f"Artifact metadata must be a JSON list: {path}")
        registry = cls()
        for idx, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ValueError(f"Artifact metadata entry {idx} must be an object: {path}")
            registry.add(Artifact.from_dict(item))
        return registry
