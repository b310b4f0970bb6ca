from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TypeVar

from .digest import file_digest

EXTRA_ID = "ID"
EXTRA_CHECKSUM = "Checksum"
EXTRA_CHECKSUMS = "Checksums"
EXTRA_REFRESH = "Refresh"

T = TypeVar("T")


class ArtifactType(str, Enum):
    BINARY = "Binary"
    UPLOADABLE_BINARY = "UploadableBinary"
    ARCHIVE = "Archive"
    UPLOADABLE_ARCHIVE = "UploadableArchive"
    UPLOADABLE_SOURCE_ARCHIVE = "UploadableSourceArchive"
    UPLOADABLE_FILE = "UploadableFile"
    LINUX_PACKAGE = "LinuxPackage"
    CHECKSUM = "Checksum"
    SIGNATURE = "Signature"
    CERTIFICATE = "Certificate"
    DOCKER_IMAGE = "DockerImage"
    DOCKER_MANIFEST = "DockerManifest"

    def __str__(self) -> str:
        return self.value


class ExtraTypeError(TypeError):
    pass


RefreshHook = Callable[[], None]


@dataclass(eq=False)
class Artifact:
    """One produced output of the build.

    `name`, `path` and `type` never change after the artifact is registered;
    `extra` and the file contents may (digests, refresh hooks).
    """

    name: str
    path: str
    type: ArtifactType
    os: str = ""
    arch: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str | None:
        return get_extra(self, EXTRA_ID, str)

    @property
    def checksum_extra(self) -> str | None:
        return get_extra(self, EXTRA_CHECKSUM, str)

    @property
    def checksums_extra(self) -> dict[str, str] | None:
        return get_extra(self, EXTRA_CHECKSUMS, dict)

    @property
    def platform(self) -> str:
        if not self.os:
            return ""
        return f"{self.os}/{self.arch}" if self.arch else self.os

    def set_refresh(self, hook: RefreshHook) -> None:
        if not callable(hook):
            raise TypeError("refresh hook must be callable")
        self.extra[EXTRA_REFRESH] = hook

    def refresh(self) -> None:
        """Regenerate this artifact's content from its recorded inputs; no-op when it has none."""

        hook = self.extra.get(EXTRA_REFRESH)
        if hook is None:
            return
        if not callable(hook):
            raise ExtraTypeError(
                f"extra {EXTRA_REFRESH!r} of artifact {self.name} is not callable ({type(hook).__name__})"
            )
        hook()

    def checksum(self, algorithm: str) -> str:
        """Digest the underlying file and record `<algorithm>:<hex>` under the Checksum extra."""

        digest = file_digest(self.path, algorithm)
        self.extra[EXTRA_CHECKSUM] = f"{algorithm}:{digest}"
        return digest

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "type": self.type.value,
        }
        if self.os:
            payload["os"] = self.os
        if self.arch:
            payload["arch"] = self.arch
        extra = {k: v for k, v in self.extra.items() if not callable(v)}
        if extra:
            payload["extra"] = extra
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Artifact":
        try:
            artifact_type = ArtifactType(payload["type"])
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Invalid artifact type in metadata: {payload.get('type')!r}") from exc
        extra = payload.get("extra") or {}
        if not isinstance(extra, dict):
            raise ValueError(f"Invalid artifact extra in metadata for {payload.get('name')!r}")
        extra = dict(extra)
        artifact_id = extra.get(EXTRA_ID)
        if artifact_id is not None and not isinstance(artifact_id, str):
            if isinstance(artifact_id, bool) or not isinstance(artifact_id, (int, float)):
                raise ValueError(
                    f"Invalid artifact ID in metadata for {payload.get('name')!r}: "
                    f"expected a string (type={type(artifact_id).__name__})"
                )
            extra[EXTRA_ID] = str(artifact_id)
        return cls(
            name=str(payload.get("name") or ""),
            path=str(payload.get("path") or ""),
            type=artifact_type,
            os=str(payload.get("os") or ""),
            arch=str(payload.get("arch") or ""),
            extra=extra,
        )


def get_extra(artifact: Artifact, key: str, expected: type[T]) -> T | None:
    value = artifact.extra.get(key)
    if value is None:
        return None
    if not isinstance(value, expected):
        raise ExtraTypeError(
            f"extra {key!r} of artifact {artifact.name} is {type(value).__name__}, "
            f"expected {expected.__name__}"
        )
    return value


ArtifactFilter = Callable[[Artifact], bool]


def by_type(*types: ArtifactType) -> ArtifactFilter:
    wanted = frozenset(types)
    return lambda artifact: artifact.type in wanted


def by_ids(*ids: str) -> ArtifactFilter:
    wanted = frozenset(ids)
    return lambda artifact: artifact.id in wanted


def or_(*filters: ArtifactFilter) -> ArtifactFilter:
    return lambda artifact: any(f(artifact) for f in filters)


def and_(*filters: ArtifactFilter) -> ArtifactFilter:
    return lambda artifact: all(f(artifact) for f in filters)
