from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping

from releaser.framework.artifacts import ArtifactRegistry
from releaser.framework.config import Project
from releaser.framework.tmpl import TemplateRenderer

_SEMVER_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass
class ReleaseContext:
    """Everything one release run shares: config, artifacts, version and template env."""

    config: Project
    artifacts: ArtifactRegistry = field(default_factory=ArtifactRegistry)
    env: dict[str, str] = field(default_factory=dict)
    tag: str = ""
    version: str = ""
    is_snapshot: bool = False
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    parallelism: int = 1
    timeout: float | None = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("releaser"))

    @classmethod
    def from_project(
        cls,
        project: Project,
        *,
        tag: str = "",
        version: str | None = None,
        is_snapshot: bool = False,
        environ: Mapping[str, str] | None = None,
        artifacts: ArtifactRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> "ReleaseContext":
        """
        Build a context whose template `Env` is the host environment with the
        project's `env` entries rendered and layered on top, in order.
        """

        ctx = cls(
            config=project,
            artifacts=artifacts if artifacts is not None else ArtifactRegistry(),
            env=dict(os.environ if environ is None else environ),
            tag=tag,
            version=version if version is not None else tag.removeprefix("v"),
            is_snapshot=is_snapshot,
            parallelism=project.effective_parallelism(),
            timeout=project.publish_timeout,
        )
        if logger is not None:
            ctx.logger = logger

        ctx.env.update(resolve_env_entries(project.env, TemplateRenderer(ctx)))
        return ctx

    def semver(self) -> tuple[int, int, int]:
        match = _SEMVER_RE.match(self.version or "")
        if not match:
            return 0, 0, 0
        major, minor, patch = (int(part or 0) for part in match.groups())
        return major, minor, patch


def split_env_entry(entry: str) -> tuple[str, str]:
    key, sep, value = entry.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Invalid env entry (expected KEY=value): {entry!r}")
    return key.strip(), value


def resolve_env_entries(entries: list[str], renderer: TemplateRenderer) -> dict[str, str]:
    """Render `KEY=value` entries in order; each may reference the ones before it via `.Env`."""

    resolved: dict[str, str] = {}
    for entry in entries:
        if "{{" in entry:
            entry = renderer.with_env(resolved).apply(entry)
        key, value = split_env_entry(entry)
        resolved[key] = value
    return resolved
