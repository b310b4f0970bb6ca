"""Release-aware template rendering.

Builds the template fields (project, version, env, artifact) from a
`ReleaseContext` and renders `pipekit.template` templates against them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from pipekit.template import Template, TemplateFunc

from releaser.framework.artifacts import Artifact

if TYPE_CHECKING:
    from releaser.framework.runtime import ReleaseContext


class TemplateRenderer:
    """Immutable-ish builder: every `with_*` returns a new renderer."""

    def __init__(
        self,
        ctx: "ReleaseContext",
        *,
        artifact: Artifact | None = None,
        env_overrides: Mapping[str, str] | None = None,
        extra_fields: Mapping[str, Any] | None = None,
    ):
        self.ctx = ctx
        self.artifact = artifact
        self.env_overrides = dict(env_overrides or {})
        self.extra_fields = dict(extra_fields or {})

    def _copy(self, **changes: Any) -> "TemplateRenderer":
        params = {
            "artifact": self.artifact,
            "env_overrides": self.env_overrides,
            "extra_fields": self.extra_fields,
        }
        params.update(changes)
        return TemplateRenderer(self.ctx, **params)

    def with_artifact(self, artifact: Artifact) -> "TemplateRenderer":
        return self._copy(artifact=artifact)

    def with_env(self, env: Mapping[str, str]) -> "TemplateRenderer":
        merged = dict(self.env_overrides)
        merged.update(env)
        return self._copy(env_overrides=merged)

    def with_fields(self, fields: Mapping[str, Any]) -> "TemplateRenderer":
        merged = dict(self.extra_fields)
        merged.update(fields)
        return self._copy(extra_fields=merged)

    def env(self) -> dict[str, str]:
        env = dict(self.ctx.env)
        env.update(self.env_overrides)
        return env

    def fields(self) -> dict[str, Any]:
        ctx = self.ctx
        major, minor, patch = ctx.semver()
        fields: dict[str, Any] = {
            "ProjectName": ctx.config.project_name,
            "Version": ctx.version,
            "RawVersion": f"{major}.{minor}.{patch}",
            "Tag": ctx.tag,
            "Major": major,
            "Minor": minor,
            "Patch": patch,
            "IsSnapshot": ctx.is_snapshot,
            "Date": ctx.date.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "Timestamp": int(ctx.date.timestamp()),
            "Env": self.env(),
        }
        if self.artifact is not None:
            fields.update(
                {
                    "ArtifactName": self.artifact.name,
                    "ArtifactPath": self.artifact.path,
                    "ArtifactID": self.artifact.id or "",
                    "Os": self.artifact.os,
                    "Arch": self.artifact.arch,
                }
            )
        fields.update(self.extra_fields)
        return fields

    def funcs(self) -> dict[str, TemplateFunc]:
        env = self.env()

        def env_or_default(name: str, default: str) -> str:
            value = env.get(str(name), "")
            return value if value else default

        return {
            "envOrDefault": TemplateFunc.fixed(env_or_default, 2),
            "isEnvSet": TemplateFunc.fixed(lambda name: bool(env.get(str(name))), 1),
        }

    def apply(self, text: str) -> str:
        """Render `text`; raises `pipekit.TemplateError` with the template's own message."""

        return Template(text, funcs=self.funcs()).render(self.fields())

    def apply_bool(self, text: str) -> bool:
        """True only when `text` renders to the literal "true" (surrounding space ignored)."""

        if not text:
            return False
        return self.apply(text).strip() == "true"
