from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from pipekit.config_namespace import ConfigNamespace

DEFAULT_DIST = "dist"


@dataclass(frozen=True)
class ExtraFile:
    glob: str
    name_template: str = ""


@dataclass
class ChecksumConfig:
    name_template: str = ""
    algorithm: str = ""
    ids: list[str] = field(default_factory=list)
    extra_files: list[ExtraFile] = field(default_factory=list)
    disable: bool = False


@dataclass
class PublisherConfig:
    name: str = ""
    ids: list[str] = field(default_factory=list)
    disable: str = ""
    dir: str = ""
    cmd: str = ""
    env: list[str] = field(default_factory=list)
    checksum: bool = False
    signature: bool = False
    extra_files: list[ExtraFile] = field(default_factory=list)


@dataclass
class Project:
    project_name: str = ""
    dist: str = DEFAULT_DIST
    env: list[str] = field(default_factory=list)
    parallelism: int = 0
    publish_timeout: float | None = None
    checksum: ChecksumConfig = field(default_factory=ChecksumConfig)
    publishers: list[PublisherConfig] = field(default_factory=list)

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["Project", list[str]]:
        """
        Parse an already-loaded configuration mapping.

        Returns `(project, warnings)`. Unknown keys are warnings unless the mapping
        sets `strict: true`, in which case they raise ValueError.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        root = ConfigNamespace(dict(cfg), path="")
        strict = root.get_bool("strict", default=False)

        project = Project(
            project_name=root.get_str("project_name", default=""),
            dist=root.get_str("dist", default=DEFAULT_DIST) or DEFAULT_DIST,
            env=root.get_list_str("env"),
            parallelism=root.get_int("parallelism", default=0, min_value=0),
            publish_timeout=root.get_optional_float("publish_timeout", min_value=0.0),
        )

        for idx, entry in enumerate(project.env):
            if "=" not in entry:
                raise ValueError(f"Invalid config value for env[{idx}]: expected KEY=value (got {entry!r})")

        checksum_ns = root.namespace("checksum")
        project.checksum = ChecksumConfig(
            name_template=checksum_ns.get_str("name_template", default=""),
            algorithm=checksum_ns.get_str("algorithm", default=""),
            ids=checksum_ns.get_list_str("ids"),
            extra_files=_parse_extra_files(checksum_ns),
            disable=checksum_ns.get_bool("disable", default=False),
        )

        for publisher_ns in root.namespaces("publishers"):
            publisher = PublisherConfig(
                name=publisher_ns.get_str("name", default=""),
                ids=publisher_ns.get_list_str("ids"),
                disable=publisher_ns.get_template_bool("disable", default=""),
                dir=publisher_ns.get_str("dir", default=""),
                cmd=publisher_ns.get_str("cmd"),
                env=publisher_ns.get_list_str("env"),
                checksum=publisher_ns.get_bool("checksum", default=False),
                signature=publisher_ns.get_bool("signature", default=False),
                extra_files=_parse_extra_files(publisher_ns),
            )
            if not publisher.cmd.strip():
                raise ValueError(f"{publisher_ns.path}.cmd cannot be empty")
            project.publishers.append(publisher)

        warnings: list[str] = []
        unknown = root.unconsumed_keys()
        if unknown:
            if strict:
                raise ValueError("Unknown config keys: " + ", ".join(unknown))
            warnings.extend(f"Unknown config key: {key}" for key in unknown)

        return project, warnings

    def effective_parallelism(self) -> int:
        if self.parallelism > 0:
            return self.parallelism
        return os.cpu_count() or 1


def _parse_extra_files(ns: ConfigNamespace) -> list[ExtraFile]:
    extra_files: list[ExtraFile] = []
    for item in ns.namespaces("extra_files"):
        extra_files.append(
            ExtraFile(
                glob=item.get_str("glob"),
                name_template=item.get_str("name_template", default=""),
            )
        )
    return extra_files
