"""Checksum manifest stage.

Digests the checksummable artifacts (plus configured extra files), writes one
`<hex>  <name>` line per file into `<dist>/<name_template>` and registers the
manifest as a `Checksum` artifact that can regenerate itself via `refresh()`.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from releaser.framework.artifacts import (
    EXTRA_CHECKSUMS,
    Artifact,
    ArtifactType,
    and_,
    by_ids,
    by_type,
)
from releaser.framework.extrafiles import find_extra_files
from releaser.framework.runtime import ReleaseContext
from releaser.framework.tmpl import TemplateRenderer

DEFAULT_NAME_TEMPLATE = "{{ .ProjectName }}_{{ .Version }}_checksums.txt"
DEFAULT_ALGORITHM = "sha256"

CHECKSUMMABLE_TYPES: tuple[ArtifactType, ...] = (
    ArtifactType.BINARY,
    ArtifactType.UPLOADABLE_BINARY,
    ArtifactType.ARCHIVE,
    ArtifactType.UPLOADABLE_ARCHIVE,
    ArtifactType.UPLOADABLE_SOURCE_ARCHIVE,
    ArtifactType.LINUX_PACKAGE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChecksumManifest:
    """Everything needed to (re)write one manifest: sources, algorithm, destination."""

    destination: str
    algorithm: str
    sources: tuple[Artifact, ...]
    parallelism: int = 1

    def _line(self, artifact: Artifact) -> str:
        digest = artifact.checksum(self.algorithm)
        return f"{digest}  {artifact.name}\n"

    def write(self) -> dict[str, str]:
        """Digest every source and rewrite the manifest; returns `{name: "<algo>:<hex>"}`.

        Lines are sorted as whole strings, i.e. by hex digest and then by name
        for equal digests, so the output does not depend on the order in which
        producer stages registered their artifacts. OS errors propagate unchanged.
        """

        with ThreadPoolExecutor(max_workers=max(1, self.parallelism)) as pool:
            lines = list(pool.map(self._line, self.sources))
        lines.sort()

        os.makedirs(os.path.dirname(os.path.abspath(self.destination)), exist_ok=True)
        with open(self.destination, "w", encoding="utf-8", newline="") as handle:
            handle.write("".join(lines))

        return {artifact.name: artifact.checksum_extra or "" for artifact in self.sources}


def select_checksum_sources(ctx: ReleaseContext, renderer: TemplateRenderer) -> list[Artifact]:
    cfg = ctx.config.checksum
    predicate = by_type(*CHECKSUMMABLE_TYPES)
    if cfg.ids:
        predicate = and_(predicate, by_ids(*cfg.ids))
    sources = ctx.artifacts.filter(predicate)

    for name, path in find_extra_files(renderer, cfg.extra_files, logger=ctx.logger).items():
        sources.append(Artifact(name=name, path=path, type=ArtifactType.UPLOADABLE_FILE))
    return sources


class ChecksumsStage:
    def __str__(self) -> str:
        return "calculating checksums"

    def default(self, ctx: ReleaseContext) -> None:
        cfg = ctx.config.checksum
        if not cfg.name_template:
            cfg.name_template = DEFAULT_NAME_TEMPLATE
        if not cfg.algorithm:
            cfg.algorithm = DEFAULT_ALGORITHM

    def skip(self, ctx: ReleaseContext) -> bool:
        return ctx.config.checksum.disable

    def run(self, ctx: ReleaseContext) -> None:
        cfg = ctx.config.checksum
        renderer = TemplateRenderer(ctx)
        filename = renderer.apply(cfg.name_template)
        destination = os.path.join(ctx.config.dist, filename)

        sources = select_checksum_sources(ctx, renderer)
        if not sources:
            ctx.logger.info("no artifacts to checksum")
            return

        manifest = ChecksumManifest(
            destination=destination,
            algorithm=cfg.algorithm or DEFAULT_ALGORITHM,
            sources=tuple(sources),
            parallelism=ctx.parallelism,
        )
        digests = manifest.write()
        ctx.logger.info("checksums written: %s (%d files)", destination, len(sources))

        artifact = Artifact(
            name=filename,
            path=destination,
            type=ArtifactType.CHECKSUM,
            extra={EXTRA_CHECKSUMS: digests},
        )

        def refresh() -> None:
            logger.debug("refreshing checksums: %s", destination)
            artifact.extra[EXTRA_CHECKSUMS] = manifest.write()

        artifact.set_refresh(refresh)
        stale = ctx.artifacts.remove(
            lambda a: a.type == ArtifactType.CHECKSUM and os.path.abspath(a.path) == os.path.abspath(destination)
        )
        if stale:
            ctx.logger.debug("replacing previously registered manifest %s", destination)
        ctx.artifacts.add(artifact)
