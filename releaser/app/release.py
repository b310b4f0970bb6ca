from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Sequence
from datetime import datetime

from pipekit.stage_types import SkipMemento, run_stages

from releaser.foundation.config_io import load_config
from releaser.foundation.logging_utils import setup_operational_logger
from releaser.framework.artifacts import METADATA_FILENAME, ArtifactRegistry
from releaser.framework.config import Project
from releaser.framework.runtime import ReleaseContext
from releaser.stages.registry import get_stage_registry


def generate_run_id() -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}_{uuid.uuid4().hex[:8]}"


def load_registry(dist: str, *, logger: logging.Logger) -> ArtifactRegistry:
    metadata_path = os.path.join(dist, METADATA_FILENAME)
    if not os.path.exists(metadata_path):
        logger.warning("No artifact metadata at %s; starting with an empty registry", metadata_path)
        return ArtifactRegistry()
    registry = ArtifactRegistry.load_metadata(metadata_path)
    logger.debug("Loaded %d artifacts from %s", len(registry), metadata_path)
    return registry


def run_release(
    stage_ids: Sequence[str],
    *,
    config_path: str | None = None,
    dist: str | None = None,
    tag: str = "",
    version: str | None = None,
    snapshot: bool = False,
    timeout: float | None = None,
    log_dir: str | None = None,
    logger: logging.Logger | None = None,
) -> SkipMemento:
    """
    Run `stage_ids` (in the given order) over the artifacts recorded in
    `<dist>/artifacts.json`, then write the updated registry back.

    Returns the collected skips; the first stage error propagates and nothing is
    written back.
    """

    cfg_dict, meta = load_config(config_path)
    project, warnings = Project.from_dict(cfg_dict)
    if dist:
        project.dist = dist
    if timeout is not None:
        project.publish_timeout = timeout

    if logger is None:
        logger, _ = setup_operational_logger(log_dir, generate_run_id())
    logger.debug("Config loaded (%s): %s", meta["mode"], ", ".join(meta["paths"]))
    for warning in warnings:
        logger.warning(warning)

    stages = get_stage_registry().build(stage_ids)
    registry = load_registry(project.dist, logger=logger)
    ctx = ReleaseContext.from_project(
        project,
        tag=tag,
        version=version,
        is_snapshot=snapshot,
        artifacts=registry,
        logger=logger,
    )

    skips = run_stages(stages, ctx, logger=logger)
    registry.write_metadata(os.path.join(project.dist, METADATA_FILENAME))
    return skips
