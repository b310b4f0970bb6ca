from __future__ import annotations

from functools import lru_cache

from pipekit.stage_registry import StageRegistry
from pipekit.stage_types import StageRef

from releaser.stages.checksums import ChecksumsStage
from releaser.stages.publishers import CustomPublishersStage

# Declaration order is execution order for `releaser run`.
STAGE_REFS: tuple[StageRef, ...] = (
    StageRef(
        id="checksum",
        factory=ChecksumsStage,
        doc="Write a checksum manifest over the release artifacts.",
        tags=("integrity",),
    ),
    StageRef(
        id="publish",
        factory=CustomPublishersStage,
        doc="Run the configured publisher commands once per selected artifact.",
        tags=("publish",),
    ),
)


@lru_cache(maxsize=1)
def get_stage_registry() -> StageRegistry:
    return StageRegistry.from_refs(STAGE_REFS)
