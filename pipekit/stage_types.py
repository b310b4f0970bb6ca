from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Protocol, runtime_checkable


class StageSkipped(Exception):
    """Signal that a stage (or part of one) intentionally did no work.

    Schedulers treat this as success-with-no-op: distinct from success with side
    effects and from failure.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def is_skip(exc: BaseException | None) -> bool:
    return isinstance(exc, StageSkipped)


@dataclass
class SkipMemento:
    """Collects skip reasons so several skips can be reported as one."""

    reasons: list[str] = field(default_factory=list)

    def remember(self, exc: StageSkipped) -> None:
        if exc.reason and exc.reason not in self.reasons:
            self.reasons.append(exc.reason)

    def __bool__(self) -> bool:
        return bool(self.reasons)

    def evaluate(self) -> StageSkipped | None:
        if not self.reasons:
            return None
        return StageSkipped(", ".join(self.reasons))


@runtime_checkable
class Stage(Protocol):
    """Four-call contract every pipeline stage implements.

    `default(ctx)` fills unset configuration, `skip(ctx)` decides whether the stage
    applies at all, `run(ctx)` does the work (raising on failure or raising
    `StageSkipped`), and `str(stage)` is the human description.
    """

    def default(self, ctx: Any) -> None:
        ...

    def skip(self, ctx: Any) -> bool:
        ...

    def run(self, ctx: Any) -> None:
        ...

    def __str__(self) -> str:
        ...


StageFactory = Callable[[], Stage]


@dataclass(frozen=True)
class StageRef:
    id: str
    factory: StageFactory
    doc: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise TypeError("StageRef.id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())

        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("StageRef.doc must be a non-empty string or None")

        if self.tags:
            object.__setattr__(
                self, "tags", tuple(str(tag).strip() for tag in self.tags if str(tag).strip())
            )

    def build(self) -> Stage:
        stage = self.factory()
        if not isinstance(stage, Stage):
            raise TypeError(
                f"Stage factory returned non-Stage (stage={self.id}, type={type(stage).__name__})"
            )
        return stage


def run_stages(stages: Iterable[Stage], ctx: Any, *, logger: Any = None) -> SkipMemento:
    """Run `default`, `skip`, `run` on each stage in order.

    Skips (both `skip(ctx)` and a raised `StageSkipped`) are collected and returned;
    the first real error propagates and stops the run.
    """

    skips = SkipMemento()
    for stage in stages:
        stage.default(ctx)
        if stage.skip(ctx):
            if logger:
                logger.info("%s: skipped", stage)
            skips.remember(StageSkipped(f"{stage}: disabled"))
            continue
        if logger:
            logger.info("%s", stage)
        try:
            stage.run(ctx)
        except StageSkipped as exc:
            if logger:
                logger.info("%s: skipped: %s", stage, exc.reason)
            skips.remember(exc)
    return skips
