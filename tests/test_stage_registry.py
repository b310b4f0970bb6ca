import logging

import pytest

from pipekit.stage_registry import StageRegistry
from pipekit.stage_types import SkipMemento, StageRef, StageSkipped, is_skip, run_stages
from releaser.stages.registry import get_stage_registry


class RecordingStage:
    def __init__(self, name: str, calls: list[str], *, skip: bool = False, outcome: Exception | None = None):
        self.name = name
        self.calls = calls
        self._skip = skip
        self._outcome = outcome

    def __str__(self) -> str:
        return self.name

    def default(self, ctx) -> None:
        self.calls.append(f"{self.name}.default")

    def skip(self, ctx) -> bool:
        self.calls.append(f"{self.name}.skip")
        return self._skip

    def run(self, ctx) -> None:
        self.calls.append(f"{self.name}.run")
        if self._outcome is not None:
            raise self._outcome


def test_run_stages_calls_default_skip_run_in_order():
    calls: list[str] = []
    stages = [RecordingStage("one", calls), RecordingStage("two", calls, skip=True), RecordingStage("three", calls)]

    skips = run_stages(stages, ctx=None, logger=logging.getLogger("test"))

    assert calls == [
        "one.default",
        "one.skip",
        "one.run",
        "two.default",
        "two.skip",
        "three.default",
        "three.skip",
        "three.run",
    ]
    assert skips.evaluate().reason == "two: disabled"


def test_run_stages_collects_raised_skips_and_continues():
    calls: list[str] = []
    stages = [
        RecordingStage("one", calls, outcome=StageSkipped("nothing to do")),
        RecordingStage("two", calls, outcome=StageSkipped("nothing to do")),
        RecordingStage("three", calls),
    ]

    skips = run_stages(stages, ctx=None)

    assert "three.run" in calls
    assert skips.reasons == ["nothing to do"]


def test_run_stages_propagates_errors():
    calls: list[str] = []
    stages = [RecordingStage("one", calls, outcome=RuntimeError("boom")), RecordingStage("two", calls)]

    with pytest.raises(RuntimeError, match="boom"):
        run_stages(stages, ctx=None)

    assert "two.default" not in calls


def test_skip_memento():
    memento = SkipMemento()
    assert not memento
    assert memento.evaluate() is None

    memento.remember(StageSkipped("a"))
    memento.remember(StageSkipped("b"))
    memento.remember(StageSkipped("a"))

    skip = memento.evaluate()
    assert memento
    assert is_skip(skip)
    assert skip.reason == "a, b"
    assert not is_skip(ValueError("x"))


def test_registry_rejects_duplicates():
    ref = StageRef(id="x", factory=lambda: RecordingStage("x", []))

    with pytest.raises(ValueError, match=r"Duplicate stage id: x"):
        StageRegistry.from_refs([ref, ref])


def test_registry_unknown_stage_suggests_close_matches():
    with pytest.raises(ValueError, match=r"Unknown stage id: checksums .*did you mean: checksum"):
        get_stage_registry().get("checksums")


def test_stage_ref_rejects_non_stage_factories():
    ref = StageRef(id="bad", factory=lambda: object())

    with pytest.raises(TypeError, match=r"Stage factory returned non-Stage \(stage=bad"):
        ref.build()


def test_release_stages_are_registered_in_execution_order():
    registry = get_stage_registry()

    assert registry.available() == ("checksum", "publish")
    stages = registry.build(["checksum", "publish"])
    assert [str(stage) for stage in stages] == ["calculating checksums", "publishing with custom publishers"]
    assert all(row["doc"] for row in registry.describe())
