"""Reusable pipeline kernel (stage contract, templates, strict config sections).

This package is intentionally independent of `releaser.*`. Anything specific to
release artifacts (artifact types, template fields, publishers) must live in the
consuming application.
"""

from pipekit.config_namespace import ConfigNamespace
from pipekit.stage_registry import StageRegistry
from pipekit.stage_types import (
    SkipMemento,
    Stage,
    StageFactory,
    StageRef,
    StageSkipped,
    is_skip,
    run_stages,
)
from pipekit.template import BUILTIN_FUNCS, Template, TemplateError, TemplateFunc, render

__all__ = [
    "BUILTIN_FUNCS",
    "ConfigNamespace",
    "SkipMemento",
    "Stage",
    "StageFactory",
    "StageRef",
    "StageRegistry",
    "StageSkipped",
    "Template",
    "TemplateError",
    "TemplateFunc",
    "is_skip",
    "render",
    "run_stages",
]
