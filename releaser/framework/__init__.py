"""Release framework: config, run context, artifacts, templates, extra files, publishing.

For reusable, project-agnostic pipeline primitives, use `pipekit`.
"""
