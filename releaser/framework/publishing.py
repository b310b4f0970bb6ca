"""Publisher execution engine.

Runs each configured publisher's external command once per selected artifact
(and per extra file), with a templated command line, working directory and an
explicit environment built from a fixed passthrough allow-list, the project's
env and the publisher's own env (later keys win).
"""

from __future__ import annotations

import os
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from pipekit.stage_types import SkipMemento, StageSkipped
from releaser.framework.artifacts import Artifact, ArtifactType, by_ids, by_type
from releaser.framework.config import PublisherConfig
from releaser.framework.extrafiles import find_extra_files
from releaser.framework.runtime import ReleaseContext, split_env_entry
from releaser.framework.tmpl import TemplateRenderer

# Host variables forwarded to publisher commands when set; nothing else leaks through.
PASSTHROUGH_ENV_VARS: tuple[str, ...] = (
    "HOME",
    "USER",
    "USERPROFILE",
    "TMPDIR",
    "TMP",
    "TEMP",
    "PATH",
    "SYSTEMROOT",
    "SSH_AUTH_SOCK",
)

DEFAULT_PUBLISH_TYPES: tuple[ArtifactType, ...] = (
    ArtifactType.UPLOADABLE_ARCHIVE,
    ArtifactType.UPLOADABLE_BINARY,
    ArtifactType.UPLOADABLE_SOURCE_ARCHIVE,
    ArtifactType.LINUX_PACKAGE,
    ArtifactType.DOCKER_IMAGE,
    ArtifactType.DOCKER_MANIFEST,
)

EnvLookup = Callable[[str], "str | None"]


class PublishError(RuntimeError):
    def __init__(self, program: str, returncode: int | None, stderr: str, message: str | None = None):
        self.program = program
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            if returncode is not None and returncode < 0:
                status = f"signal: {-returncode}"
            else:
                status = f"exit status {returncode}"
            message = f"publishing: {program} failed: {status}: {stderr}"
        super().__init__(message)


@dataclass(frozen=True)
class Command:
    args: tuple[str, ...]
    env: Mapping[str, str]
    dir: str | None = None

    @property
    def program(self) -> str:
        return self.args[0]


class PublisherExecutor:
    """Runs publishers; `lookup_env` is the only way host environment values get in."""

    def __init__(self, lookup_env: EnvLookup = os.environ.get):
        self.lookup_env = lookup_env

    def execute(self, ctx: ReleaseContext, publishers: Iterable[PublisherConfig]) -> None:
        """
        Run `publishers` in declaration order.

        A publisher whose `disable` renders to "true" is skipped; if every publisher
        was skipped, `StageSkipped` is raised. A `disable` template error aborts the
        whole run immediately. Any other failure stops only its own publisher; the
        remaining publishers still run and the first failure is raised at the end.
        """

        skips = SkipMemento()
        first_error: BaseException | None = None
        ran = 0
        for publisher in publishers:
            label = publisher.name or publisher.cmd or "<unnamed>"
            if TemplateRenderer(ctx).apply_bool(publisher.disable):
                ctx.logger.info("publisher %s: disabled", label)
                skips.remember(StageSkipped(f"publisher {label} is disabled"))
                continue

            ran += 1
            try:
                self.execute_publisher(ctx, publisher)
            except (ValueError, OSError, PublishError) as exc:
                ctx.logger.error("publisher %s failed: %s", label, exc)
                if first_error is None:
                    first_error = exc

        if first_error is not None:
            raise first_error
        if not ran:
            skip = skips.evaluate()
            if skip is not None:
                raise skip

    def execute_publisher(self, ctx: ReleaseContext, publisher: PublisherConfig) -> None:
        ctx.logger.debug("executing custom publisher %s", publisher.name)
        targets = self.select_targets(ctx, publisher)
        extra_files = find_extra_files(TemplateRenderer(ctx), publisher.extra_files, logger=ctx.logger)
        for name, path in extra_files.items():
            targets.append(Artifact(name=name, path=path, type=ArtifactType.UPLOADABLE_FILE))

        if not targets:
            ctx.logger.info("publisher %s: no artifacts selected", publisher.name)
            return

        first_error: BaseException | None = None
        with ThreadPoolExecutor(max_workers=max(1, ctx.parallelism)) as pool:
            futures = [pool.submit(self.publish_target, ctx, publisher, target) for target in targets]
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def select_targets(self, ctx: ReleaseContext, publisher: PublisherConfig) -> list[Artifact]:
        if publisher.ids:
            return ctx.artifacts.filter(by_ids(*publisher.ids))

        types = list(DEFAULT_PUBLISH_TYPES)
        if publisher.checksum:
            types.append(ArtifactType.CHECKSUM)
        if publisher.signature:
            types.extend((ArtifactType.SIGNATURE, ArtifactType.CERTIFICATE))
        return ctx.artifacts.filter(by_type(*types))

    def passthrough_env(self) -> dict[str, str]:
        env: dict[str, str] = {}
        for key in PASSTHROUGH_ENV_VARS:
            value = self.lookup_env(key)
            if value:
                env[key] = value
        return env

    def resolve_command(
        self, ctx: ReleaseContext, publisher: PublisherConfig, artifact: Artifact
    ) -> Command:
        renderer = TemplateRenderer(ctx).with_artifact(artifact)

        env = self.passthrough_env()
        for entry in ctx.config.env:
            if "{{" in entry:
                entry = renderer.apply(entry)
            key, value = split_env_entry(entry)
            env[key] = value
        for entry in publisher.env:
            key, value = split_env_entry(renderer.with_env(env).apply(entry))
            env.pop(key, None)
            env[key] = value

        workdir = renderer.apply(publisher.dir) if publisher.dir else None
        line = renderer.apply(publisher.cmd)
        try:
            args = shlex.split(line)
        except ValueError as exc:
            raise ValueError(f"publishing: invalid command line {line!r}: {exc}") from exc
        if not args:
            raise ValueError(f"publishing: empty command for publisher {publisher.name or '<unnamed>'}")

        return Command(args=tuple(args), env=env, dir=workdir or None)

    def publish_target(self, ctx: ReleaseContext, publisher: PublisherConfig, artifact: Artifact) -> None:
        command = self.resolve_command(ctx, publisher, artifact)
        ctx.logger.debug(
            "publishing %s with %s (dir=%s)", artifact.name, command.program, command.dir or "."
        )
        run_command(command, timeout=ctx.timeout, logger=ctx.logger)


def run_command(command: Command, *, timeout: float | None = None, logger=None) -> None:
    try:
        proc = subprocess.run(
            list(command.args),
            env=dict(command.env),
            cwd=command.dir,
            capture_output=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        stderr = _decode(exc.stderr)
        if logger:
            logger.info("%s stderr: %s", command.program, stderr)
        raise PublishError(command.program, exc.returncode, stderr) from exc
    except subprocess.TimeoutExpired as exc:
        stderr = _decode(exc.stderr)
        raise PublishError(
            command.program,
            None,
            stderr,
            f"publishing: {command.program} failed: timed out after {timeout}s: {stderr}",
        ) from exc
    except OSError as exc:
        raise PublishError(
            command.program, None, "", f"publishing: {command.program} failed: {exc}"
        ) from exc

    if logger:
        stdout = _decode(proc.stdout)
        if stdout:
            logger.debug("%s output: %s", command.program, stdout)


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return data.strip()
