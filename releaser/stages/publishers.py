from __future__ import annotations

from releaser.framework.publishing import PublisherExecutor
from releaser.framework.runtime import ReleaseContext


class CustomPublishersStage:
    """Hands the registry's artifacts to the user-defined publisher commands."""

    def __init__(self, executor: PublisherExecutor | None = None):
        self.executor = executor or PublisherExecutor()

    def __str__(self) -> str:
        return "publishing with custom publishers"

    def default(self, ctx: ReleaseContext) -> None:
        for idx, publisher in enumerate(ctx.config.publishers):
            if not publisher.name:
                publisher.name = f"publisher-{idx}"

    def skip(self, ctx: ReleaseContext) -> bool:
        return not ctx.config.publishers

    def run(self, ctx: ReleaseContext) -> None:
        self.executor.execute(ctx, ctx.config.publishers)
