from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="releaser", add_help=True)
    parser.add_argument("--config", default=None, help="Path to the release config (YAML)")
    parser.add_argument("--dist", default=None, help="Override the dist directory")
    parser.add_argument("--tag", default="", help="Release tag, e.g. v1.2.3")
    parser.add_argument("--version", dest="release_version", default=None, help="Release version")
    parser.add_argument("--snapshot", action="store_true", help="Mark the run as a snapshot")
    parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds before a publisher command is killed"
    )
    parser.add_argument("--log-dir", default=None, help="Write a DEBUG operational log here")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("checksum", help="Write the checksum manifest")
    sub.add_parser("publish", help="Run the custom publishers")
    sub.add_parser("run", help="Checksum, then publish")
    sub.add_parser("list-stages", help="List available stages")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    if args.command == "list-stages":
        from .stages.registry import get_stage_registry

        for row in get_stage_registry().describe():
            print(f"{row['stage_id']}: {row['doc']}")
        return 0

    stage_ids = {
        "checksum": ["checksum"],
        "publish": ["publish"],
        "run": ["checksum", "publish"],
    }.get(args.command)
    if stage_ids is None:
        raise AssertionError(f"Unhandled command: {args.command}")

    from pipekit.template import TemplateError

    from .app.release import run_release
    from .framework.publishing import PublishError

    try:
        skips = run_release(
            stage_ids,
            config_path=args.config,
            dist=args.dist,
            tag=args.tag,
            version=args.release_version,
            snapshot=args.snapshot,
            timeout=args.timeout,
            log_dir=args.log_dir,
        )
    except (OSError, ValueError, TemplateError, PublishError) as exc:
        print(f"releaser: {exc}", file=sys.stderr)
        return 1

    skip = skips.evaluate()
    if skip is not None:
        print(f"releaser: skipped: {skip.reason}", file=sys.stderr)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
