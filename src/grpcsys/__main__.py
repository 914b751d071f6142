"""CLI for the engine build script.

Usage:
    python -m grpcsys build --features secure,openssl
    python -m grpcsys check-modules --features secure
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from grpcsys.config import BuildEnvironment
from grpcsys.errors import GrpcSysError
from grpcsys.models import FeatureSet
from grpcsys.modules import verify_modules
from grpcsys.observability import StructuredLogger
from grpcsys.pipeline import run_pipeline


def _features(raw: str) -> FeatureSet:
    return FeatureSet.from_names(raw.split(","))


def cmd_build(args: argparse.Namespace) -> None:
    env = BuildEnvironment.from_environ()
    logger = StructuredLogger()
    try:
        result = run_pipeline(
            env,
            _features(args.features),
            source_root=args.source_root,
            logger=logger,
        )
    finally:
        if args.log_json is not None:
            logger.to_json_lines(args.log_json)
    if args.link_plan_json is not None:
        result.link_plan.to_json(args.link_plan_json)
    sys.stdout.write(result.render())


def cmd_check_modules(args: argparse.Namespace) -> None:
    root = args.source_root if args.source_root is not None else Path.cwd()
    for path in verify_modules(root, _features(args.features)):
        print(path)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build the vendored gRPC engine and bindings")
    sub = parser.add_subparsers(dest="command", required=True)

    build_p = sub.add_parser("build", help="Run the full pipeline and print build directives")
    build_p.add_argument("--features", default="", help="Comma-separated feature names")
    build_p.add_argument("--source-root", type=Path, default=None, help="Crate root directory")
    build_p.add_argument("--log-json", type=Path, default=None, help="Write JSON-lines log here")
    build_p.add_argument(
        "--link-plan-json",
        type=Path,
        default=None,
        help="Write the canonical link plan here",
    )

    check_p = sub.add_parser("check-modules", help="Verify vendored modules are checked out")
    check_p.add_argument("--features", default="", help="Comma-separated feature names")
    check_p.add_argument("--source-root", type=Path, default=None, help="Crate root directory")

    args = parser.parse_args(argv)
    try:
        if args.command == "build":
            cmd_build(args)
        elif args.command == "check-modules":
            cmd_check_modules(args)
    except GrpcSysError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
