"""Vendored source module presence checks."""

from __future__ import annotations

import os
from pathlib import Path

from grpcsys.errors import MissingModuleError
from grpcsys.models import FeatureSet

BASE_MODULES = (
    "grpc",
    "grpc/third_party/cares/cares",
    "grpc/third_party/address_sorting",
    "grpc/third_party/abseil-cpp",
)
BORINGSSL_MODULE = "grpc/third_party/boringssl-with-bazel"

FETCH_HINT = "Run `git submodule update --init --recursive` first to build the project."


def required_modules(features: FeatureSet) -> tuple[str, ...]:
    if features.secure and not features.openssl:
        return (*BASE_MODULES, BORINGSSL_MODULE)
    return BASE_MODULES


def verify_modules(source_root: str | Path, features: FeatureSet) -> tuple[Path, ...]:
    """Ensure every required module directory exists and is non-empty."""
    root = Path(source_root)
    verified: list[Path] = []
    for module in required_modules(features):
        path = root / module
        if _is_directory_empty(path):
            raise MissingModuleError(
                f"Can't find module {module}.",
                hint=FETCH_HINT,
                context={"operation": "verify_modules", "module": module, "path": str(path)},
            )
        verified.append(path)
    return tuple(verified)


def _is_directory_empty(path: Path) -> bool:
    # Missing or unreadable directories count as empty.
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError:
        return True
