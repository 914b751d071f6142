"""Public API header discovery."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from grpcsys.errors import HeaderScanError

API_MARKERS = ("GRPCAPI", "GPRAPI")

HeaderSet = tuple[Path, ...]


def scan_headers(include_dir: str | Path, markers: Sequence[str] = API_MARKERS) -> HeaderSet:
    """Return every file under *include_dir* that declares public API.

    The result is sorted and duplicate-free so generated bindings are stable
    across runs and platforms.
    """
    root = Path(include_dir)
    if not root.is_dir():
        raise HeaderScanError(
            "Header include directory does not exist.",
            hint="Ensure the engine sources are checked out.",
            context={"operation": "scan_headers", "path": str(root)},
        )

    def _raise_walk_error(exc: OSError) -> None:
        raise HeaderScanError(
            "Error happened when searching headers.",
            context={"operation": "scan_headers", "path": str(exc.filename or root)},
        ) from exc

    matched: set[Path] = set()
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        for filename in filenames:
            path = Path(dirpath) / filename
            # Links are not followed, even when they point at a header.
            if path.is_symlink() or not path.is_file():
                continue
            if _declares_api(path, markers):
                matched.add(path)
    return tuple(sorted(matched, key=lambda p: p.as_posix()))


def _declares_api(path: Path, markers: Sequence[str]) -> bool:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise HeaderScanError(
            "Couldn't read header content.",
            hint="Headers must be readable UTF-8 text.",
            context={"operation": "scan_headers", "path": str(path)},
        ) from exc
    return any(marker in content for marker in markers)
