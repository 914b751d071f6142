"""Make the zlib dependency's output layout discoverable by CMake.

CMake's FindZLIB expects ``libz.a`` under ``<root>/lib`` but the zlib build
places it under ``<root>/build``. The actual directory is appended to
``CMAKE_PREFIX_PATH`` while the native build runs, followed by the root of
every registered dependency.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping, Sequence
from contextlib import contextmanager
from pathlib import Path

PREFIX_PATH_VAR = "CMAKE_PREFIX_PATH"
PREFIX_PATH_SEPARATOR = ";"


def zlib_link_dirs(zlib_root: str | Path) -> tuple[Path, Path]:
    """Directories searched for ``libz.a``; linked explicitly to avoid the system zlib."""
    root = Path(zlib_root)
    return (root / "build", root / "lib")


def reconciled_prefix_path(existing: str | None, zlib_root: str | Path) -> str:
    entry = str(Path(zlib_root) / "build")
    if existing:
        return f"{existing}{PREFIX_PATH_SEPARATOR}{entry}"
    return entry


@contextmanager
def patched_prefix_path(
    environ: MutableMapping[str, str],
    zlib_root: str | Path,
    dependency_roots: Sequence[str | Path] = (),
    *,
    base: str | None = None,
) -> Iterator[str]:
    """Set ``CMAKE_PREFIX_PATH`` in *environ* for the block.

    The value starts from *base*, the prefix path captured in the build
    environment, never from whatever *environ* currently holds. The zlib
    build dir follows, then each dependency root. The previous value of
    *environ* is restored on exit, including when the block raises.
    """
    previous = environ.get(PREFIX_PATH_VAR)
    value = reconciled_prefix_path(base, zlib_root)
    for root in dependency_roots:
        value = f"{value}{PREFIX_PATH_SEPARATOR}{root}"
    environ[PREFIX_PATH_VAR] = value
    try:
        yield value
    finally:
        if previous is None:
            environ.pop(PREFIX_PATH_VAR, None)
        else:
            environ[PREFIX_PATH_VAR] = previous
