"""Discover a system-installed engine through pkg-config."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from grpcsys.errors import NativeBuildError
from grpcsys.linkplan import LinkLibrary, LinkPlan, LinkSearchPath
from grpcsys.models import GRPC_VERSION


@dataclass(frozen=True, slots=True)
class PkgConfigLibrary:
    name: str
    include_paths: tuple[Path, ...] = ()
    link_paths: tuple[Path, ...] = ()
    libs: tuple[str, ...] = ()

    def link_plan(self) -> LinkPlan:
        return LinkPlan(
            search_paths=tuple(LinkSearchPath(path) for path in self.link_paths),
            libraries=tuple(LinkLibrary(lib, kind="dylib") for lib in self.libs),
        )


def probe_library(
    library: str,
    *,
    min_version: str = GRPC_VERSION,
    executable: str = "pkg-config",
) -> PkgConfigLibrary:
    if shutil.which(executable) is None:
        raise NativeBuildError(
            f"Can't find library {library} via pkg-config: `{executable}` is not in PATH.",
            hint="Install pkg-config or unset GRPCIO_SYS_USE_PKG_CONFIG to build from source.",
            context={"operation": "pkg_config", "library": library},
        )
    _run(executable, [f"--atleast-version={min_version}", library], library=library)
    cflags = shlex.split(_run(executable, ["--cflags-only-I", library], library=library))
    libs = shlex.split(_run(executable, ["--libs", library], library=library))

    include_paths = tuple(Path(flag[2:]) for flag in cflags if flag.startswith("-I"))
    link_paths = tuple(Path(flag[2:]) for flag in libs if flag.startswith("-L"))
    names = tuple(flag[2:] for flag in libs if flag.startswith("-l"))
    return PkgConfigLibrary(
        name=library,
        include_paths=include_paths,
        link_paths=link_paths,
        libs=names,
    )


def _run(executable: str, argv: list[str], *, library: str) -> str:
    command = [executable, *argv]
    completed = subprocess.run(command, capture_output=True, text=True, check=False)
    if completed.returncode != 0:
        raise NativeBuildError(
            f"Can't find library {library} via pkg-config.",
            hint=f"Install {library} >= {GRPC_VERSION} and make its .pc file discoverable.",
            context={
                "operation": "pkg_config",
                "library": library,
                "argv": " ".join(command),
                "stderr": completed.stderr.strip(),
            },
        )
    return completed.stdout.strip()
