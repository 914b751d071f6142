"""Interop shim compilation into a static library."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from grpcsys.errors import NativeBuildError
from grpcsys.linkplan import LinkLibrary, LinkSearchPath
from grpcsys.observability import StructuredLogger

SHIM_SOURCE = "grpc_wrap.cc"
SHIM_LIBRARY = "grpc_wrap"


@dataclass(frozen=True, slots=True)
class ShimArtifact:
    library: str
    archive: Path

    @property
    def search_path(self) -> LinkSearchPath:
        return LinkSearchPath(self.archive.parent)

    @property
    def link_library(self) -> LinkLibrary:
        return LinkLibrary(self.library)


@dataclass(slots=True)
class ShimCompiler:
    cxx: str = "c++"
    ar: str = "ar"
    msvc: bool = False
    flags: list[str] = field(default_factory=list)
    logger: StructuredLogger | None = None

    def compile_command(
        self,
        source: Path,
        obj: Path,
        *,
        include_dirs: Sequence[Path],
        defines: Sequence[tuple[str, str | None]],
    ) -> list[str]:
        cmd = [self.cxx, "-c", str(source), "-o", str(obj)]
        if not self.msvc:
            cmd.append("-std=c++11")
        cmd.append("-Werror")
        cmd.extend(f"-I{path}" for path in include_dirs)
        for name, value in defines:
            cmd.append(f"-D{name}" if value is None else f"-D{name}={value}")
        cmd.extend(self.flags)
        return cmd

    def compile(
        self,
        source: str | Path,
        *,
        out_dir: str | Path,
        include_dirs: Sequence[Path] = (),
        defines: Sequence[tuple[str, str | None]] = (),
    ) -> ShimArtifact:
        source_path = Path(source)
        output = Path(out_dir)
        output.mkdir(parents=True, exist_ok=True)
        obj = output / f"{source_path.stem}.o"
        archive = output / f"lib{SHIM_LIBRARY}.a"

        for tool in (self.cxx, self.ar):
            if shutil.which(tool) is None:
                raise NativeBuildError(
                    f"Compiling the interop shim requires `{tool}` in PATH.",
                    hint="Install a C++ toolchain or set CXX.",
                    context={"operation": "compile_shim", "tool": tool},
                )

        self._run(
            self.compile_command(
                source_path,
                obj,
                include_dirs=include_dirs,
                defines=defines,
            ),
            operation="compile",
        )
        self._run([self.ar, "crs", str(archive), str(obj)], operation="archive")
        return ShimArtifact(library=SHIM_LIBRARY, archive=archive)

    def _run(self, cmd: list[str], *, operation: str) -> None:
        if self.logger is not None:
            self.logger.log(
                operation=operation,
                stage="shim",
                target=None,
                message="running " + " ".join(cmd),
            )
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise NativeBuildError(
                f"Interop shim {operation} failed.",
                hint="Warnings are treated as errors; check the compiler output.",
                context={
                    "operation": "compile_shim",
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[-2000:] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
