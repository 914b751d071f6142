"""Native engine build via CMake.

Configures the vendored engine in ``<out>/build`` and builds only the
requested library target. Both steps are blocking subprocesses; any
non-zero exit is fatal and never retried.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from grpcsys.errors import NativeBuildError
from grpcsys.observability import StructuredLogger
from grpcsys.params import BuildParameters


@dataclass(frozen=True, slots=True)
class NativeBuildResult:
    out_dir: Path
    build_dir: Path
    library: str

    @property
    def cache_path(self) -> Path:
        return self.build_dir / "CMakeCache.txt"


@dataclass(slots=True)
class CMakeBuild:
    name: str = "cmake"
    cmake: str = "cmake"
    jobs: int | None = None
    extra_args: list[str] = field(default_factory=list)
    logger: StructuredLogger | None = None

    def configure_command(
        self,
        params: BuildParameters,
        *,
        source_dir: Path,
        out_dir: Path,
    ) -> list[str]:
        cmd = [
            self.cmake,
            str(source_dir),
            f"-DCMAKE_INSTALL_PREFIX={out_dir}",
            f"-DCMAKE_BUILD_TYPE={params.build_type}",
        ]
        for key, value in params.defines:
            cmd.append(f"-D{key}={value}")
        if params.cflags:
            cmd.append(f"-DCMAKE_C_FLAGS={' '.join(params.cflags)}")
        if params.cxxflags:
            cmd.append(f"-DCMAKE_CXX_FLAGS={' '.join(params.cxxflags)}")
        if params.cmake_target:
            cmd.append(f"-DCMAKE_C_COMPILER_TARGET={params.cmake_target}")
            cmd.append(f"-DCMAKE_CXX_COMPILER_TARGET={params.cmake_target}")
        cmd.extend(self.extra_args)
        return cmd

    def build_command(self, params: BuildParameters, *, build_dir: Path) -> list[str]:
        cmd = [
            self.cmake,
            "--build",
            str(build_dir),
            "--target",
            params.library,
            "--config",
            params.build_type,
        ]
        if self.jobs is not None:
            cmd.extend(["--parallel", str(self.jobs)])
        return cmd

    def build(
        self,
        params: BuildParameters,
        *,
        source_dir: str | Path,
        out_dir: str | Path,
        environ: Mapping[str, str] | None = None,
    ) -> NativeBuildResult:
        self._ensure_prerequisites()
        source = Path(source_dir).resolve()
        out = Path(out_dir)
        build_dir = out / "build"
        build_dir.mkdir(parents=True, exist_ok=True)
        env = dict(os.environ if environ is None else environ)

        self._run(
            self.configure_command(params, source_dir=source, out_dir=out),
            cwd=build_dir,
            env=env,
            operation="configure",
        )
        self._run(
            self.build_command(params, build_dir=build_dir),
            cwd=build_dir,
            env=env,
            operation="build",
        )
        return NativeBuildResult(out_dir=out, build_dir=build_dir, library=params.library)

    def _run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: dict[str, str],
        operation: str,
    ) -> None:
        if self.logger is not None:
            self.logger.log(
                operation=operation,
                stage="native_build",
                target=None,
                message="running " + " ".join(cmd),
            )
        result = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise NativeBuildError(
                f"cmake {operation} failed.",
                hint="Check the cmake output for details.",
                context={
                    "backend": self.name,
                    "operation": operation,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[-2000:] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )

    def _ensure_prerequisites(self) -> None:
        if shutil.which(self.cmake) is None:
            raise NativeBuildError(
                f"Building the engine requires `{self.cmake}` in PATH.",
                hint="Install CMake or set GRPCIO_SYS_USE_PKG_CONFIG=1 to use a system library.",
                context={"backend": self.name, "operation": "prepare"},
            )
