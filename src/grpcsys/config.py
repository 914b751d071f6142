"""Build-time environment captured once per pipeline run.

Every stage receives the :class:`BuildEnvironment` built here instead of
reading ``os.environ`` on its own, so the pipeline can run against an
arbitrary mapping in tests.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import get_args

from grpcsys.errors import ConfigurationError
from grpcsys.models import BuildTarget, Profile

# Variables whose change must rerun the build script.
WATCHED_VARIABLES = (
    "UPDATE_BIND",
    "CARGO_CFG_TARGET_OS",
    "CXX",
    "GRPCIO_SYS_USE_PKG_CONFIG",
)


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    target: str
    profile: Profile
    out_dir: Path
    manifest_dir: Path
    target_os: str = ""
    target_env: str = ""
    cxx: str | None = None
    cmake_target_override: str | None = None
    cmake_prefix_path: str | None = None
    zlib_root: Path | None = None
    openssl_root: Path | None = None
    update_bind: bool = False
    use_pkg_config: bool = False

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> BuildEnvironment:
        source = os.environ if environ is None else environ
        profile = _required(source, "PROFILE")
        if profile not in get_args(Profile):
            raise ConfigurationError(
                f"Unsupported build profile `{profile}`.",
                hint="PROFILE must be one of debug, release, bench.",
                context={"operation": "environment", "variable": "PROFILE"},
            )
        zlib_root = _optional(source, "DEP_Z_ROOT")
        openssl_root = _optional(source, "DEP_OPENSSL_ROOT")
        return cls(
            target=_required(source, "TARGET"),
            profile=profile,  # type: ignore[arg-type]
            out_dir=Path(_required(source, "OUT_DIR")),
            manifest_dir=Path(_required(source, "CARGO_MANIFEST_DIR")),
            target_os=_optional(source, "CARGO_CFG_TARGET_OS") or "",
            target_env=_optional(source, "CARGO_CFG_TARGET_ENV") or "",
            cxx=_optional(source, "CXX"),
            cmake_target_override=_optional(source, "CMAKE_TARGET_OVERRIDE"),
            cmake_prefix_path=_optional(source, "CMAKE_PREFIX_PATH"),
            zlib_root=Path(zlib_root) if zlib_root else None,
            openssl_root=Path(openssl_root) if openssl_root else None,
            update_bind=_optional(source, "UPDATE_BIND") == "1",
            use_pkg_config=_optional(source, "GRPCIO_SYS_USE_PKG_CONFIG") == "1",
        )

    @property
    def build_target(self) -> BuildTarget:
        return BuildTarget(
            triple=self.target,
            os=self.target_os,
            env=self.target_env,
            profile=self.profile,
        )

    def require_zlib_root(self) -> Path:
        if self.zlib_root is None:
            raise ConfigurationError(
                "Environment variable `DEP_Z_ROOT` is required to build from source.",
                hint="Build through the zlib dependency so its output root is exported.",
                context={"operation": "environment", "variable": "DEP_Z_ROOT"},
            )
        return self.zlib_root

    def dependency_roots(self, names: tuple[str, ...]) -> tuple[Path, ...]:
        """Map registered dependencies to their exported ``DEP_<NAME>_ROOT``.

        Dependencies whose root was not exported are skipped.
        """
        known = {"Z": self.zlib_root, "OPENSSL": self.openssl_root}
        roots: list[Path] = []
        for name in names:
            root = known.get(name)
            if root is not None:
                roots.append(root)
        return tuple(roots)


def _optional(source: Mapping[str, str], name: str) -> str | None:
    value = source.get(name)
    if value is None:
        return None
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ConfigurationError(
            f"Environment variable `{name}` is not valid unicode.",
            context={"operation": "environment", "variable": name},
        ) from exc
    return value


def _required(source: Mapping[str, str], name: str) -> str:
    value = _optional(source, name)
    if value is None:
        raise ConfigurationError(
            f"Environment variable `{name}` is required.",
            hint="Run the build script from the enclosing build tool, which exports it.",
            context={"operation": "environment", "variable": name},
        )
    return value
