"""Choose between checked-in and freshly generated binding files.

Targets with a checked-in declaration file reuse it unless ``UPDATE_BIND=1``
asks to refresh it in place. Every other target regenerates into ``OUT_DIR``
on each run. Consumers only see the resulting path.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from grpcsys.config import BuildEnvironment
from grpcsys.directives import Directive
from grpcsys.errors import BindingError

PREGENERATED_TARGETS = frozenset({"x86_64-unknown-linux-gnu", "aarch64-unknown-linux-gnu"})
BINDINGS_DIR = "bindings"
GENERATED_NAME = "grpc-bindings.rs"
BINDING_PATH_VAR = "BINDING_PATH"


class BindingMode(StrEnum):
    REUSE = "reuse"
    REGENERATE = "regenerate"


@dataclass(frozen=True, slots=True)
class BindingArtifact:
    path: Path
    mode: BindingMode
    regenerated: bool

    def directives(self) -> tuple[Directive, ...]:
        return (Directive("rustc-env", f"{BINDING_PATH_VAR}={self.path}"),)


def binding_mode(target: str) -> BindingMode:
    if target in PREGENERATED_TARGETS:
        return BindingMode.REUSE
    return BindingMode.REGENERATE


def pregenerated_path(manifest_dir: str | Path, target: str) -> Path:
    return Path(manifest_dir) / BINDINGS_DIR / f"{target}-bindings.rs"


def resolve_binding_path(
    env: BuildEnvironment,
    generate: Callable[[Path], Path],
) -> BindingArtifact:
    """Return the declaration file for ``env.target``, calling *generate* if needed."""
    mode = binding_mode(env.target)
    if mode is BindingMode.REUSE:
        path = pregenerated_path(env.manifest_dir, env.target)
        if env.update_bind:
            generate(path)
            return BindingArtifact(path=path, mode=mode, regenerated=True)
        if not path.is_file():
            raise BindingError(
                "Checked-in bindings are missing for this target.",
                hint="Set UPDATE_BIND=1 to generate them.",
                context={"operation": "resolve_bindings", "target": env.target, "path": str(path)},
            )
        return BindingArtifact(path=path, mode=mode, regenerated=False)

    path = env.out_dir / GENERATED_NAME
    generate(path)
    return BindingArtifact(path=path, mode=mode, regenerated=True)
