"""Binding declaration generation through a header translator."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from grpcsys.bindings.policy import BindingPolicy
from grpcsys.errors import BindingError
from grpcsys.headers import HeaderSet
from grpcsys.observability import StructuredLogger

UMBRELLA_SUFFIX = ".umbrella.h"


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    umbrella: Path
    output: Path
    include_dir: Path
    policy: BindingPolicy


class Translator(Protocol):
    name: str

    def translate(self, request: TranslationRequest) -> None:
        """Write declarations for *request.umbrella* to *request.output*."""


@dataclass(slots=True)
class BindgenTranslator:
    name: str = "bindgen"
    executable: str = "bindgen"
    extra_args: list[str] = field(default_factory=list)
    logger: StructuredLogger | None = None

    def command(self, request: TranslationRequest) -> list[str]:
        policy = request.policy
        cmd = [
            self.executable,
            str(request.umbrella),
            "--output",
            str(request.output),
            "--impl-debug",
            "--default-enum-style",
            policy.default_enum_style,
        ]
        for pattern in policy.constified_enums:
            cmd.extend(["--constified-enum-module", pattern])
        for pattern in policy.functions.allow:
            cmd.extend(["--allowlist-function", pattern])
        for pattern in policy.variables.allow:
            cmd.extend(["--allowlist-var", pattern])
        for pattern in policy.types.allow:
            cmd.extend(["--allowlist-type", pattern])
        for pattern in policy.types.deny:
            cmd.extend(["--blocklist-type", pattern])
        for pattern in policy.functions.deny:
            cmd.extend(["--blocklist-function", pattern])
        cmd.extend(self.extra_args)
        cmd.extend(["--", "-xc++", f"-I{request.include_dir}", "-std=c++11", *policy.defines])
        return cmd

    def translate(self, request: TranslationRequest) -> None:
        if shutil.which(self.executable) is None:
            raise BindingError(
                f"Generating bindings requires `{self.executable}` in PATH.",
                hint="Install bindgen-cli or build for a target with checked-in bindings.",
                context={"translator": self.name, "operation": "prepare"},
            )
        cmd = self.command(request)
        if self.logger is not None:
            self.logger.log(
                operation="translate",
                stage="bindings",
                target=None,
                message="running " + shlex.join(cmd),
            )
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise BindingError(
                "Unable to generate grpc bindings.",
                hint="Check the translator output for unparseable headers or missing symbols.",
                context={
                    "translator": self.name,
                    "operation": "translate",
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[-2000:] if result.stderr else "",
                    "command": shlex.join(cmd),
                },
            )


def umbrella_header(headers: HeaderSet, shim: Path) -> str:
    """Concatenate the scanned headers and the shim, shim last."""
    lines = [f'#include "{path.as_posix()}"' for path in headers]
    lines.append(f'#include "{shim.as_posix()}"')
    return "\n".join(lines) + "\n"


def generate_bindings(
    headers: HeaderSet,
    *,
    shim: str | Path,
    include_dir: str | Path,
    policy: BindingPolicy,
    output: str | Path,
    translator: Translator,
    work_dir: str | Path | None = None,
) -> Path:
    """Generate declarations for *headers* plus the shim into *output*.

    The umbrella header fed to the translator is written to *work_dir*,
    defaulting to the output directory.
    """
    output_path = Path(output)
    shim_path = Path(shim).resolve()
    if not shim_path.is_file():
        raise BindingError(
            "Interop shim source does not exist.",
            context={"operation": "generate_bindings", "path": str(shim_path)},
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    scratch = output_path.parent if work_dir is None else Path(work_dir)
    scratch.mkdir(parents=True, exist_ok=True)
    umbrella = scratch / (output_path.name + UMBRELLA_SUFFIX)
    umbrella.write_text(
        umbrella_header(tuple(path.resolve() for path in headers), shim_path),
        encoding="utf-8",
    )

    translator.translate(
        TranslationRequest(
            umbrella=umbrella,
            output=output_path,
            include_dir=Path(include_dir).resolve(),
            policy=policy,
        ),
    )
    if not output_path.is_file():
        raise BindingError(
            "Couldn't write bindings!",
            hint="The translator exited cleanly but produced no output file.",
            context={"translator": translator.name, "path": str(output_path)},
        )
    return output_path
