"""Ordered link plan for the engine's static libraries."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import cbor2

from grpcsys.directives import Directive
from grpcsys.params import BuildParameters
from grpcsys.ssl import SslLocation

LinkKind = Literal["static", "dylib", "framework"]

# Order matters: a static library only resolves symbols from libraries after it.
ENGINE_DEPENDENCIES: tuple[str, ...] = (
    "z",
    "cares",
    "address_sorting",
    # absl/base
    "absl_base",
    "absl_raw_logging_internal",
    "absl_dynamic_annotations",
    "absl_throw_delegate",
    "absl_log_severity",
    "absl_spinlock_wait",
    # absl/strings
    "absl_strings",
    "absl_strings_internal",
    "absl_str_format_internal",
    # absl/time
    "absl_civil_time",
    "absl_time_zone",
    "absl_time",
    # absl/types
    "absl_bad_optional_access",
    # absl/numeric
    "absl_int128",
    "gpr",
    "upb",
)
CRYPTO_LIBRARIES = ("ssl", "crypto")


@dataclass(frozen=True, slots=True)
class LinkSearchPath:
    path: Path
    profile_scoped: bool = False


@dataclass(frozen=True, slots=True)
class LinkLibrary:
    name: str
    kind: LinkKind = "static"


@dataclass(frozen=True, slots=True)
class LinkPlan:
    search_paths: tuple[LinkSearchPath, ...]
    libraries: tuple[LinkLibrary, ...]

    def extend(
        self,
        *,
        search_paths: tuple[LinkSearchPath, ...] = (),
        libraries: tuple[LinkLibrary, ...] = (),
    ) -> LinkPlan:
        return LinkPlan(
            search_paths=self.search_paths + search_paths,
            libraries=self.libraries + libraries,
        )

    def static_libraries(self) -> tuple[str, ...]:
        return tuple(lib.name for lib in self.libraries if lib.kind == "static")

    def directives(self) -> tuple[Directive, ...]:
        """Render search paths first, then libraries in link order."""
        rendered = [
            Directive("rustc-link-search", f"native={entry.path}") for entry in self.search_paths
        ]
        for lib in self.libraries:
            if lib.kind == "dylib":
                rendered.append(Directive("rustc-link-lib", lib.name))
            else:
                rendered.append(Directive("rustc-link-lib", f"{lib.kind}={lib.name}"))
        return tuple(rendered)

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "search_paths": [
                {"path": str(entry.path), "profile_scoped": entry.profile_scoped}
                for entry in self.search_paths
            ],
            "libraries": [{"name": lib.name, "kind": lib.kind} for lib in self.libraries],
        }


def assemble_link_plan(
    build_dir: str | Path,
    params: BuildParameters,
    *,
    zlib_dirs: Sequence[str | Path] = (),
    ssl: SslLocation | None = None,
    vendored_crypto: bool = False,
) -> LinkPlan:
    """Assemble the link plan for a source build rooted at *build_dir*.

    ``ssl`` links the system OpenSSL found by :func:`grpcsys.ssl.locate`;
    ``vendored_crypto`` links the ssl/crypto archives produced by the
    native build. At most one of them applies.
    """
    build = Path(build_dir)
    search = [LinkSearchPath(Path(path)) for path in zlib_dirs]

    if params.platform.family.profile_scoped:
        profile = params.build_type
        search.append(LinkSearchPath(build / profile, profile_scoped=True))
        for rel in params.third_party_dirs:
            search.append(
                LinkSearchPath(build / "third_party" / rel / profile, profile_scoped=True),
            )
    else:
        search.append(LinkSearchPath(build))
        for rel in params.third_party_dirs:
            search.append(LinkSearchPath(build / "third_party" / rel))

    libraries = [LinkLibrary(name) for name in ENGINE_DEPENDENCIES]
    libraries.append(LinkLibrary(params.library))

    if ssl is not None:
        search.extend(LinkSearchPath(path) for path in ssl.search_paths())
        libraries.extend(LinkLibrary(name, kind="dylib") for name in CRYPTO_LIBRARIES)
    elif vendored_crypto:
        libraries.extend(LinkLibrary(name) for name in CRYPTO_LIBRARIES)

    libraries.extend(LinkLibrary(name, kind="framework") for name in params.frameworks)
    return LinkPlan(search_paths=tuple(search), libraries=tuple(libraries))
