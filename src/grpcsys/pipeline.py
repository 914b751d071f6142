"""Sequential build pipeline: native build, link plan, shim and bindings.

Stages run strictly in order and each one's output is the next one's
precondition. Any error aborts the run before later stages start.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from grpcsys.bindings import (
    BindgenTranslator,
    BindingArtifact,
    BindingMode,
    Translator,
    default_policy,
    generate_bindings,
    resolve_binding_path,
)
from grpcsys.cmake import CMakeBuild, NativeBuildResult
from grpcsys.config import WATCHED_VARIABLES, BuildEnvironment
from grpcsys.directives import Directive, render_directives
from grpcsys.headers import scan_headers
from grpcsys.linkplan import LinkPlan, assemble_link_plan
from grpcsys.models import FeatureSet
from grpcsys.modules import verify_modules
from grpcsys.observability import StructuredLogger
from grpcsys.params import BuildParameters, derive_parameters
from grpcsys.pkgconfig import PkgConfigLibrary, probe_library
from grpcsys.shim import SHIM_SOURCE, ShimArtifact, ShimCompiler
from grpcsys.ssl import locate
from grpcsys.zlib import patched_prefix_path, zlib_link_dirs

ENGINE_DIR = "grpc"
INCLUDE_DIR = "grpc/include"


class NativeBuilder(Protocol):
    def build(
        self,
        params: BuildParameters,
        *,
        source_dir: str | Path,
        out_dir: str | Path,
        environ: Mapping[str, str] | None = None,
    ) -> NativeBuildResult:
        """Build the engine library named by *params*."""


class Compiler(Protocol):
    def compile(
        self,
        source: str | Path,
        *,
        out_dir: str | Path,
        include_dirs: tuple[Path, ...] = (),
        defines: tuple[tuple[str, str | None], ...] = (),
    ) -> ShimArtifact:
        """Compile the interop shim into a static archive."""


@dataclass(frozen=True, slots=True)
class PipelineResult:
    params: BuildParameters
    link_plan: LinkPlan
    binding: BindingArtifact
    shim: ShimArtifact
    directives: tuple[Directive, ...] = field(default=())

    def render(self) -> str:
        return render_directives(self.directives)


def run_pipeline(
    env: BuildEnvironment,
    features: FeatureSet,
    *,
    source_root: str | Path | None = None,
    native_build: NativeBuilder | None = None,
    shim_compiler: Compiler | None = None,
    translator: Translator | None = None,
    probe: Callable[[str], PkgConfigLibrary] = probe_library,
    environ: MutableMapping[str, str] | None = None,
    logger: StructuredLogger | None = None,
) -> PipelineResult:
    root = Path(source_root) if source_root is not None else env.manifest_dir
    log = logger if logger is not None else StructuredLogger()
    builder = native_build if native_build is not None else CMakeBuild(logger=log)
    compiler = shim_compiler
    if compiler is None:
        compiler = ShimCompiler(cxx=env.cxx or "c++", msvc=env.target_env == "msvc", logger=log)
    bindgen = translator if translator is not None else BindgenTranslator(logger=log)
    build_environ = os.environ if environ is None else environ

    def _log(stage: str, message: str, **extra: object) -> None:
        log.log(
            operation="run_pipeline",
            stage=stage,
            target=env.target,
            message=message,
            extra=dict(extra) if extra else None,
        )

    params = derive_parameters(env, features)
    _log(
        "parameters",
        f"building {params.library}",
        platform=params.platform.family.value,
        features=list(features.names()),
    )

    if env.use_pkg_config:
        library = probe(params.library)
        _log("pkg_config", f"using system {params.library}", libs=list(library.libs))
        plan = library.link_plan()
        include_dirs = library.include_paths
    else:
        verified = verify_modules(root, features)
        _log("modules", "vendored modules present", modules=[str(path) for path in verified])

        zlib_root = env.require_zlib_root()
        with patched_prefix_path(
            build_environ,
            zlib_root,
            env.dependency_roots(params.registered_deps),
            base=env.cmake_prefix_path,
        ) as prefix_path:
            _log("native_build", "configuring engine", prefix_path=prefix_path)
            result = builder.build(
                params,
                source_dir=root / ENGINE_DIR,
                out_dir=env.out_dir,
                environ=build_environ,
            )
        _log("native_build", "engine built", build_dir=str(result.build_dir))

        ssl = None
        if features.external_crypto:
            ssl = locate(result.cache_path)
            _log("ssl", "located system OpenSSL", crypto=str(ssl.crypto_dir), ssl=str(ssl.ssl_dir))

        plan = assemble_link_plan(
            result.build_dir,
            params,
            zlib_dirs=zlib_link_dirs(zlib_root),
            ssl=ssl,
            vendored_crypto=features.secure and not features.external_crypto,
        )
        include_dirs = (root / INCLUDE_DIR,)
    _log("link_plan", "link plan assembled", libraries=list(plan.static_libraries()))

    shim = compiler.compile(
        root / SHIM_SOURCE,
        out_dir=env.out_dir,
        include_dirs=tuple(include_dirs),
        defines=params.shim_defines,
    )
    # The shim depends on the engine, so it goes ahead of it in link order.
    plan = LinkPlan(
        search_paths=(*plan.search_paths, shim.search_path),
        libraries=(shim.link_library, *plan.libraries),
    )
    _log("shim", "interop shim compiled", archive=str(shim.archive))

    def _generate(output: Path) -> Path:
        headers = scan_headers(root / INCLUDE_DIR)
        _log("headers", f"found {len(headers)} public headers")
        return generate_bindings(
            headers,
            shim=root / SHIM_SOURCE,
            include_dir=root / INCLUDE_DIR,
            policy=default_policy(params),
            output=output,
            translator=bindgen,
            work_dir=env.out_dir,
        )

    binding = resolve_binding_path(env, _generate)
    _log(
        "bindings",
        "binding file ready",
        path=str(binding.path),
        mode=binding.mode.value,
        regenerated=binding.regenerated,
    )

    directives: list[Directive] = [
        Directive("rerun-if-changed", SHIM_SOURCE),
        Directive("rerun-if-changed", ENGINE_DIR),
    ]
    directives.extend(Directive("rerun-if-env-changed", name) for name in WATCHED_VARIABLES)
    if binding.mode is BindingMode.REUSE:
        # Only watch the checked-in file when it is expected to exist.
        directives.append(Directive("rerun-if-changed", str(binding.path)))
    directives.extend(plan.directives())
    directives.extend(binding.directives())

    return PipelineResult(
        params=params,
        link_plan=plan,
        binding=binding,
        shim=shim,
        directives=tuple(directives),
    )
