"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from grpcsys.bindings import TranslationRequest
from grpcsys.cmake import NativeBuildResult
from grpcsys.config import BuildEnvironment
from grpcsys.params import BuildParameters
from grpcsys.shim import SHIM_LIBRARY, ShimArtifact

SOURCE_MODULES = (
    "grpc",
    "grpc/third_party/cares/cares",
    "grpc/third_party/address_sorting",
    "grpc/third_party/abseil-cpp",
    "grpc/third_party/boringssl-with-bazel",
)


@dataclass(slots=True)
class FakeNativeBuild:
    """Records builds and writes an optional CMake cache."""

    cache_text: str | None = None
    calls: list[BuildParameters] = field(default_factory=list)
    prefix_paths: list[str | None] = field(default_factory=list)

    def build(
        self,
        params: BuildParameters,
        *,
        source_dir: str | Path,
        out_dir: str | Path,
        environ: Mapping[str, str] | None = None,
    ) -> NativeBuildResult:
        self.calls.append(params)
        self.prefix_paths.append(None if environ is None else environ.get("CMAKE_PREFIX_PATH"))
        build_dir = Path(out_dir) / "build"
        build_dir.mkdir(parents=True, exist_ok=True)
        if self.cache_text is not None:
            (build_dir / "CMakeCache.txt").write_text(self.cache_text, encoding="utf-8")
        return NativeBuildResult(out_dir=Path(out_dir), build_dir=build_dir, library=params.library)


@dataclass(slots=True)
class FakeShimCompiler:
    calls: list[tuple[tuple[str, str | None], ...]] = field(default_factory=list)

    def compile(
        self,
        source: str | Path,
        *,
        out_dir: str | Path,
        include_dirs: tuple[Path, ...] = (),
        defines: tuple[tuple[str, str | None], ...] = (),
    ) -> ShimArtifact:
        self.calls.append(tuple(defines))
        archive = Path(out_dir) / f"lib{SHIM_LIBRARY}.a"
        archive.parent.mkdir(parents=True, exist_ok=True)
        archive.write_bytes(b"!<arch>\n")
        return ShimArtifact(library=SHIM_LIBRARY, archive=archive)


@dataclass(slots=True)
class FakeTranslator:
    """Writes a deterministic declaration file derived from the umbrella header."""

    name: str = "fake"
    requests: list[TranslationRequest] = field(default_factory=list)

    def translate(self, request: TranslationRequest) -> None:
        self.requests.append(request)
        umbrella = request.umbrella.read_text(encoding="utf-8")
        request.output.write_text(
            "// generated\n" + "".join(f"// {line}\n" for line in umbrella.splitlines()),
            encoding="utf-8",
        )


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A crate root with every vendored module populated and a few headers."""
    root = tmp_path / "crate"
    for module in SOURCE_MODULES:
        path = root / module
        path.mkdir(parents=True, exist_ok=True)
        (path / "CMakeLists.txt").write_text("# vendored\n", encoding="utf-8")
    include = root / "grpc" / "include"
    (include / "grpc" / "support").mkdir(parents=True)
    (include / "grpc" / "grpc.h").write_text("GRPCAPI void grpc_init(void);\n", encoding="utf-8")
    (include / "grpc" / "support" / "log.h").write_text(
        "GPRAPI void gpr_log(const char *fmt);\n",
        encoding="utf-8",
    )
    (include / "grpc" / "impl.h").write_text("/* internal */\n", encoding="utf-8")
    (root / "grpc_wrap.cc").write_text(
        '#include <grpc/grpc.h>\nextern "C" void grpcwrap_noop() {}\n',
        encoding="utf-8",
    )
    return root


@pytest.fixture
def make_env(tmp_path: Path, source_tree: Path) -> Callable[..., BuildEnvironment]:
    def _make(**overrides: object) -> BuildEnvironment:
        values: dict[str, object] = {
            "target": "x86_64-unknown-linux-gnu",
            "profile": "debug",
            "out_dir": tmp_path / "out",
            "manifest_dir": source_tree,
            "target_os": "linux",
            "target_env": "gnu",
            "zlib_root": tmp_path / "zlib",
        }
        values.update(overrides)
        return BuildEnvironment(**values)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def fake_native_build() -> FakeNativeBuild:
    return FakeNativeBuild()


@pytest.fixture
def fake_shim_compiler() -> FakeShimCompiler:
    return FakeShimCompiler()


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()
