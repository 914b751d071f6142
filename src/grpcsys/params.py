"""Derive native build parameters from the target and feature selection.

Platform branching is resolved once into a :class:`Platform` value. Every
later stage reads the resulting :class:`BuildParameters` instead of
re-inspecting the target triple.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from grpcsys.config import BuildEnvironment
from grpcsys.models import FeatureSet


class PlatformFamily(StrEnum):
    WINDOWS = "windows"
    MACOS = "macos"
    IOS = "ios"
    LINUX = "linux"
    OTHER = "other"

    @property
    def profile_scoped(self) -> bool:
        """Multi-config generators place outputs under a per-profile directory."""
        return self is PlatformFamily.WINDOWS

    @property
    def apple(self) -> bool:
        return self in (PlatformFamily.MACOS, PlatformFamily.IOS)


@dataclass(frozen=True, slots=True)
class CrossTarget:
    sysroot: str
    arch: str


@dataclass(frozen=True, slots=True)
class Platform:
    family: PlatformFamily
    cross: CrossTarget | None = None


IOS_CROSS_TARGETS: dict[str, CrossTarget] = {
    "aarch64-apple-ios": CrossTarget(sysroot="iphoneos", arch="arm64"),
    "armv7-apple-ios": CrossTarget(sysroot="iphoneos", arch="armv7"),
    "armv7s-apple-ios": CrossTarget(sysroot="iphoneos", arch="armv7s"),
    "i386-apple-ios": CrossTarget(sysroot="iphonesimulator", arch="i386"),
    "x86_64-apple-ios": CrossTarget(sysroot="iphonesimulator", arch="x86_64"),
}

THIRD_PARTY_DIRS = (
    "cares/cares/lib",
    "abseil-cpp/absl/strings",
    "abseil-cpp/absl/time",
    "abseil-cpp/absl/base",
    "abseil-cpp/absl/types",
    "abseil-cpp/absl/numeric",
)
BORINGSSL_DIR = "boringssl-with-bazel"

# Only the core library is needed; install, C#, codegen and benchmark targets are off.
BASE_DEFINES: tuple[tuple[str, str], ...] = (
    ("gRPC_INSTALL", "false"),
    ("gRPC_BUILD_CSHARP_EXT", "false"),
    ("gRPC_BUILD_CODEGEN", "false"),
    ("gRPC_BENCHMARK_PROVIDER", "none"),
)

MUSL_FALLBACK_CXX = "g++"
WIN32_WINNT = "0x600"
FRAME_POINTER_FLAG = "-fno-omit-frame-pointer"


@dataclass(frozen=True, slots=True)
class BuildParameters:
    library: str
    platform: Platform
    build_type: str
    defines: tuple[tuple[str, str], ...]
    cflags: tuple[str, ...] = ()
    cxxflags: tuple[str, ...] = ()
    frameworks: tuple[str, ...] = ()
    third_party_dirs: tuple[str, ...] = THIRD_PARTY_DIRS
    registered_deps: tuple[str, ...] = ()
    cmake_target: str | None = None
    shim_defines: tuple[tuple[str, str | None], ...] = ()

    @property
    def clang_args(self) -> tuple[str, ...]:
        """Preprocessor defines passed to the header translator."""
        args: list[str] = []
        for name, value in self.shim_defines:
            args.append(f"-D{name}" if value is None else f"-D{name}={value}")
        return tuple(args)

    def define(self, name: str) -> str | None:
        for key, value in self.defines:
            if key == name:
                return value
        return None


def resolve_platform(triple: str, target_os: str) -> Platform:
    """Resolve a target triple and OS into the closed platform variant set."""
    cross = IOS_CROSS_TARGETS.get(triple)
    try:
        family = PlatformFamily(target_os)
    except ValueError:
        family = PlatformFamily.OTHER
    if cross is not None:
        family = PlatformFamily.IOS
    return Platform(family=family, cross=cross)


def library_name(features: FeatureSet) -> str:
    return "grpc" if features.secure else "grpc_unsecure"


def derive_parameters(env: BuildEnvironment, features: FeatureSet) -> BuildParameters:
    platform = resolve_platform(env.target, env.target_os)
    target = env.build_target

    defines: list[tuple[str, str]] = []
    cflags: list[str] = []
    cxxflags: list[str] = []
    frameworks: list[str] = []
    third_party = list(THIRD_PARTY_DIRS)
    registered = ["Z"]
    shim_defines: list[tuple[str, str | None]] = []

    if platform.family is PlatformFamily.MACOS:
        cxxflags.append("-stdlib=libc++")
    if platform.family.apple:
        frameworks.append("CoreFoundation")

    if env.cxx:
        defines.append(("CMAKE_CXX_COMPILER", env.cxx))
    elif env.target_env == "musl":
        defines.append(("CMAKE_CXX_COMPILER", MUSL_FALLBACK_CXX))

    if platform.cross is not None:
        defines.append(("CMAKE_OSX_SYSROOT", platform.cross.sysroot))
        defines.append(("CMAKE_OSX_ARCHITECTURES", platform.cross.arch))

    defines.extend(BASE_DEFINES)

    if features.openssl:
        defines.append(("gRPC_SSL_PROVIDER", "package"))
        if features.openssl_vendored:
            registered.append("OPENSSL")
    elif features.secure:
        third_party.append(BORINGSSL_DIR)

    if features.no_omit_frame_pointer:
        cflags.append(FRAME_POINTER_FLAG)
        cxxflags.append(FRAME_POINTER_FLAG)

    defines.append(("gRPC_ZLIB_PROVIDER", "package"))

    if features.secure:
        shim_defines.append(("GRPC_SYS_SECURE", None))
    if platform.family.profile_scoped:
        # At least Vista.
        shim_defines.append(("_WIN32_WINNT", WIN32_WINNT))

    return BuildParameters(
        library=library_name(features),
        platform=platform,
        build_type=target.build_type,
        defines=tuple(defines),
        cflags=tuple(cflags),
        cxxflags=tuple(cxxflags),
        frameworks=tuple(frameworks),
        third_party_dirs=tuple(third_party),
        registered_deps=tuple(registered),
        cmake_target=env.cmake_target_override,
        shim_defines=tuple(shim_defines),
    )
