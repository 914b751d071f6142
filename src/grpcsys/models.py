"""Core typed dataclasses for build targets and feature selection."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, get_args

from grpcsys.errors import ConfigurationError

Profile = Literal["debug", "release", "bench"]
FeatureName = Literal["secure", "openssl", "openssl-vendored", "no-omit-frame-pointer"]

GRPC_VERSION = "1.29.1"

# Feature implications follow the Cargo manifest of the wrapping crate.
FEATURE_IMPLIES: dict[str, tuple[str, ...]] = {
    "openssl-vendored": ("openssl",),
    "openssl": ("secure",),
}


@dataclass(frozen=True, slots=True)
class BuildTarget:
    triple: str
    os: str
    env: str
    profile: Profile

    @property
    def build_type(self) -> Literal["Debug", "Release"]:
        if self.profile in ("release", "bench"):
            return "Release"
        return "Debug"


@dataclass(frozen=True, slots=True)
class FeatureSet:
    secure: bool = False
    openssl: bool = False
    openssl_vendored: bool = False
    no_omit_frame_pointer: bool = False

    def __post_init__(self) -> None:
        if self.openssl and not self.secure:
            raise ConfigurationError(
                "Feature `openssl` requires `secure`.",
                hint="Enable `secure` or select features via FeatureSet.from_names().",
                context={"operation": "features"},
            )
        if self.openssl_vendored and not self.openssl:
            raise ConfigurationError(
                "Feature `openssl-vendored` requires `openssl`.",
                hint="Enable `openssl` or select features via FeatureSet.from_names().",
                context={"operation": "features"},
            )

    @classmethod
    def from_names(cls, names: Iterable[str]) -> FeatureSet:
        """Build a feature set from feature names, expanding implied features."""
        known = set(get_args(FeatureName))
        selected: set[str] = set()
        pending = [name.strip() for name in names if name.strip()]
        while pending:
            name = pending.pop()
            if name not in known:
                raise ConfigurationError(
                    f"Unknown feature `{name}`.",
                    hint=f"Valid features: {', '.join(sorted(known))}.",
                    context={"operation": "features"},
                )
            if name in selected:
                continue
            selected.add(name)
            pending.extend(FEATURE_IMPLIES.get(name, ()))
        return cls(
            secure="secure" in selected,
            openssl="openssl" in selected,
            openssl_vendored="openssl-vendored" in selected,
            no_omit_frame_pointer="no-omit-frame-pointer" in selected,
        )

    @property
    def external_crypto(self) -> bool:
        """True when a system-provided (non-vendored) crypto library is linked."""
        return self.secure and self.openssl and not self.openssl_vendored

    def names(self) -> tuple[str, ...]:
        selected = []
        if self.secure:
            selected.append("secure")
        if self.openssl:
            selected.append("openssl")
        if self.openssl_vendored:
            selected.append("openssl-vendored")
        if self.no_omit_frame_pointer:
            selected.append("no-omit-frame-pointer")
        return tuple(selected)
