"""Directives emitted to the enclosing build tool."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DirectiveKind = Literal[
    "rustc-link-search",
    "rustc-link-lib",
    "rustc-env",
    "rerun-if-changed",
    "rerun-if-env-changed",
]

DEFAULT_PREFIX = "cargo:"


@dataclass(frozen=True, slots=True)
class Directive:
    kind: DirectiveKind
    value: str

    def render(self, prefix: str = DEFAULT_PREFIX) -> str:
        return f"{prefix}{self.kind}={self.value}"


def render_directives(directives: tuple[Directive, ...], prefix: str = DEFAULT_PREFIX) -> str:
    if not directives:
        return ""
    return "\n".join(directive.render(prefix) for directive in directives) + "\n"
