"""Symbol allow/deny policy for generated bindings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

from grpcsys.params import BuildParameters

SymbolKind = Literal["function", "type", "variable"]
EnumStyle = Literal["rust", "rust_non_exhaustive", "consts", "moduleconsts"]


@dataclass(frozen=True, slots=True)
class SymbolRules:
    allow: tuple[str, ...] = ()
    deny: tuple[str, ...] = ()

    def permits(self, name: str) -> bool:
        """Patterns are anchored; denied names lose even when allowed."""
        if any(re.fullmatch(pattern, name) for pattern in self.deny):
            return False
        return any(re.fullmatch(pattern, name) for pattern in self.allow)


@dataclass(frozen=True, slots=True)
class BindingPolicy:
    functions: SymbolRules = field(default_factory=SymbolRules)
    types: SymbolRules = field(default_factory=SymbolRules)
    variables: SymbolRules = field(default_factory=SymbolRules)
    constified_enums: tuple[str, ...] = ()
    default_enum_style: EnumStyle = "rust"
    defines: tuple[str, ...] = ()

    def rules_for(self, kind: SymbolKind) -> SymbolRules:
        if kind == "function":
            return self.functions
        if kind == "type":
            return self.types
        return self.variables

    def permits(self, kind: SymbolKind, name: str) -> bool:
        return self.rules_for(kind).permits(name)

    def enum_style(self, name: str) -> EnumStyle:
        """Return how the enum *name* is represented in the bindings."""
        if any(re.fullmatch(pattern, name) for pattern in self.constified_enums):
            return "moduleconsts"
        return self.default_enum_style


# Threading primitives stay behind the wrapper's own synchronisation types.
THREADING_DENY_TYPES = (r"(__)?pthread.*", r"gpr_mu", r"gpr_cv", r"gpr_once")
THREADING_DENY_FUNCTIONS = (r"\bgpr_mu_.*", r"\bgpr_cv_.*", r"\bgpr_once_.*")


def default_policy(params: BuildParameters) -> BindingPolicy:
    return BindingPolicy(
        functions=SymbolRules(
            allow=(r"\bgrpc_.*", r"\bgpr_.*", r"\bgrpcwrap_.*"),
            deny=THREADING_DENY_FUNCTIONS,
        ),
        types=SymbolRules(
            allow=(
                r"\bgrpc_.*",
                r"\bgpr_.*",
                r"\bgrpcwrap_.*",
                r"\bcensus_context.*",
                r"\bverify_peer_options.*",
            ),
            deny=THREADING_DENY_TYPES,
        ),
        variables=SymbolRules(allow=(r"\bGRPC_.*",)),
        # Status codes are an open set, so they stay plain integer constants.
        constified_enums=(r"grpc_status_code",),
        default_enum_style="rust",
        defines=params.clang_args,
    )
