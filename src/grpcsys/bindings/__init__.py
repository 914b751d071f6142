"""Binding surface extraction and path resolution."""

from .generator import (
    BindgenTranslator,
    TranslationRequest,
    Translator,
    generate_bindings,
    umbrella_header,
)
from .policy import BindingPolicy, SymbolRules, default_policy
from .resolver import (
    PREGENERATED_TARGETS,
    BindingArtifact,
    BindingMode,
    binding_mode,
    pregenerated_path,
    resolve_binding_path,
)

__all__ = [
    "PREGENERATED_TARGETS",
    "BindgenTranslator",
    "BindingArtifact",
    "BindingMode",
    "BindingPolicy",
    "SymbolRules",
    "TranslationRequest",
    "Translator",
    "binding_mode",
    "default_policy",
    "generate_bindings",
    "pregenerated_path",
    "resolve_binding_path",
    "umbrella_header",
]
