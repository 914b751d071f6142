"""Typed build-script error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers, one per fatal failure family."""

    CONFIGURATION = "E_CONFIGURATION"
    MISSING_MODULE = "E_MISSING_MODULE"
    NATIVE_BUILD = "E_NATIVE_BUILD"
    SSL_CACHE = "E_SSL_CACHE"
    HEADER_SCAN = "E_HEADER_SCAN"
    BINDING = "E_BINDING"


class GrpcSysError(Exception):
    """Base error class that carries code, optional hint, and context.

    Each failure family is a subclass that fixes ``family_code``; the base
    class itself needs an explicit ``code``.
    """

    family_code: ClassVar[ErrorCode | None] = None

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        resolved = code if code is not None else self.family_code
        if resolved is None:
            raise TypeError(f"{type(self).__name__} requires an error code")
        super().__init__(message)
        self.code = resolved.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigurationError(GrpcSysError):
    family_code = ErrorCode.CONFIGURATION


class MissingModuleError(GrpcSysError):
    family_code = ErrorCode.MISSING_MODULE


class NativeBuildError(GrpcSysError):
    family_code = ErrorCode.NATIVE_BUILD


class SslCacheError(GrpcSysError):
    family_code = ErrorCode.SSL_CACHE


class HeaderScanError(GrpcSysError):
    family_code = ErrorCode.HEADER_SCAN


class BindingError(GrpcSysError):
    family_code = ErrorCode.BINDING


__all__ = [
    "BindingError",
    "ConfigurationError",
    "ErrorCode",
    "GrpcSysError",
    "HeaderScanError",
    "MissingModuleError",
    "NativeBuildError",
    "SslCacheError",
]
