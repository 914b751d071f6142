"""Public package entrypoint for the gRPC engine build script."""

from .bindings import BindingArtifact, BindingMode, BindingPolicy, resolve_binding_path
from .config import BuildEnvironment
from .errors import (
    BindingError,
    ConfigurationError,
    GrpcSysError,
    HeaderScanError,
    MissingModuleError,
    NativeBuildError,
    SslCacheError,
)
from .headers import scan_headers
from .linkplan import LinkLibrary, LinkPlan, LinkSearchPath, assemble_link_plan
from .models import GRPC_VERSION, BuildTarget, FeatureSet
from .modules import required_modules, verify_modules
from .params import BuildParameters, derive_parameters
from .pipeline import PipelineResult, run_pipeline
from .ssl import SslLocation, locate

__all__ = [
    "GRPC_VERSION",
    "BindingArtifact",
    "BindingError",
    "BindingMode",
    "BindingPolicy",
    "BuildEnvironment",
    "BuildParameters",
    "BuildTarget",
    "ConfigurationError",
    "FeatureSet",
    "GrpcSysError",
    "HeaderScanError",
    "LinkLibrary",
    "LinkPlan",
    "LinkSearchPath",
    "MissingModuleError",
    "NativeBuildError",
    "PipelineResult",
    "SslCacheError",
    "SslLocation",
    "assemble_link_plan",
    "derive_parameters",
    "locate",
    "required_modules",
    "resolve_binding_path",
    "run_pipeline",
    "scan_headers",
    "verify_modules",
]
