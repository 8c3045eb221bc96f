"""Public package entrypoint for the Lambda packaging SDK."""

from .errors import (
    EntryNotFoundError,
    ErrorCode,
    LambdaPackError,
    ManifestParseError,
    PackagingError,
    ProcessFailureError,
    UnresolvedSpecifierError,
    ValidationError,
)
from .graph import resolve_dependencies
from .models import ArchiveEntry, ArchivePlan, ResolutionRequest, ResolveOptions
from .observability import StructuredLogger
from .packager import package, plan_archive, write_archive
from .process import spawn

__all__ = [
    "ArchiveEntry",
    "ArchivePlan",
    "EntryNotFoundError",
    "ErrorCode",
    "LambdaPackError",
    "ManifestParseError",
    "PackagingError",
    "ProcessFailureError",
    "ResolutionRequest",
    "ResolveOptions",
    "StructuredLogger",
    "UnresolvedSpecifierError",
    "ValidationError",
    "package",
    "plan_archive",
    "resolve_dependencies",
    "spawn",
    "write_archive",
]
