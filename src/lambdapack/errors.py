"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    ENTRY_NOT_FOUND = "E_ENTRY_NOT_FOUND"
    UNRESOLVED_SPECIFIER = "E_UNRESOLVED_SPECIFIER"
    MANIFEST_PARSE = "E_MANIFEST_PARSE"
    PACKAGING = "E_PACKAGING"
    PROCESS_FAILURE = "E_PROCESS_FAILURE"


class LambdaPackError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
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


class ValidationError(LambdaPackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class EntryNotFoundError(LambdaPackError):
    def __init__(self, entry_file: str | Path) -> None:
        super().__init__(
            f"Entry file '{entry_file}' does not exist.",
            code=ErrorCode.ENTRY_NOT_FOUND,
            hint="Pass the path of an existing JavaScript or TypeScript module.",
            context={"entry_file": str(entry_file)},
        )
        self.entry_file = Path(entry_file)


class UnresolvedSpecifierError(LambdaPackError):
    """A specifier could not be mapped to a file on disk."""

    def __init__(self, specifier: str, from_file: str | Path) -> None:
        super().__init__(
            f"Cannot find module '{specifier}' from '{from_file}'",
            code=ErrorCode.UNRESOLVED_SPECIFIER,
            hint="Install the package, add a search root with `paths`, or set ignore_missing.",
            context={"specifier": specifier, "from_file": str(from_file)},
        )
        self.specifier = specifier
        self.from_file = Path(from_file)


class ManifestParseError(LambdaPackError):
    def __init__(self, manifest_path: str | Path, *, reason: str) -> None:
        super().__init__(
            f"Cannot parse package manifest '{manifest_path}'.",
            code=ErrorCode.MANIFEST_PARSE,
            hint=reason,
            context={"manifest": str(manifest_path)},
        )
        self.manifest_path = Path(manifest_path)


class PackagingError(LambdaPackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PACKAGING, hint=hint, context=context)


class ProcessFailureError(LambdaPackError):
    def __init__(
        self,
        returncode: int,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            f"Command failed with exit code {returncode}",
            code=ErrorCode.PROCESS_FAILURE,
            hint=hint,
            context=context,
        )
        self.returncode = returncode


__all__ = [
    "EntryNotFoundError",
    "ErrorCode",
    "LambdaPackError",
    "ManifestParseError",
    "PackagingError",
    "ProcessFailureError",
    "UnresolvedSpecifierError",
    "ValidationError",
]
