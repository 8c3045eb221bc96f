"""Dependency graph walk from an entry module to its full file set."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lambdapack.errors import EntryNotFoundError
from lambdapack.fs import FileSystem, LocalFileSystem, join_normalized
from lambdapack.manifest import owning_package_root
from lambdapack.models import MANIFEST_NAME, ResolutionRequest, ResolveOptions, coerce_options
from lambdapack.observability import StructuredLogger
from lambdapack.resolver import SpecifierResolver, is_typescript_file
from lambdapack.scanner import extract_specifiers
from lambdapack.tsconfig import load_alias_map

# Resolved but never scanned for specifiers.
OPAQUE_SUFFIXES = (".json", ".node")


@dataclass(slots=True)
class VisitedSet:
    files: set[Path] = field(default_factory=set)
    credited_roots: set[Path] = field(default_factory=set)

    def add(self, path: Path) -> bool:
        if path in self.files:
            return False
        self.files.add(path)
        return True

    def credit(self, root: Path) -> bool:
        if root in self.credited_roots:
            return False
        self.credited_roots.add(root)
        return True

    def paths(self) -> list[Path]:
        manifests = {root / MANIFEST_NAME for root in self.credited_roots}
        return sorted(self.files | manifests, key=str)


@dataclass(slots=True)
class DependencyWalker:
    resolver: SpecifierResolver
    options: ResolveOptions
    fs: FileSystem = field(default_factory=LocalFileSystem)
    logger: StructuredLogger | None = None
    # First-party manifests are credited below this directory only.
    ceiling: Path | None = None

    def walk(self, entry: Path) -> list[Path]:
        visited = VisitedSet()
        pending: deque[Path] = deque()
        self._visit(entry, visited, pending)

        while pending:
            current = pending.popleft()
            typescript = self.options.tsconfig is not None or is_typescript_file(current)
            for specifier in self._specifiers(current, typescript=typescript):
                request = ResolutionRequest(
                    specifier=specifier,
                    from_file=current,
                    search_roots=self.options.paths,
                    ignore_missing=self.options.ignore_missing,
                    typescript=typescript,
                )
                resolved = self.resolver.resolve(request)
                if resolved is not None:
                    self._visit(resolved, visited, pending)
        for manifest in sorted(self.resolver.entry_manifests, key=str):
            self._credit(self.fs.realpath(manifest.parent), visited)
        return visited.paths()

    def _visit(self, path: Path, visited: VisitedSet, pending: deque[Path]) -> None:
        if not visited.add(path):
            return
        pending.append(path)
        root = owning_package_root(path, fs=self.fs, ceiling=self.ceiling)
        if root is not None:
            self._credit(root, visited)

    def _credit(self, root: Path, visited: VisitedSet) -> None:
        if visited.credit(root):
            self._log("credit_manifest", root / MANIFEST_NAME, "Package manifest included.")

    def _specifiers(self, path: Path, *, typescript: bool) -> tuple[str, ...]:
        if path.name.endswith(OPAQUE_SUFFIXES):
            return ()
        specifiers = extract_specifiers(self.fs.read_text(path), typescript=typescript)
        self._log(
            "scan",
            path,
            f"Found {len(specifiers)} static specifier(s).",
            extra={"specifiers": list(specifiers), "typescript": typescript},
        )
        return specifiers

    def _log(
        self,
        operation: str,
        path: Path,
        message: str,
        *,
        extra: dict[str, Any] | None = None,
    ) -> None:
        if self.logger is not None:
            self.logger.log(operation=operation, path=path, message=message, extra=extra)


def resolve_dependencies(
    entry_file: str | Path,
    options: ResolveOptions | Mapping[str, Any] | None = None,
    *,
    cwd: str | Path | None = None,
    fs: FileSystem | None = None,
    logger: StructuredLogger | None = None,
) -> list[Path]:
    """Return the sorted absolute paths *entry_file* transitively depends on.

    The list holds the entry itself, every module reached through static
    ``import``/``require`` specifiers, and one ``package.json`` per
    dependency package those modules live in. Relative inputs are anchored
    at *cwd* (the process working directory by default).
    """
    filesystem = fs if fs is not None else LocalFileSystem()
    base = Path(cwd) if cwd is not None else Path.cwd()
    resolved_options = coerce_options(options).absolute(base)

    entry = join_normalized(base, str(entry_file))
    if not filesystem.is_file(entry):
        raise EntryNotFoundError(entry_file)
    entry = filesystem.realpath(entry)

    alias_map = None
    if resolved_options.tsconfig is not None:
        alias_map = load_alias_map(resolved_options.tsconfig, fs=filesystem)

    walker = DependencyWalker(
        resolver=SpecifierResolver(fs=filesystem, alias_map=alias_map, logger=logger),
        options=resolved_options,
        fs=filesystem,
        logger=logger,
        ceiling=filesystem.realpath(base),
    )
    return walker.walk(entry)
