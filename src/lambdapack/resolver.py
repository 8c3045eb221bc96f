"""Node-style module specifier resolution with optional tsconfig path aliases."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lambdapack.errors import ManifestParseError, UnresolvedSpecifierError
from lambdapack.fs import FileSystem, LocalFileSystem, join_normalized
from lambdapack.manifest import read_manifest
from lambdapack.models import PACKAGE_CONTAINER, ResolutionRequest
from lambdapack.observability import StructuredLogger
from lambdapack.tsconfig import AliasMap

JS_EXTENSIONS = (".js", ".json", ".node")
TS_EXTENSIONS = (".ts", ".tsx", ".d.ts")
TYPESCRIPT_SUFFIXES = (".ts", ".tsx", ".mts", ".cts")

NODE_BUILTIN_MODULES = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


NODE_BUILTIN_SUBPATHS = frozenset(
    {
        "assert/strict",
        "dns/promises",
        "fs/promises",
        "inspector/promises",
        "path/posix",
        "path/win32",
        "readline/promises",
        "stream/consumers",
        "stream/promises",
        "stream/web",
        "timers/promises",
        "util/types",
    }
)


def is_builtin(specifier: str) -> bool:
    """True for ``node:`` ids and exact built-in ids; ``buffer/`` is a package."""
    if specifier.startswith("node:"):
        return True
    return specifier in NODE_BUILTIN_MODULES or specifier in NODE_BUILTIN_SUBPATHS


def is_path_specifier(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../", "/"))


def wants_directory(specifier: str) -> bool:
    """Specifiers ending in ``/``, ``.`` or ``..`` never name a file."""
    return specifier.endswith(("/", "/.", "/..")) or specifier in (".", "..")


def is_typescript_file(path: Path) -> bool:
    return path.name.endswith(TYPESCRIPT_SUFFIXES)


def split_package_specifier(specifier: str) -> tuple[str, str]:
    """Split ``@scope/name/sub/path`` into ``("@scope/name", "sub/path")``."""
    parts = specifier.split("/")
    count = 2 if specifier.startswith("@") else 1
    return "/".join(parts[:count]), "/".join(parts[count:])


@dataclass(slots=True)
class SpecifierResolver:
    fs: FileSystem = field(default_factory=LocalFileSystem)
    alias_map: AliasMap | None = None
    logger: StructuredLogger | None = None
    # Manifests whose entry field selected a resolved file.
    entry_manifests: set[Path] = field(default_factory=set)

    def resolve(self, request: ResolutionRequest) -> Path | None:
        """Map *request* to a canonical file path.

        Explicit tsconfig ``paths`` patterns win over Node built-ins, which in
        turn win over ``baseUrl`` and ``node_modules`` lookup. Returns None
        for built-ins and, when ``ignore_missing`` is set, for specifiers that
        match nothing. Otherwise a miss raises UnresolvedSpecifierError.
        """
        specifier = request.specifier
        found = None
        if specifier and not is_path_specifier(specifier):
            found = self._load_aliased(request)
            if found is None and is_builtin(specifier):
                self._log("skip_builtin", request, "Node built-in module is provided by the runtime.")
                return None

        if found is None:
            found = self._locate(request)
        if found is not None:
            return self.fs.realpath(found)
        if request.ignore_missing:
            self._log("skip_missing", request, "Unresolved specifier ignored.", level="warning")
            return None
        raise UnresolvedSpecifierError(specifier, request.from_file)

    def _load_aliased(self, request: ResolutionRequest) -> Path | None:
        if self.alias_map is None:
            return None
        candidates = list(self.alias_map.pattern_candidates(request.specifier))
        for root in request.search_roots:
            candidates.extend(
                join_normalized(root, target) for target in self.alias_map.rewrites(request.specifier)
            )
        for candidate in candidates:
            found = self._load_path(candidate, request.typescript)
            if found is not None:
                return found
        return None

    def _locate(self, request: ResolutionRequest) -> Path | None:
        specifier = request.specifier
        if not specifier:
            return None
        from_dir = request.from_file.parent
        ts = request.typescript
        directory_only = wants_directory(specifier)

        if is_path_specifier(specifier):
            return self._load_path(join_normalized(from_dir, specifier), ts, directory_only=directory_only)

        if self.alias_map is not None and self.alias_map.base_url is not None:
            found = self._load_path(
                join_normalized(self.alias_map.base_url, specifier),
                ts,
                directory_only=directory_only,
            )
            if found is not None:
                return found

        name, subpath = split_package_specifier(specifier)
        for directory in (from_dir, *from_dir.parents):
            if directory.name == PACKAGE_CONTAINER:
                continue
            found = self._load_package(
                directory / PACKAGE_CONTAINER / name, subpath, ts, directory_only=directory_only
            )
            if found is not None:
                return found

        for root in request.search_roots:
            found = self._load_path(join_normalized(root, specifier), ts, directory_only=directory_only)
            if found is None:
                found = self._load_package(
                    root / PACKAGE_CONTAINER / name, subpath, ts, directory_only=directory_only
                )
            if found is not None:
                return found
        return None

    def _load_package(
        self,
        package_dir: Path,
        subpath: str,
        ts: bool,
        *,
        directory_only: bool = False,
    ) -> Path | None:
        if not self.fs.is_dir(package_dir):
            return None
        if subpath:
            return self._load_path(
                join_normalized(package_dir, subpath), ts, directory_only=directory_only
            )
        return self._load_directory(package_dir, ts)

    def _load_path(self, path: Path, ts: bool, *, directory_only: bool = False) -> Path | None:
        found = None if directory_only else self._load_file(path, ts)
        if found is None:
            found = self._load_directory(path, ts)
        return found

    def _load_file(self, path: Path, ts: bool) -> Path | None:
        if self.fs.is_file(path):
            return path
        if not path.name:
            return None
        for extension in _extensions(ts):
            candidate = path.with_name(path.name + extension)
            if self.fs.is_file(candidate):
                return candidate
        # TypeScript sources import their siblings by the emitted ".js" name.
        if ts and path.suffix == ".js":
            for extension in (".ts", ".tsx"):
                candidate = path.with_suffix(extension)
                if self.fs.is_file(candidate):
                    return candidate
        return None

    def _load_directory(self, directory: Path, ts: bool) -> Path | None:
        if not self.fs.is_dir(directory):
            return None
        try:
            manifest = read_manifest(directory, fs=self.fs)
        except ManifestParseError as exc:
            self._log_manifest(exc)
            manifest = None
        if manifest is not None:
            for entry in manifest.entry_fields(typescript=ts):
                target = join_normalized(directory, entry)
                found = self._load_file(target, ts) or self._load_index(target, ts)
                if found is not None:
                    self.entry_manifests.add(manifest.path)
                    return found
        return self._load_index(directory, ts)

    def _load_index(self, directory: Path, ts: bool) -> Path | None:
        if not self.fs.is_dir(directory):
            return None
        for extension in _extensions(ts):
            candidate = directory / f"index{extension}"
            if self.fs.is_file(candidate):
                return candidate
        return None

    def _log(
        self,
        operation: str,
        request: ResolutionRequest,
        message: str,
        *,
        level: str = "info",
    ) -> None:
        if self.logger is None:
            return
        self.logger.log(
            operation=operation,
            path=request.from_file,
            specifier=request.specifier,
            message=message,
            level=level,
        )

    def _log_manifest(self, exc: ManifestParseError) -> None:
        if self.logger is None:
            return
        self.logger.log(
            operation="manifest_parse",
            path=exc.manifest_path,
            message=exc.message,
            level="warning",
            extra={"reason": exc.hint or ""},
        )


def _extensions(ts: bool) -> tuple[str, ...]:
    return JS_EXTENSIONS + TS_EXTENSIONS if ts else JS_EXTENSIONS
