"""TypeScript project configuration loading and path-alias mapping."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lambdapack.errors import ValidationError
from lambdapack.fs import FileSystem, join_normalized
from lambdapack.models import PACKAGE_CONTAINER

@dataclass(frozen=True, slots=True)
class AliasPattern:
    pattern: str
    targets: tuple[str, ...]

    @property
    def prefix(self) -> str:
        return self.pattern.split("*", 1)[0]

    @property
    def wildcard(self) -> bool:
        return "*" in self.pattern

    def match(self, specifier: str) -> str | None:
        """Return the text captured by ``*``, or "" for an exact match, or None."""
        if not self.wildcard:
            return "" if specifier == self.pattern else None
        prefix, suffix = self.pattern.split("*", 1)
        if len(specifier) < len(prefix) + len(suffix):
            return None
        if specifier.startswith(prefix) and specifier.endswith(suffix):
            return specifier[len(prefix) : len(specifier) - len(suffix)]
        return None


@dataclass(frozen=True, slots=True)
class AliasMap:
    config_path: Path
    paths_base: Path
    base_url: Path | None = None
    patterns: tuple[AliasPattern, ...] = ()

    def rewrites(self, specifier: str) -> tuple[str, ...]:
        """Targets of the best matching ``paths`` pattern with ``*`` substituted."""
        best = self._best_pattern(specifier)
        if best is None:
            return ()
        pattern, captured = best
        return tuple(target.replace("*", captured, 1) for target in pattern.targets)

    def pattern_candidates(self, specifier: str) -> tuple[Path, ...]:
        """Locations named by the best matching ``paths`` pattern."""
        return tuple(join_normalized(self.paths_base, target) for target in self.rewrites(specifier))

    def candidates(self, specifier: str) -> tuple[Path, ...]:
        """Rewritten locations for a non-relative *specifier*, best match first."""
        found = list(self.pattern_candidates(specifier))
        if self.base_url is not None:
            found.append(join_normalized(self.base_url, specifier))
        return tuple(found)

    def _best_pattern(self, specifier: str) -> tuple[AliasPattern, str] | None:
        best: tuple[AliasPattern, str] | None = None
        for pattern in self.patterns:
            captured = pattern.match(specifier)
            if captured is None:
                continue
            if not pattern.wildcard:
                return pattern, captured
            if best is None or len(pattern.prefix) > len(best[0].prefix):
                best = (pattern, captured)
        return best


def strip_json_comments(text: str) -> str:
    """Drop comments and trailing commas outside of string literals."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif text.startswith(("//", "/*"), i):
            i = _skip_comment(text, i)
        elif char == "," and _closes_container(text, i + 1):
            i += 1
        else:
            out.append(char)
            i += 1
    return "".join(out)


def _skip_comment(text: str, start: int) -> int:
    if text.startswith("//", start):
        end = text.find("\n", start)
        return len(text) if end == -1 else end
    end = text.find("*/", start + 2)
    return len(text) if end == -1 else end + 2


def _closes_container(text: str, start: int) -> bool:
    """True when the next significant character after *start* is ``}`` or ``]``."""
    i = start
    while i < len(text):
        if text[i].isspace():
            i += 1
        elif text.startswith(("//", "/*"), i):
            i = _skip_comment(text, i)
        else:
            return text[i] in "}]"
    return False


def parse_tsconfig(raw: str, path: Path) -> dict[str, Any]:
    cleaned = strip_json_comments(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Invalid tsconfig JSON.",
            hint=str(exc),
            context={"tsconfig": str(path)},
        ) from exc
    if not isinstance(payload, dict):
        raise ValidationError(
            "Invalid tsconfig payload type.",
            context={"tsconfig": str(path)},
        )
    return payload


def load_alias_map(path: Path, *, fs: FileSystem) -> AliasMap:
    """Load *path* and its ``extends`` chain into an :class:`AliasMap`."""
    config_path = fs.realpath(path)
    base_url: Path | None = None
    paths: dict[str, Any] | None = None
    paths_dir = config_path.parent
    seen: set[Path] = set()

    current: Path | None = config_path
    while current is not None:
        if current in seen:
            raise ValidationError(
                "Circular tsconfig `extends` chain.",
                context={"tsconfig": str(config_path), "repeated": str(current)},
            )
        seen.add(current)
        if not fs.is_file(current):
            raise ValidationError(
                "tsconfig file does not exist.",
                context={"tsconfig": str(current)},
            )
        payload = parse_tsconfig(fs.read_text(current), current)
        options = payload.get("compilerOptions") or {}
        if not isinstance(options, dict):
            raise ValidationError(
                "Invalid tsconfig `compilerOptions` value.",
                context={"tsconfig": str(current)},
            )
        # Settings closer to the requested file win over inherited ones.
        if base_url is None and isinstance(options.get("baseUrl"), str):
            base_url = join_normalized(current.parent, options["baseUrl"])
        if paths is None and isinstance(options.get("paths"), dict):
            paths = options["paths"]
            paths_dir = current.parent
        current = _extended_config(payload.get("extends"), current, fs=fs)

    patterns = tuple(
        AliasPattern(pattern=pattern, targets=_targets(pattern, targets, config_path))
        for pattern, targets in sorted((paths or {}).items())
    )
    return AliasMap(
        config_path=config_path,
        paths_base=base_url if base_url is not None else paths_dir,
        base_url=base_url,
        patterns=patterns,
    )


def _targets(pattern: str, raw: Any, config_path: Path) -> tuple[str, ...]:
    if pattern.count("*") > 1:
        raise ValidationError(
            f"tsconfig path pattern `{pattern}` may contain at most one '*'.",
            context={"tsconfig": str(config_path)},
        )
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValidationError(
            f"tsconfig `paths` entry `{pattern}` must be a list of strings.",
            context={"tsconfig": str(config_path)},
        )
    return tuple(raw)


def _extended_config(extends: Any, current: Path, *, fs: FileSystem) -> Path | None:
    if extends is None:
        return None
    if not isinstance(extends, str) or not extends:
        raise ValidationError(
            "Invalid tsconfig `extends` value.",
            hint="Array-valued `extends` is not supported.",
            context={"tsconfig": str(current)},
        )
    if extends.startswith((".", "/")):
        candidate = join_normalized(current.parent, extends)
        if not fs.is_file(candidate) and not extends.endswith(".json"):
            candidate = candidate.with_name(candidate.name + ".json")
        return fs.realpath(candidate)

    for directory in current.parents:
        package_path = directory / PACKAGE_CONTAINER / extends
        if fs.is_file(package_path):
            return fs.realpath(package_path)
        if fs.is_file(package_path.with_name(package_path.name + ".json")):
            return fs.realpath(package_path.with_name(package_path.name + ".json"))
        if fs.is_file(package_path / "tsconfig.json"):
            return fs.realpath(package_path / "tsconfig.json")
    raise ValidationError(
        f"Cannot find extended tsconfig `{extends}`.",
        context={"tsconfig": str(current)},
    )
