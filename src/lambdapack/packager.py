"""Zip packaging of a resolved dependency set for serverless deployment."""

from __future__ import annotations

import json
import os
import shutil
import stat
import tempfile
import time
import zipfile
import zlib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from lambdapack.errors import PackagingError
from lambdapack.fs import join_normalized
from lambdapack.graph import resolve_dependencies
from lambdapack.models import (
    DEFAULT_FILE_MODE,
    ArchiveEntry,
    ArchivePlan,
    ResolveOptions,
)
from lambdapack.observability import StructuredLogger

ARCHIVE_FILE_MODE = 0o644


def render_shim(relative_entry: str) -> str:
    """One-line CommonJS module that forwards to the nested entry."""
    return f"module.exports = require({json.dumps('./' + relative_entry)});\n"


def plan_archive(
    entry_file: str | Path,
    options: ResolveOptions | Mapping[str, Any] | None = None,
    *,
    root: str | Path | None = None,
    logger: StructuredLogger | None = None,
) -> ArchivePlan:
    """Resolve *entry_file* and lay out its archive entries without writing.

    Archive paths are relative to *root* (the working directory by default),
    widened to the common ancestor of any dependency that lives outside it.
    """
    base = Path(os.path.realpath(root if root is not None else Path.cwd()))
    dependencies = resolve_dependencies(entry_file, options, cwd=base, logger=logger)
    entry = Path(os.path.realpath(join_normalized(base, str(entry_file))))
    archive_root = Path(os.path.commonpath([str(base), *(str(path) for path in dependencies)]))

    entries: list[ArchiveEntry] = []
    for path in dependencies:
        entries.append(
            ArchiveEntry(
                archive_path=path.relative_to(archive_root).as_posix(),
                source_file=path,
                mode=_file_mode(path),
            )
        )

    relative_entry = entry.relative_to(archive_root).as_posix()
    if "/" in relative_entry:
        shim_path = entry.name
        if any(item.archive_path == shim_path for item in entries):
            raise PackagingError(
                f"Cannot place a root-level shim for '{relative_entry}'.",
                hint="A dependency already occupies the archive root path of the shim.",
                context={"entry": relative_entry, "archive_path": shim_path},
            )
        entries.append(
            ArchiveEntry(
                archive_path=shim_path,
                source_file=None,
                mode=DEFAULT_FILE_MODE,
                contents=render_shim(relative_entry),
            )
        )
        if logger is not None:
            logger.log(
                operation="shim",
                path=shim_path,
                message=f"Synthesized root-level shim forwarding to {relative_entry}.",
            )

    return ArchivePlan(root=archive_root, entry_file=entry, entries=tuple(entries))


def write_archive(
    plan: ArchivePlan,
    output: str | Path,
    *,
    logger: StructuredLogger | None = None,
) -> Path:
    """Write *plan* to *output*, replacing it only once the archive is complete."""
    output_path = Path(output)
    temp_path: Path | None = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.",
            suffix=".tmp",
            dir=str(output_path.parent),
        )
        os.close(fd)
        temp_path = Path(temp_name)
        with zipfile.ZipFile(temp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in plan.entries:
                _write_entry(archive, entry, plan)
                if logger is not None:
                    logger.log(
                        operation="archive_entry",
                        path=entry.archive_path,
                        message="Archive entry written.",
                        extra={"mode": oct(entry.mode), "synthesized": entry.synthesized},
                    )
        os.chmod(temp_path, ARCHIVE_FILE_MODE)
        os.replace(temp_path, output_path)
    except (OSError, ValueError, zipfile.BadZipFile, zlib.error) as exc:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise PackagingError(
            "Failed to write archive.",
            hint=str(exc),
            context={"output": str(output_path)},
        ) from exc
    return output_path


def package(
    entry_file: str | Path,
    output_archive: str | Path,
    options: ResolveOptions | Mapping[str, Any] | None = None,
    *,
    root: str | Path | None = None,
    logger: StructuredLogger | None = None,
) -> None:
    """Resolve *entry_file* and write its dependency set to a zip archive.

    Resolution failures propagate unchanged and leave *output_archive*
    untouched.
    """
    plan = plan_archive(entry_file, options, root=root, logger=logger)
    write_archive(plan, output_archive, logger=logger)


def _write_entry(archive: zipfile.ZipFile, entry: ArchiveEntry, plan: ArchivePlan) -> None:
    if entry.source_file is None:
        info = zipfile.ZipInfo(entry.archive_path, date_time=_date_time(plan.entry_file))
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = (stat.S_IFREG | entry.mode) << 16
        archive.writestr(info, entry.contents or "")
        return

    info = zipfile.ZipInfo.from_file(
        entry.source_file,
        arcname=entry.archive_path,
        strict_timestamps=False,
    )
    info.compress_type = zipfile.ZIP_DEFLATED
    with entry.source_file.open("rb") as source, archive.open(info, "w") as target:
        shutil.copyfileobj(source, target)


def _file_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except OSError as exc:
        raise PackagingError(
            "Cannot read dependency file metadata.",
            hint=str(exc),
            context={"path": str(path)},
        ) from exc


def _date_time(path: Path) -> tuple[int, int, int, int, int, int]:
    moment = time.localtime(path.stat().st_mtime)
    if moment.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return (
        moment.tm_year,
        moment.tm_mon,
        moment.tm_mday,
        moment.tm_hour,
        moment.tm_min,
        moment.tm_sec,
    )
