"""Subprocess execution for auxiliary build steps (e.g. running tsc)."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from lambdapack.errors import ProcessFailureError

COMMAND_NOT_FOUND = 127


def spawn(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run *command*; return on exit code zero, raise ProcessFailureError otherwise."""
    argv = [command, *args]
    run_env = dict(os.environ)
    if env is not None:
        run_env.update(env)

    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            env=run_env,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise ProcessFailureError(
            COMMAND_NOT_FOUND,
            hint=f"`{command}` was not found in PATH.",
            context={"command": " ".join(argv)},
        ) from exc

    if completed.returncode != 0:
        raise ProcessFailureError(
            completed.returncode,
            hint="Check the command output for details.",
            context={
                "command": " ".join(argv),
                "stderr": completed.stderr[:2000] if completed.stderr else "",
            },
        )
