"""Run the lint tool for one document."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Callable

from lintbridge.invariants import never
from lintbridge.state import ConnectionState

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class LintInvocation:
    argv: tuple[str, ...]
    cwd: str

    @property
    def cwd_or_none(self) -> str | None:
        # An empty working directory means "wherever the server runs".
        return self.cwd or None


@dataclass(frozen=True)
class LintRun:
    """Outcome of one tool process."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""
    launch_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.launch_error is None and self.returncode == 0


def build_invocation(path: str, state: ConnectionState) -> LintInvocation:
    """Command line and working directory used to lint ``path``.

    The document's directory is appended to the configured command. The tool
    runs from the workspace root when the document lives under it, and from
    the document's directory otherwise.
    """
    if not state.command:
        never("lint requested without a configured command", path=path)
    directory = os.path.dirname(path)
    argv = (*state.command, directory)
    if path.startswith(state.root_dir):
        cwd = state.root_dir
    else:
        cwd = directory
    return LintInvocation(argv=argv, cwd=cwd)


def run_invocation(invocation: LintInvocation, *, runner: Runner = subprocess.run) -> LintRun:
    logger.debug("running %s in %s", list(invocation.argv), invocation.cwd or ".")
    try:
        completed = runner(
            list(invocation.argv),
            cwd=invocation.cwd_or_none,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        logger.debug("failed to start %s: %s", invocation.argv[0], exc)
        return LintRun(returncode=-1, launch_error=str(exc))
    return LintRun(
        returncode=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )
