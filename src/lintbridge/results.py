"""Interpret a finished tool process as issues or a failure."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lsprotocol.types import Diagnostic
from pydantic import ValidationError

from lintbridge.diagnostics import error_diagnostic
from lintbridge.invoker import LintRun
from lintbridge.schema import Issue, LintResult

logger = logging.getLogger(__name__)

# golangci-lint's exit code when the target holds no files it can analyze.
# See pkg/exitcodes/exitcodes.go in the golangci-lint sources.
NO_FILES_EXIT_CODE = 5


@dataclass(frozen=True)
class LintOutcome:
    issues: tuple[Issue, ...] = ()
    error: Diagnostic | None = None


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _failure(message: str) -> LintOutcome:
    return LintOutcome(error=error_diagnostic(message))


def classify(run: LintRun) -> LintOutcome:
    if run.launch_error is not None:
        return _failure(run.launch_error)
    if run.ok:
        return LintOutcome()
    if run.returncode == NO_FILES_EXIT_CODE:
        # Not every directory holds lintable files.
        return LintOutcome()
    if not run.stdout:
        # Fatal errors go to stderr, not into the JSON report.
        message = _decode(run.stderr) if run.stderr else f"exit status {run.returncode}"
        return _failure(message)
    try:
        result = LintResult.model_validate_json(run.stdout)
    except ValidationError as exc:
        logger.debug("unparseable tool output: %s", exc)
        return _failure(str(exc))
    logger.debug("tool reported %d issue(s)", len(result.issues))
    return LintOutcome(issues=tuple(result.issues))
