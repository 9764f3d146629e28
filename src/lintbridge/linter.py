"""Lint one document end to end: run, classify, filter, convert."""

from __future__ import annotations

import subprocess

from lsprotocol.types import Diagnostic

from lintbridge.diagnostics import issue_to_diagnostic
from lintbridge.invoker import Runner, build_invocation, run_invocation
from lintbridge.paths import filter_issues, target_path, uri_to_path
from lintbridge.results import classify
from lintbridge.state import ConnectionState


def lint_document(
    uri: str,
    state: ConnectionState,
    *,
    runner: Runner = subprocess.run,
) -> list[Diagnostic]:
    """Diagnostics for ``uri`` from a fresh run of the configured tool."""
    path = uri_to_path(uri)
    invocation = build_invocation(path, state)
    outcome = classify(run_invocation(invocation, runner=runner))
    if outcome.error is not None:
        return [outcome.error]

    base_dir = state.path_config.base_dir(invocation.cwd, state.root_dir)
    matched = filter_issues(target_path(path), outcome.issues, base_dir)
    return [issue_to_diagnostic(issue, state.style) for issue in matched]
