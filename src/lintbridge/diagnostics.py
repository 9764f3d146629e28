"""Conversion of tool issues into protocol diagnostics."""

from __future__ import annotations

from dataclasses import dataclass

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from lintbridge.schema import Issue
from lintbridge.severity import issue_severity


@dataclass(frozen=True)
class MessageStyle:
    no_linter_name: bool = False
    default_severity: DiagnosticSeverity = DiagnosticSeverity.Warning


def issue_message(issue: Issue, *, no_linter_name: bool) -> str:
    if no_linter_name:
        return issue.text
    return f"{issue.from_linter}: {issue.text}"


def _position(line: int, column: int) -> Position:
    # Tool positions are 1-based; a missing position is reported as 0.
    return Position(line=max(line - 1, 0), character=max(column - 1, 0))


def issue_to_diagnostic(issue: Issue, style: MessageStyle) -> Diagnostic:
    start = _position(issue.pos.line, issue.pos.column)
    end = _position(issue.pos.line, issue.pos.column)
    return Diagnostic(
        range=Range(start=start, end=end),
        severity=issue_severity(issue.severity, style.default_severity),
        source=issue.from_linter,
        message=issue_message(issue, no_linter_name=style.no_linter_name),
    )


def error_diagnostic(message: str) -> Diagnostic:
    """Synthetic diagnostic for a run that produced no usable issue list."""
    origin = Position(line=0, character=0)
    return Diagnostic(
        range=Range(start=origin, end=origin),
        severity=DiagnosticSeverity.Error,
        message=message,
    )
