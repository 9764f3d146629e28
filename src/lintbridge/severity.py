"""Severity names accepted from the lint tool and the command line."""

from __future__ import annotations

from lsprotocol.types import DiagnosticSeverity

from lintbridge.exceptions import ConfigError

DEFAULT_SEVERITY_NAME = "Warn"

_SEVERITY_NAMES: dict[str, DiagnosticSeverity] = {
    "err": DiagnosticSeverity.Error,
    "error": DiagnosticSeverity.Error,
    "warn": DiagnosticSeverity.Warning,
    "warning": DiagnosticSeverity.Warning,
    "info": DiagnosticSeverity.Information,
    "information": DiagnosticSeverity.Information,
    "hint": DiagnosticSeverity.Hint,
}


def lookup_severity(name: str) -> DiagnosticSeverity | None:
    return _SEVERITY_NAMES.get(name.strip().lower())


def parse_severity(name: str) -> DiagnosticSeverity:
    """Resolve a configured default severity, rejecting unknown names."""
    severity = lookup_severity(name)
    if severity is None:
        choices = "Err(or), Warn(ing), Info(rmation) or Hint"
        raise ConfigError(f"unknown severity {name!r}; choices are {choices}")
    return severity


def issue_severity(name: str, default: DiagnosticSeverity) -> DiagnosticSeverity:
    """Severity for an issue as reported by the tool.

    An empty name takes ``default``; a name the tool invented is a warning.
    """
    if not name:
        return default
    return lookup_severity(name) or DiagnosticSeverity.Warning
