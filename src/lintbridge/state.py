from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol.types import DiagnosticSeverity

from lintbridge.diagnostics import MessageStyle
from lintbridge.paths import PathConfig, parse_command_flags, uri_to_path


@dataclass(frozen=True)
class ConnectionState:
    """Per-connection settings captured on ``initialize`` and read-only after."""

    root_uri: str
    root_dir: str
    command: tuple[str, ...]
    path_config: PathConfig = field(default_factory=PathConfig)
    style: MessageStyle = field(default_factory=MessageStyle)

    @classmethod
    def from_initialize(
        cls,
        *,
        root_uri: str | None,
        root_path: str | None,
        command: tuple[str, ...] | list[str],
        no_linter_name: bool = False,
        default_severity: DiagnosticSeverity = DiagnosticSeverity.Warning,
    ) -> ConnectionState:
        if root_uri:
            root_dir = uri_to_path(root_uri)
        else:
            root_dir = root_path or ""
        command = tuple(command)
        return cls(
            root_uri=root_uri or "",
            root_dir=root_dir,
            command=command,
            path_config=parse_command_flags(command),
            style=MessageStyle(
                no_linter_name=no_linter_name,
                default_severity=default_severity,
            ),
        )
