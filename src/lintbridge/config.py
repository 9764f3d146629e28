from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from lsprotocol.types import DiagnosticSeverity

from lintbridge.exceptions import ConfigError
from lintbridge.severity import DEFAULT_SEVERITY_NAME, parse_severity

DEFAULT_CONFIG_NAME = "lintbridge.toml"
DEFAULT_COMMAND: tuple[str, ...] = ("golangci-lint", "run", "--out-format=json")

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class ServerSettings:
    """Startup configuration, resolved once and passed by value."""

    debug: bool = False
    no_linter_name: bool = False
    default_severity: DiagnosticSeverity = DiagnosticSeverity.Warning
    command: tuple[str, ...] = DEFAULT_COMMAND


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def server_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("server", {})
    return section if isinstance(section, dict) else {}


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _as_command(value: TomlValue) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_COMMAND
    if isinstance(value, str):
        parts = tuple(value.split())
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        parts = tuple(value)
    else:
        raise ConfigError("server.command must be a list of strings")
    if not parts:
        raise ConfigError("server.command must not be empty")
    return parts


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def resolve_settings(payload: TomlTable, defaults: TomlTable | None = None) -> ServerSettings:
    """Build settings from explicit values layered over a ``[server]`` table.

    ``payload`` holds values given on the command line; ``None`` entries fall
    through to ``defaults``.
    """
    merged = merge_payload(payload, defaults or {})
    severity_name = merged.get("severity")
    if severity_name is None:
        severity_name = DEFAULT_SEVERITY_NAME
    if not isinstance(severity_name, str):
        raise ConfigError("server.severity must be a string")
    return ServerSettings(
        debug=_as_bool(merged.get("debug")),
        no_linter_name=_as_bool(merged.get("no_linter_name")),
        default_severity=parse_severity(severity_name),
        command=_as_command(merged.get("command")),
    )
