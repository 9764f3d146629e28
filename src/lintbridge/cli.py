from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from click.core import ParameterSource
from lsprotocol.types import DiagnosticSeverity

from lintbridge import server
from lintbridge.config import (
    DEFAULT_CONFIG_NAME,
    ServerSettings,
    TomlTable,
    resolve_settings,
    server_defaults,
)
from lintbridge.exceptions import ConfigError
from lintbridge.json_types import JSONObject
from lintbridge.lsp_client import CheckRequest, LspClientError, run_check, run_check_direct
from lintbridge.schema import CheckResponseDTO, DiagnosticDTO

app = typer.Typer(add_completion=False, help="Language server for JSON-reporting lint tools.")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_SETTING_KEYS = {"nolintername": "no_linter_name"}
_CONFIG_HELP = f"Server settings file (default: ./{DEFAULT_CONFIG_NAME} if present)."
_SEVERITY_HELP = (
    "Default severity for issues without one. "
    "Choices are: Err(or), Warn(ing), Info(rmation) or Hint."
)


def _configure_logging(debug: bool) -> None:
    # stdout carries the protocol stream; logs go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _param_is_command_line(ctx: typer.Context, param: str) -> bool:
    return ctx.get_parameter_source(param) is ParameterSource.COMMANDLINE


def _settings_from_context(
    ctx: typer.Context,
    *,
    config: Optional[Path],
    flags: TomlTable,
) -> ServerSettings:
    defaults = server_defaults(config_path=config) if config else server_defaults()
    payload: TomlTable = {}
    for name, value in flags.items():
        if _param_is_command_line(ctx, name):
            payload[_SETTING_KEYS.get(name, name)] = value
    try:
        return resolve_settings(payload, defaults)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def serve(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Output debug log."),
    nolintername: bool = typer.Option(
        False, "--nolintername", help="Don't show a linter name in message."
    ),
    severity: str = typer.Option("Warn", "--severity", help=_SEVERITY_HELP),
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Serve the language server protocol on stdio."""
    settings = _settings_from_context(
        ctx,
        config=config,
        flags={"debug": debug, "nolintername": nolintername, "severity": severity},
    )
    _configure_logging(settings.debug)
    server.start(settings)


def _diagnostic_dto(raw: JSONObject) -> DiagnosticDTO:
    range_ = raw.get("range")
    start = range_.get("start") if isinstance(range_, dict) else None
    if not isinstance(start, dict):
        start = {}
    severity = raw.get("severity")
    source = raw.get("source")
    return DiagnosticDTO(
        line=int(start.get("line") or 0),
        character=int(start.get("character") or 0),
        severity=DiagnosticSeverity(severity).name if isinstance(severity, int) else "",
        source=source if isinstance(source, str) else None,
        message=str(raw.get("message", "")),
    )


def _check_response(result: JSONObject) -> CheckResponseDTO:
    diagnostics = result.get("diagnostics")
    items = diagnostics if isinstance(diagnostics, list) else []
    return CheckResponseDTO(
        uri=str(result.get("uri", "")),
        diagnostics=[_diagnostic_dto(item) for item in items if isinstance(item, dict)],
    )


@app.command()
def check(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True),
    command: Optional[List[str]] = typer.Argument(
        None, help="Lint command to run instead of the configured one; put it after --."
    ),
    root: Path = typer.Option(Path("."), "--root", help="Workspace root directory."),
    direct: bool = typer.Option(
        True,
        "--direct/--lsp",
        help="Lint in-process, or through a spawned server over stdio.",
    ),
    nolintername: bool = typer.Option(False, "--nolintername"),
    severity: str = typer.Option("Warn", "--severity", help=_SEVERITY_HELP),
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
    timeout: float = typer.Option(120.0, "--timeout", help="Seconds to wait in --lsp mode."),
) -> None:
    """Lint one file and print its diagnostics as JSON.

    Options are not accepted after ``--``; everything there is the command.
    """
    settings = _settings_from_context(
        ctx,
        config=config,
        flags={"nolintername": nolintername, "severity": severity},
    )
    request = CheckRequest(path=path, root=root, command=list(command or settings.command))
    if direct:
        result = run_check_direct(
            request,
            no_linter_name=settings.no_linter_name,
            default_severity=settings.default_severity,
        )
    else:
        server_args = ["--severity", settings.default_severity.name]
        if settings.no_linter_name:
            server_args.append("--nolintername")
        try:
            result = run_check(request, server_args=server_args, timeout_s=timeout)
        except LspClientError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=2)
    response = _check_response(result)
    typer.echo(json.dumps(response.model_dump(), indent=2, sort_keys=True))
    raise typer.Exit(code=1 if response.diagnostics else 0)


def main() -> None:  # pragma: no cover
    app()
