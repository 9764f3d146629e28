from __future__ import annotations

import json
import select
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from lsprotocol import converters
from lsprotocol.types import DiagnosticSeverity

from lintbridge.config import DEFAULT_COMMAND
from lintbridge.invoker import Runner
from lintbridge.json_types import JSONObject
from lintbridge.linter import lint_document
from lintbridge.state import ConnectionState

PUBLISH_DIAGNOSTICS = "textDocument/publishDiagnostics"


class LspClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class CheckRequest:
    path: Path
    root: Path | None = None
    command: list[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))

    @property
    def uri(self) -> str:
        return self.path.resolve().as_uri()

    @property
    def root_uri(self) -> str:
        return (self.root or Path.cwd()).resolve().as_uri()


def _wait_readable(stream, deadline_ns: int) -> None:
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        if time.monotonic_ns() >= deadline_ns:
            raise LspClientError("LSP response timed out")
        return
    try:
        fd = fileno()
    except (OSError, ValueError):
        # In-memory streams have no descriptor; reads never block.
        if time.monotonic_ns() >= deadline_ns:
            raise LspClientError("LSP response timed out")
        return
    remaining_ns = deadline_ns - time.monotonic_ns()
    timeout = max(0.0, remaining_ns / 1_000_000_000)
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        raise LspClientError("LSP response timed out")


def _read_exact(stream, length: int, deadline_ns: int) -> bytes:
    body = bytearray()
    while len(body) < length:
        _wait_readable(stream, deadline_ns)
        chunk = stream.read(length - len(body))
        if not chunk:
            raise LspClientError("LSP stream closed")
        body.extend(chunk)
    return bytes(body)


def _read_rpc(stream, deadline_ns: int) -> JSONObject:
    header = b""
    while b"\r\n\r\n" not in header:
        _wait_readable(stream, deadline_ns)
        chunk = stream.read(1)
        if not chunk:
            raise LspClientError("LSP stream closed")
        header += chunk
    head, _, rest = header.partition(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n"):
        if line.lower().startswith(b"content-length:"):
            length = int(line.split(b":", 1)[1].strip())
            break
    if length <= 0:
        raise LspClientError("Invalid LSP Content-Length")
    body = rest
    if len(body) < length:
        body += _read_exact(stream, length - len(body), deadline_ns)
    message = json.loads(body.decode("utf-8"))
    if not isinstance(message, dict):
        raise LspClientError("Invalid LSP message payload")
    return message


def _write_rpc(stream, message: JSONObject) -> None:
    payload = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(payload)}\r\n\r\n".encode("utf-8")
    stream.write(header + payload)
    stream.flush()


def _read_until(
    stream,
    predicate: Callable[[JSONObject], bool],
    deadline_ns: int,
    *,
    notification_callback: Callable[[JSONObject], None] | None = None,
) -> JSONObject:
    while True:
        message = _read_rpc(stream, deadline_ns)
        if predicate(message):
            return message
        if "id" not in message and notification_callback is not None:
            notification_callback(message)


def _is_response(request_id: int) -> Callable[[JSONObject], bool]:
    return lambda message: "method" not in message and message.get("id") == request_id


def _is_diagnostics_for(uri: str) -> Callable[[JSONObject], bool]:
    def _match(message: JSONObject) -> bool:
        if message.get("method") != PUBLISH_DIAGNOSTICS:
            return False
        params = message.get("params")
        return isinstance(params, dict) and params.get("uri") == uri

    return _match


def run_check(
    request: CheckRequest,
    *,
    server_args: Sequence[str] = (),
    timeout_s: float = 120.0,
    process_factory: Callable[..., subprocess.Popen] = subprocess.Popen,
    notification_callback: Callable[[JSONObject], None] | None = None,
) -> JSONObject:
    """Lint one file through a spawned ``lintbridge serve`` over stdio.

    Returns the ``publishDiagnostics`` params the server sent for the file.
    """
    if timeout_s <= 0:
        raise LspClientError(f"invalid timeout: {timeout_s}")
    deadline_ns = time.monotonic_ns() + int(timeout_s * 1_000_000_000)
    proc = process_factory(
        [sys.executable, "-m", "lintbridge", "serve", *server_args],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        bufsize=0,
    )
    assert proc.stdin is not None
    assert proc.stdout is not None

    uri = request.uri
    initialize_id = 1
    _write_rpc(
        proc.stdin,
        {
            "jsonrpc": "2.0",
            "id": initialize_id,
            "method": "initialize",
            "params": {
                "processId": None,
                "rootUri": request.root_uri,
                "capabilities": {},
                "initializationOptions": {"command": list(request.command)},
            },
        },
    )
    response = _read_until(
        proc.stdout,
        _is_response(initialize_id),
        deadline_ns,
        notification_callback=notification_callback,
    )
    if response.get("error"):
        raise LspClientError(f"LSP error: {response['error']}")
    _write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "initialized", "params": {}})
    _write_rpc(
        proc.stdin,
        {
            "jsonrpc": "2.0",
            "method": "textDocument/didOpen",
            "params": {
                "textDocument": {
                    "uri": uri,
                    "languageId": "go",
                    "version": 1,
                    "text": "",
                }
            },
        },
    )
    published = _read_until(
        proc.stdout,
        _is_diagnostics_for(uri),
        deadline_ns,
        notification_callback=notification_callback,
    )

    shutdown_id = 2
    _write_rpc(proc.stdin, {"jsonrpc": "2.0", "id": shutdown_id, "method": "shutdown"})
    _read_until(
        proc.stdout,
        _is_response(shutdown_id),
        deadline_ns,
        notification_callback=notification_callback,
    )
    _write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "exit"})
    remaining = max(1.0, (deadline_ns - time.monotonic_ns()) / 1_000_000_000)
    try:
        _, err = proc.communicate(timeout=remaining)
    except subprocess.TimeoutExpired:
        proc.kill()
        _, err = proc.communicate(timeout=1.0)
    if proc.returncode not in (0, None):
        detail = (err or b"").decode("utf-8", errors="replace").strip()
        raise LspClientError(f"LSP server failed (exit {proc.returncode}): {detail}")
    params = published.get("params")
    if not isinstance(params, dict):
        raise LspClientError("publishDiagnostics without params")
    return params


def run_check_direct(
    request: CheckRequest,
    *,
    no_linter_name: bool = False,
    default_severity: DiagnosticSeverity = DiagnosticSeverity.Warning,
    runner: Runner = subprocess.run,
) -> JSONObject:
    """Same result shape as :func:`run_check`, without a server process."""
    state = ConnectionState.from_initialize(
        root_uri=request.root_uri,
        root_path=None,
        command=request.command,
        no_linter_name=no_linter_name,
        default_severity=default_severity,
    )
    diagnostics = lint_document(request.uri, state, runner=runner)
    converter = converters.get_converter()
    return {
        "uri": request.uri,
        "diagnostics": [converter.unstructure(diagnostic) for diagnostic in diagnostics],
    }
