from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from lintbridge.state import ConnectionState


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "pkg" / "main.go").write_text("package pkg\n")
    (root / "pkg" / "other.go").write_text("package pkg\n")
    return root


@pytest.fixture
def fake_tool(tmp_path: Path) -> Callable[..., list[str]]:
    """Write a stand-in lint tool; returns the command that runs it.

    The tool records its argv and working directory next to itself, prints
    the given stdout/stderr and exits with ``code``.
    """

    def _write(
        *,
        stdout: str | dict[str, object] = "",
        stderr: str = "",
        code: int = 0,
        name: str = "fake_tool.py",
    ) -> list[str]:
        if isinstance(stdout, dict):
            stdout = json.dumps(stdout)
        tools = tmp_path / "tools"
        tools.mkdir(exist_ok=True)
        script = tools / name
        record = tools / (name + ".calls")
        script.write_text(
            "import json, os, sys\n"
            f"with open({str(record)!r}, 'a') as fh:\n"
            "    fh.write(json.dumps({'argv': sys.argv[1:], 'cwd': os.getcwd()}) + '\\n')\n"
            f"sys.stdout.write({stdout!r})\n"
            f"sys.stderr.write({stderr!r})\n"
            f"sys.exit({code})\n"
        )
        return [sys.executable, str(script)]

    return _write


@pytest.fixture
def make_state():
    def _make(root: Path | None, command: list[str], **kwargs) -> ConnectionState:
        root_uri = root.as_uri() if root is not None else None
        return ConnectionState.from_initialize(
            root_uri=root_uri,
            root_path=None,
            command=command,
            **kwargs,
        )

    return _make
