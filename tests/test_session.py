from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from lintbridge.paths import PathConfig
from lintbridge.session import LintSession, Phase
from tests.lint_helpers import issue_payload, tool_calls


class _Published:
    def __init__(self) -> None:
        self.items: list[tuple[str, list[Diagnostic]]] = []
        self._cond = threading.Condition()

    def __call__(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        with self._cond:
            self.items.append((uri, diagnostics))
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 30.0) -> list[tuple[str, list[Diagnostic]]]:
        with self._cond:
            self._cond.wait_for(lambda: len(self.items) >= count, timeout)
            return list(self.items)


def _session(published: _Published, **kwargs) -> LintSession:
    return LintSession(published, **kwargs)


def _lint_once(session: LintSession, published: _Published, uri: str) -> list[Diagnostic]:
    assert session.submit(uri) is True
    items = published.wait_for(1)
    assert items, "no diagnostics published"
    assert items[0][0] == uri
    return items[0][1]


def test_clean_run_publishes_empty_list(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    session.initialize(root_uri=project.as_uri(), command=fake_tool(stdout={"Issues": []}))
    uri = (project / "pkg" / "main.go").as_uri()

    assert _lint_once(session, published, uri) == []
    session.shutdown()


def test_no_files_exit_publishes_empty_list(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    session.initialize(root_uri=project.as_uri(), command=fake_tool(code=5))

    assert _lint_once(session, published, (project / "pkg" / "main.go").as_uri()) == []
    session.shutdown()


def test_fatal_error_publishes_single_error(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    session.initialize(root_uri=project.as_uri(), command=fake_tool(stderr="panic: x", code=1))

    diagnostics = _lint_once(session, published, (project / "pkg" / "main.go").as_uri())

    assert len(diagnostics) == 1
    assert diagnostics[0].severity == DiagnosticSeverity.Error
    assert diagnostics[0].message == "panic: x"
    session.shutdown()


def test_matching_issue_is_published_for_document(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    stdout = {
        "Issues": [
            issue_payload("pkg/main.go", line=3, column=5, linter="unused", text="x is unused"),
            issue_payload("pkg/other.go", line=1, column=1),
        ]
    }
    command = fake_tool(stdout=stdout, code=1)
    session.initialize(root_uri=project.as_uri(), command=command)

    diagnostics = _lint_once(session, published, (project / "pkg" / "main.go").as_uri())

    assert len(diagnostics) == 1
    diagnostic = diagnostics[0]
    assert (diagnostic.range.start.line, diagnostic.range.start.character) == (2, 4)
    assert diagnostic.message == "unused: x is unused"
    assert diagnostic.source == "unused"
    assert diagnostic.severity == DiagnosticSeverity.Warning

    calls = tool_calls(command)
    assert calls[0]["argv"][-1] == str(project / "pkg")
    assert calls[0]["cwd"] == str(project)
    session.shutdown()


def test_linter_name_can_be_hidden(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published, no_linter_name=True, default_severity=DiagnosticSeverity.Error)
    stdout = {"Issues": [issue_payload("pkg/main.go", linter="unused", text="x is unused")]}
    session.initialize(root_uri=project.as_uri(), command=fake_tool(stdout=stdout, code=1))

    diagnostics = _lint_once(session, published, (project / "pkg" / "main.go").as_uri())

    assert [d.message for d in diagnostics] == ["x is unused"]
    assert diagnostics[0].source == "unused"
    assert diagnostics[0].severity == DiagnosticSeverity.Error
    session.shutdown()


def test_no_config_resolves_against_document_directory(tmp_path: Path, project: Path, fake_tool) -> None:
    outside = tmp_path / "scratch"
    outside.mkdir()
    document = outside / "main.go"
    document.write_text("package main\n")
    published = _Published()
    session = _session(published)
    stdout = {"Issues": [issue_payload("main.go", text="from no-config run")]}
    command = [*fake_tool(stdout=stdout, code=1), "--no-config"]
    state = session.initialize(root_uri=project.as_uri(), command=command)

    assert state.path_config == PathConfig(no_config=True)
    diagnostics = _lint_once(session, published, document.as_uri())
    assert [d.message for d in diagnostics] == ["govet: from no-config run"]
    session.shutdown()


def test_requests_are_linted_in_submission_order(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    command = fake_tool(stdout={"Issues": []})
    session.initialize(root_uri=project.as_uri(), command=command)
    uris = [
        (project / "pkg" / "main.go").as_uri(),
        (project / "pkg" / "other.go").as_uri(),
        (project / "pkg" / "main.go").as_uri(),
    ]

    for uri in uris:
        assert session.submit(uri)
    items = published.wait_for(len(uris))

    assert [uri for uri, _ in items] == uris
    assert len(tool_calls(command)) == 3
    session.shutdown()


def test_events_before_initialize_are_dropped(project: Path) -> None:
    published = _Published()
    session = _session(published)
    assert session.phase is Phase.UNINITIALIZED
    assert session.submit((project / "pkg" / "main.go").as_uri()) is False
    assert published.items == []


def test_shutdown_closes_the_session(project: Path, fake_tool) -> None:
    published = _Published()
    session = _session(published)
    session.initialize(root_uri=project.as_uri(), command=fake_tool())
    assert session.phase is Phase.INITIALIZED

    session.shutdown()

    assert session.phase is Phase.CLOSED
    assert session.join(5)
    assert session.submit((project / "pkg" / "main.go").as_uri()) is False
    session.shutdown()
    assert session.phase is Phase.CLOSED


def test_second_initialize_keeps_first_state(project: Path, fake_tool) -> None:
    session = _session(_Published())
    first = session.initialize(root_uri=project.as_uri(), command=fake_tool())
    second = session.initialize(root_uri="file:///elsewhere", command=["other"])
    assert second is first
    session.shutdown()


def test_root_path_is_used_without_root_uri(project: Path, fake_tool) -> None:
    session = _session(_Published())
    state = session.initialize(root_uri=None, root_path=str(project), command=fake_tool())
    assert state.root_dir == str(project)
    assert state.root_uri == ""
    session.shutdown()


def test_publish_failure_is_logged_and_worker_continues(project: Path, fake_tool, caplog) -> None:
    published = _Published()
    calls = {"count": 0}

    def _flaky(uri: str, diagnostics: list[Diagnostic]) -> None:
        calls["count"] += 1
        if calls["count"] == 1:
            raise ConnectionError("transport gone")
        published(uri, diagnostics)

    session = LintSession(_flaky)
    session.initialize(root_uri=project.as_uri(), command=fake_tool())
    uri = (project / "pkg" / "main.go").as_uri()

    with caplog.at_level(logging.ERROR, logger="lintbridge.session"):
        session.submit(uri)
        session.submit(uri)
        items = published.wait_for(1)

    assert [item[0] for item in items] == [uri]
    assert any("failed to publish" in record.getMessage() for record in caplog.records)
    session.shutdown()


def test_unexpected_lint_error_is_logged_and_worker_continues(project: Path, caplog) -> None:
    published = _Published()
    attempts = {"count": 0}

    def _runner(argv, **kwargs):
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RuntimeError("runner exploded")
        return subprocess.CompletedProcess(argv, 0, stdout=b"", stderr=b"")

    session = LintSession(published, runner=_runner)
    session.initialize(root_uri=project.as_uri(), command=["golangci-lint", "run"])
    uri = (project / "pkg" / "main.go").as_uri()

    with caplog.at_level(logging.ERROR, logger="lintbridge.session"):
        session.submit(uri)
        session.submit(uri)
        items = published.wait_for(1)

    assert items == [(uri, [])]
    assert any("lint failed" in record.getMessage() for record in caplog.records)
    session.shutdown()
