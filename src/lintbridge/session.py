"""Per-connection lint session, independent of the JSON-RPC transport."""

from __future__ import annotations

import enum
import logging
import subprocess
import threading
from typing import Callable, Sequence

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from lintbridge.exceptions import QueueClosedError
from lintbridge.invariants import require_not_none
from lintbridge.invoker import Runner
from lintbridge.linter import lint_document
from lintbridge.state import ConnectionState
from lintbridge.work_queue import HandoffQueue

logger = logging.getLogger(__name__)

Publisher = Callable[[str, list[Diagnostic]], None]


class Phase(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"
    CLOSED = "closed"


class LintSession:
    """Owns the connection state, the request queue and its worker thread.

    ``publish`` is called from the worker thread with the full diagnostic
    list for a document after every run.
    """

    def __init__(
        self,
        publish: Publisher,
        *,
        no_linter_name: bool = False,
        default_severity: DiagnosticSeverity = DiagnosticSeverity.Warning,
        runner: Runner = subprocess.run,
    ) -> None:
        self._publish = publish
        self._no_linter_name = no_linter_name
        self._default_severity = default_severity
        self._runner = runner
        self._queue: HandoffQueue[str] = HandoffQueue()
        self._worker: threading.Thread | None = None
        self.phase = Phase.UNINITIALIZED
        self.state: ConnectionState | None = None

    def initialize(
        self,
        *,
        root_uri: str | None,
        command: Sequence[str],
        root_path: str | None = None,
    ) -> ConnectionState:
        if self.phase is not Phase.UNINITIALIZED:
            logger.warning("initialize received in phase %s; ignoring", self.phase.value)
            return require_not_none(self.state, reason="initialized session without state")
        self.state = ConnectionState.from_initialize(
            root_uri=root_uri,
            root_path=root_path,
            command=list(command),
            no_linter_name=self._no_linter_name,
            default_severity=self._default_severity,
        )
        logger.debug(
            "initialized: root=%s command=%s path_config=%s",
            self.state.root_dir,
            list(self.state.command),
            self.state.path_config,
        )
        self._worker = threading.Thread(
            target=self._run_worker,
            name="lintbridge-worker",
            daemon=True,
        )
        self._worker.start()
        self.phase = Phase.INITIALIZED
        return self.state

    def submit(self, uri: str) -> bool:
        """Hand ``uri`` to the worker; blocks until the worker has taken it.

        Returns False when the event was dropped because the session is not
        accepting lint requests.
        """
        if self.phase is not Phase.INITIALIZED:
            logger.warning("dropping lint request for %s in phase %s", uri, self.phase.value)
            return False
        try:
            self._queue.put(uri)
        except QueueClosedError:
            logger.warning("dropping lint request for %s: queue closed", uri)
            return False
        return True

    def shutdown(self) -> None:
        if self.phase in (Phase.SHUTTING_DOWN, Phase.CLOSED):
            return
        self.phase = Phase.SHUTTING_DOWN
        self._queue.close()
        self.phase = Phase.CLOSED

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to exit; True if it is no longer running."""
        if self._worker is None:
            return True
        self._worker.join(timeout)
        return not self._worker.is_alive()

    def _run_worker(self) -> None:
        state = require_not_none(self.state, reason="worker started before initialize")
        for uri in self._queue:
            try:
                diagnostics = lint_document(uri, state, runner=self._runner)
            except Exception:
                logger.exception("lint failed for %s", uri)
                continue
            try:
                self._publish(uri, diagnostics)
            except Exception:
                logger.exception("failed to publish diagnostics for %s", uri)
        logger.debug("lint worker stopped")
