from __future__ import annotations

import logging
import subprocess
from typing import Callable

from lsprotocol.types import (
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    Diagnostic,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    InitializedParams,
    InitializeParams,
    PublishDiagnosticsParams,
    TextDocumentSyncKind,
)
from pydantic import ValidationError
from pygls.lsp.server import LanguageServer

from lintbridge import __version__
from lintbridge.config import ServerSettings
from lintbridge.exceptions import ConfigError
from lintbridge.invoker import Runner
from lintbridge.schema import InitializationOptions
from lintbridge.session import LintSession

logger = logging.getLogger(__name__)

SERVER_NAME = "lintbridge"


class LintLanguageServer(LanguageServer):
    """Language server publishing the lint tool's findings on open and save.

    Documents are linted from disk, so only open/close and save
    notifications are requested from the client.
    """

    def __init__(self, settings: ServerSettings, *, runner: Runner = subprocess.run):
        super().__init__(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=TextDocumentSyncKind.None_,
        )
        self.settings = settings
        self.session = LintSession(
            self.publish,
            no_linter_name=settings.no_linter_name,
            default_severity=settings.default_severity,
            runner=runner,
        )

    def publish(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        self.text_document_publish_diagnostics(
            PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )


def _initialization_options(raw: object) -> InitializationOptions:
    try:
        return InitializationOptions.model_validate(raw or {})
    except ValidationError as exc:
        raise ConfigError(f"invalid initializationOptions: {exc}") from exc


def initialize(ls: LintLanguageServer, params: InitializeParams) -> None:
    logger.debug("handling initialize")
    options = _initialization_options(params.initialization_options)
    command = options.command or list(ls.settings.command)
    ls.session.initialize(
        root_uri=params.root_uri,
        root_path=params.root_path,
        command=command,
    )


def initialized(ls: LintLanguageServer, params: InitializedParams) -> None:
    logger.debug("handling initialized")


def shutdown(ls: LintLanguageServer, params: None = None) -> None:
    logger.debug("handling shutdown")
    ls.session.shutdown()


def did_open(ls: LintLanguageServer, params: DidOpenTextDocumentParams) -> None:
    logger.debug("handling textDocument/didOpen %s", params.text_document.uri)
    ls.session.submit(params.text_document.uri)


def did_save(ls: LintLanguageServer, params: DidSaveTextDocumentParams) -> None:
    logger.debug("handling textDocument/didSave %s", params.text_document.uri)
    ls.session.submit(params.text_document.uri)


def did_close(ls: LintLanguageServer, params: DidCloseTextDocumentParams) -> None:
    return None


def did_change(ls: LintLanguageServer, params: DidChangeTextDocumentParams) -> None:
    return None


def did_change_configuration(
    ls: LintLanguageServer, params: DidChangeConfigurationParams
) -> None:
    return None


_FEATURES: tuple[tuple[str, Callable[..., None]], ...] = (
    (INITIALIZE, initialize),
    (INITIALIZED, initialized),
    (SHUTDOWN, shutdown),
    (TEXT_DOCUMENT_DID_OPEN, did_open),
    (TEXT_DOCUMENT_DID_SAVE, did_save),
    (TEXT_DOCUMENT_DID_CLOSE, did_close),
    (TEXT_DOCUMENT_DID_CHANGE, did_change),
    (WORKSPACE_DID_CHANGE_CONFIGURATION, did_change_configuration),
)


def create_server(
    settings: ServerSettings | None = None,
    *,
    runner: Runner = subprocess.run,
) -> LintLanguageServer:
    server = LintLanguageServer(settings or ServerSettings(), runner=runner)
    for method, handler in _FEATURES:
        server.feature(method)(handler)
    return server


def start(
    settings: ServerSettings | None = None,
    start_fn: Callable[[LintLanguageServer], None] | None = None,
) -> None:
    """Start the language server on stdio."""
    server = create_server(settings)
    logger.info("%s: connection opened", SERVER_NAME)
    if start_fn is None:
        server.start_io()
    else:
        start_fn(server)
    logger.info("%s: connection closed", SERVER_NAME)


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
