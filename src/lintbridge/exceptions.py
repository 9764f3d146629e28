"""Exception types raised by lintbridge."""

from __future__ import annotations


class LintBridgeError(RuntimeError):
    """Base class for errors raised by lintbridge itself."""


class ConfigError(LintBridgeError):
    """Server configuration could not be resolved."""


class QueueClosedError(LintBridgeError):
    """The lint request queue was closed before the hand-off completed."""


class NeverThrown(LintBridgeError):
    """Sentinel exception for code paths that must be unreachable.

    Raised by :func:`lintbridge.invariants.never`. The keyword payload passed
    to ``never()`` is kept on the exception so a log record shows the state
    that reached the supposedly dead branch.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})

    def __str__(self) -> str:
        reason = super().__str__()
        if not self.env:
            return reason
        details = ", ".join(f"{key}={value!r}" for key, value in sorted(self.env.items()))
        return f"{reason} ({details})"
