"""lintbridge package root."""

from lintbridge.exceptions import ConfigError, LintBridgeError, NeverThrown, QueueClosedError
from lintbridge.invariants import never

__all__ = [
    "__version__",
    "ConfigError",
    "LintBridgeError",
    "NeverThrown",
    "QueueClosedError",
    "never",
]

__version__ = "0.1.0"
