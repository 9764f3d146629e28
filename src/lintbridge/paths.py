"""Map paths reported by the lint tool back to the document that triggered a run.

The tool lints a whole directory and reports file names relative to a base
directory it never states. That base depends on how the tool was invoked:

* ``--path-mode=abs`` makes it report absolute paths;
* ``--no-config`` makes paths relative to its working directory;
* ``--config <file>`` makes them relative to the config file's directory;
* otherwise they are relative to the directory of the discovered config,
  which is assumed to be the workspace root.

Helpers here recover that base directory and decide which reported issues
belong to the triggering document.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:
    from lintbridge.schema import Issue

ABS_PATH_MODE = "abs"


@dataclass(frozen=True)
class PathConfig:
    """Path handling flags extracted from the tool command line."""

    path_mode: str = ""
    config_dir: str = ""
    no_config: bool = False

    def base_dir(self, cmd_dir: str, root_dir: str) -> str:
        """Return the directory relative issue paths are resolved against.

        An empty result means paths are used as reported, relative to the
        server's own working directory.
        """
        if self.path_mode == ABS_PATH_MODE:
            return ""
        if self.no_config:
            return cmd_dir
        if self.config_dir:
            return self.config_dir
        return root_dir


def parse_command_flags(command: Sequence[str]) -> PathConfig:
    """Extract path related flags from the tool command line.

    Arguments are scanned left to right and a later occurrence of a flag
    overwrites an earlier one.
    """
    path_mode = ""
    config_dir = ""
    no_config = False
    for index, raw in enumerate(command):
        arg = raw[2:] if raw.startswith("--") else raw
        has_next = index + 1 < len(command)

        if arg.startswith("path-mode="):
            path_mode = arg[len("path-mode="):]
        elif arg == "path-mode" and has_next:
            path_mode = command[index + 1]

        if arg.startswith("config="):
            config_dir = os.path.dirname(arg[len("config="):]) or "."
        elif arg == "config" and has_next:
            config_dir = os.path.dirname(command[index + 1]) or "."

        if arg == "no-config":
            no_config = True
    return PathConfig(path_mode=path_mode, config_dir=config_dir, no_config=no_config)


def uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    return uri


def target_path(path: str) -> str:
    """Absolute, normalised form of a document path used for comparisons."""
    return os.path.normpath(os.path.abspath(path))


def issue_matches(target: str, issue_path: str, base_dir: str) -> bool:
    """Whether an issue reported at ``issue_path`` belongs to ``target``.

    ``target`` must already be absolute and normalised (see
    :func:`target_path`).
    """
    if os.path.isabs(issue_path):
        return os.path.normpath(issue_path) == target

    candidate = os.path.normpath(os.path.abspath(os.path.join(base_dir, issue_path)))
    if candidate == target:
        return True
    # The tool may have resolved against a config directory we could not
    # infer (a global config, nested module roots). Accept a same-named file
    # whose absolute path ends with the reported relative path. This is a
    # plain string suffix test, not a path-component one.
    if os.path.basename(issue_path) != os.path.basename(target):
        return False
    return target.endswith(issue_path)


def filter_issues(target: str, issues: Iterable[Issue], base_dir: str) -> list[Issue]:
    """Keep the issues reported for ``target``, preserving tool output order."""
    return [
        issue for issue in issues if issue_matches(target, issue.pos.filename, base_dir)
    ]
