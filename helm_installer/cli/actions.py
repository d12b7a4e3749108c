"""
CI runner integration: workflow commands, outputs and PATH updates.

When ``GITHUB_OUTPUT`` / ``GITHUB_PATH`` point at files, values are appended
to them; otherwise the equivalent ``::command::`` lines are printed.
"""

import logging
import os
import sys
from pathlib import Path
from typing import MutableMapping, Optional, TextIO

logger = logging.getLogger(__name__)

_COMMAND_LEVELS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_data(value: str) -> str:
    """Escape a value for use in a workflow command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(
    command: str, message: str, properties: str = "", stream: Optional[TextIO] = None
):
    """Write a ``::command properties::message`` line."""
    stream = stream or sys.stdout
    head = f"{command} {properties}" if properties else command
    stream.write(f"::{head}::{escape_data(message)}\n")
    stream.flush()


def is_running_in_actions(environ: Optional[MutableMapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_ACTIONS") == "true"


class ActionsLogFormatter(logging.Formatter):
    """Render debug, warning and error records as workflow commands."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMAND_LEVELS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_data(message)}"


def _append_to_file(path: str, line: str):
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{line}\n")


def set_output(
    name: str,
    value: str,
    environ: Optional[MutableMapping[str, str]] = None,
    stream: Optional[TextIO] = None,
):
    """
    Publish a named step output.

    Example:
        >>> set_output("helm-path", "/opt/hostedtoolcache/helm/3.5.3/x64/linux-amd64/helm")
    """
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")

    if output_file:
        _append_to_file(output_file, f"{name}={value}")
    else:
        issue_command("set-output", value, f"name={name}", stream=stream)


def add_path(
    directory: Path,
    environ: Optional[MutableMapping[str, str]] = None,
    stream: Optional[TextIO] = None,
):
    """
    Prepend a directory to PATH for this process and later workflow steps.
    """
    environ = os.environ if environ is None else environ
    path_file = environ.get("GITHUB_PATH")

    if path_file:
        _append_to_file(path_file, str(directory))
    else:
        issue_command("add-path", str(directory), stream=stream)

    environ["PATH"] = f"{directory}{os.pathsep}{environ['PATH']}"


def publish_tool_directory(
    tool_path: Path,
    environ: Optional[MutableMapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> bool:
    """
    Best-effort PATH update for a located executable.

    Nothing is added when PATH already starts with the executable's
    directory. Failures are ignored because the path is still published as a
    step output.

    Returns:
        True if the directory was added
    """
    environ = os.environ if environ is None else environ
    directory = tool_path.parent

    try:
        if environ["PATH"].startswith(str(directory)):
            return False
        add_path(directory, environ, stream=stream)
        return True
    except Exception:
        # PATH is optional; the step output still carries the location
        return False


def set_failed(message: str, stream: Optional[TextIO] = None) -> int:
    """
    Report a step failure.

    Returns:
        The exit code to use (always 1)
    """
    issue_command("error", message, stream=stream)
    return 1
