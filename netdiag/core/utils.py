"""
Shared utilities: error types, command lookup, subprocess runner, result formatting.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
from rich import box

from netdiag.config import PLATFORM

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


# ── Errors ────────────────────────────────────────────────────────────────────


class NetDiagError(Exception):
    """Base class for every error raised by netdiag."""


class InputError(NetDiagError, ValueError):
    """Rejected input (empty host, empty domain …); nothing was attempted."""


class DiscoveryError(NetDiagError):
    """Network configuration discovery failed; no snapshot was produced."""


class ToolUnavailableError(DiscoveryError):
    """An external tool essential to discovery could not be found."""


class OutputFormatError(DiscoveryError):
    """A tool produced output in a shape the parser does not understand."""


class UnsafeInterfaceNameError(DiscoveryError):
    """The interface name contains shell metacharacters."""


# ── Result types ──────────────────────────────────────────────────────────────


class Status(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass
class CheckResult:
    """Presentation container for every diagnostic rendered by the CLI."""

    title: str
    status: Status
    target: str = ""
    summary: str = ""
    details: List[str] = field(default_factory=list)
    raw_output: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().strftime("%Y-%m-%d %H:%M:%S"))


# ── Pretty printing ──────────────────────────────────────────────────────────


_STATUS_CONFIG = {
    Status.SUCCESS: {"icon": "✔", "badge": "PASS", "style": "bold green",  "border": "green"},
    Status.FAILURE: {"icon": "✘", "badge": "FAIL", "style": "bold red",    "border": "red"},
    Status.PARTIAL: {"icon": "⚠", "badge": "WARN", "style": "bold yellow", "border": "yellow"},
    Status.ERROR:   {"icon": "⊘", "badge": "ERR",  "style": "bold red",    "border": "red"},
}


def print_result(result: CheckResult, show_raw: bool = False) -> None:
    """Render a *CheckResult* to the terminal via Rich."""
    cfg = _STATUS_CONFIG[result.status]
    console.print()

    header = Text()
    header.append(f" {cfg['badge']} ", style=f"bold white on {cfg['border']}")
    header.append(f"  {cfg['icon']}  ", style=cfg["style"])
    header.append(result.title, style="bold white")
    if result.target:
        header.append("  ➜  ", style="dim")
        header.append(result.target, style="bold cyan")

    body = Text()
    if result.summary:
        body.append("  ")
        body.append(result.summary, style=cfg["style"])
        body.append("\n")

    if result.details:
        body.append("\n")
        for d in result.details:
            body.append("    ")
            body.append("› ", style=f"dim {cfg['border']}")
            body.append(f"{d}\n")

    if not result.summary and not result.details:
        body.append("  (no details)\n", style="dim")

    console.print(
        Panel(
            body,
            title=header,
            title_align="left",
            subtitle=f"[dim italic]⏱  {result.timestamp}[/dim italic]",
            subtitle_align="right",
            border_style=cfg["border"],
            box=box.ROUNDED,
            expand=True,
            padding=(0, 1),
        )
    )

    if show_raw and result.raw_output:
        console.print(
            Panel(
                result.raw_output,
                title="[dim italic]📋 Raw Output[/dim italic]",
                title_align="left",
                border_style="bright_black",
                box=box.SIMPLE,
                expand=True,
                padding=(0, 2),
            )
        )


def print_error(message: str) -> None:
    err_console.print(f"  [bold red]✘[/bold red] [red]{message}[/red]")


def setup_logging(verbose: bool = False) -> None:
    """Route the package's ``logging`` output through Rich on stderr."""
    pkg_logger = logging.getLogger("netdiag")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        handler = RichHandler(console=err_console, show_path=False, log_time_format="[%X]")
        handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(handler)


# ── Command lookup ────────────────────────────────────────────────────────────


def find_command(name: str, candidate_paths: Sequence[str] = ()) -> str:
    """Return the first usable executable for *name*, or ``""``.

    Each candidate path is tried verbatim, then *name* is searched on PATH.
    An empty string means the tool is unavailable; callers decide whether
    that is fatal.
    """
    for path in candidate_paths:
        if shutil.which(path):
            return path
    found = shutil.which(name)
    if found:
        return found
    logger.debug("Command %r not found in %s or on PATH", name, list(candidate_paths))
    return ""


# ── Subprocess wrapper ────────────────────────────────────────────────────────


def run_command(
    cmd: Sequence[str],
    timeout: float = 60,
    capture: bool = True,
    merge_stderr: bool = False,
) -> Tuple[int, str, str]:
    """Run an external command and return *(returncode, stdout, stderr)*.

    With *merge_stderr* the child's stderr is folded into stdout so the
    caller sees the combined stream in order.

    Failures to run at all are reported, not raised:
    ``-1`` not found, ``-2`` timed out, ``-3`` any other OS error.

    On Windows many network utilities output to the OEM codepage (e.g. cp437/cp850).
    We decode leniently so non-ASCII characters never crash the tool.
    """
    kwargs: dict = dict(
        timeout=timeout,
    )

    if capture:
        kwargs["stdout"] = subprocess.PIPE
        kwargs["stderr"] = subprocess.STDOUT if merge_stderr else subprocess.PIPE

    if PLATFORM.is_windows:
        # Hide the console window that some tools try to spawn
        si = subprocess.STARTUPINFO()  # type: ignore[attr-defined]
        si.dwFlags |= subprocess.STARTF_USESHOWWINDOW  # type: ignore[attr-defined]
        kwargs["startupinfo"] = si

    logger.debug("Running %s (timeout %ss)", " ".join(cmd), timeout)
    try:
        proc = subprocess.run(list(cmd), **kwargs)
        stdout = proc.stdout.decode("utf-8", errors="replace") if proc.stdout else ""
        stderr = proc.stderr.decode("utf-8", errors="replace") if proc.stderr else ""
        return proc.returncode, stdout, stderr
    except FileNotFoundError:
        return -1, "", f"Command not found: {cmd[0]}"
    except subprocess.TimeoutExpired:
        return -2, "", f"Command timed out after {timeout}s"
    except OSError as exc:
        return -3, "", str(exc)
