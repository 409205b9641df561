"""
Ping / ICMP reachability check — cross-platform.

Shells out to the system ``ping`` binary and parses its summary lines.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Optional

from netdiag.config import (
    PLATFORM,
    DEFAULT_PING_COUNT,
    DEFAULT_PING_SIZE_UNIX,
    DEFAULT_PING_SIZE_WINDOWS,
    DEFAULT_PING_TIMEOUT,
    PING_PATHS,
)
from netdiag.core.utils import (
    CheckResult,
    InputError,
    Status,
    find_command,
    run_command,
)

logger = logging.getLogger(__name__)

_WIN_PACKETS = re.compile(r"Sent = (\d+), Received = (\d+), Lost = (\d+)")
_WIN_RTT = re.compile(r"Minimum = (\d+)ms, Maximum = (\d+)ms, Average = (\d+)ms")
_UNIX_PACKETS = re.compile(r"(\d+) packets transmitted, (\d+) (?:packets )?received")
_UNIX_RTT = re.compile(
    r"(?:rtt|round-trip) min/avg/max/(?:mdev|stddev) = "
    r"(\d+(?:\.\d+)?)/(\d+(?:\.\d+)?)/(\d+(?:\.\d+)?)/(\d+(?:\.\d+)?) ms"
)


def _default_size(windows: bool) -> int:
    return DEFAULT_PING_SIZE_WINDOWS if windows else DEFAULT_PING_SIZE_UNIX


@dataclass(frozen=True)
class PingOptions:
    count: int = DEFAULT_PING_COUNT
    timeout: float = DEFAULT_PING_TIMEOUT  # seconds per echo
    packet_size: Optional[int] = None  # None → platform default

    def normalized(self, windows: Optional[bool] = None) -> "PingOptions":
        """Return a copy with every non-positive value replaced by its default."""
        if windows is None:
            windows = PLATFORM.is_windows
        return replace(
            self,
            count=self.count if self.count > 0 else DEFAULT_PING_COUNT,
            timeout=self.timeout if self.timeout > 0 else DEFAULT_PING_TIMEOUT,
            packet_size=self.packet_size if self.packet_size and self.packet_size > 0 else _default_size(windows),
        )


@dataclass(frozen=True)
class PingResult:
    host: str
    sent: int = 0
    received: int = 0
    lost: int = 0
    packet_loss: float = 0.0  # percent
    min_rtt: timedelta = timedelta(0)
    avg_rtt: timedelta = timedelta(0)
    max_rtt: timedelta = timedelta(0)
    stddev_rtt: timedelta = timedelta(0)
    success: bool = False
    error_message: str = ""
    raw_output: str = ""

    def __str__(self) -> str:
        def ms(value: timedelta) -> str:
            return f"{value.total_seconds() * 1000:.2f}ms"

        out = [f"Ping statistics for {self.host}:", "-" * 40]
        if self.error_message:
            out.append(f"Error: {self.error_message}")
        out.append(f"Packets: Sent = {self.sent}, Received = {self.received}, "
                   f"Lost = {self.lost} ({self.packet_loss:.1f}% loss)")
        if self.received > 0:
            out.append("Round Trip Times:")
            out.append(f"  Minimum = {ms(self.min_rtt)}")
            out.append(f"  Maximum = {ms(self.max_rtt)}")
            out.append(f"  Average = {ms(self.avg_rtt)}")
            if self.stddev_rtt:
                out.append(f"  StdDev  = {ms(self.stddev_rtt)}")
        out.append(f"Status: {'SUCCESS' if self.success else 'FAILED'}")
        return "\n".join(out)


# ── Command & parsers ─────────────────────────────────────────────────────────


def build_ping_command(host: str, options: PingOptions, windows: bool, ping_path: str = "ping") -> list[str]:
    """Build the correct ``ping`` invocation for the host OS."""
    if windows:
        return [
            ping_path,
            "-n", str(options.count),
            "-w", str(int(options.timeout * 1000)),
            "-l", str(options.packet_size),
            host,
        ]
    return [
        ping_path,
        "-c", str(options.count),
        "-W", str(max(1, math.ceil(options.timeout))),
        "-s", str(options.packet_size),
        host,
    ]


def parse_windows_ping_output(output: str) -> dict:
    """``Packets: Sent = 4, Received = 4, Lost = 0`` and ``Minimum = 1ms, …``."""
    stats: dict = {}
    m = _WIN_PACKETS.search(output)
    if m:
        stats["sent"], stats["received"], stats["lost"] = (int(g) for g in m.groups())
    m = _WIN_RTT.search(output)
    if m:
        stats["min_ms"] = float(m.group(1))
        stats["max_ms"] = float(m.group(2))
        stats["avg_ms"] = float(m.group(3))
    return stats


def parse_unix_ping_output(output: str) -> dict:
    """iputils / BSD summary lines: packet counts and RTT."""
    stats: dict = {}
    m = _UNIX_PACKETS.search(output)
    if m:
        stats["sent"] = int(m.group(1))
        stats["received"] = int(m.group(2))
    m = _UNIX_RTT.search(output)
    if m:
        stats["min_ms"] = float(m.group(1))
        stats["avg_ms"] = float(m.group(2))
        stats["max_ms"] = float(m.group(3))
        stats["mdev_ms"] = float(m.group(4))
    return stats


# ── Public API ────────────────────────────────────────────────────────────────


def ping(host: str, options: Optional[PingOptions] = None, windows: Optional[bool] = None) -> PingResult:
    """Ping *host* and return its statistics.

    Only an empty *host* raises; an unreachable host or a missing ``ping``
    binary is reported through ``success`` / ``error_message``.
    """
    if not host or not host.strip():
        raise InputError("host cannot be empty")
    if windows is None:
        windows = PLATFORM.is_windows
    options = (options or PingOptions()).normalized(windows)

    ping_path = "ping" if windows else (find_command("ping", PING_PATHS) or "ping")
    cmd = build_ping_command(host, options, windows, ping_path)
    rc, output, err = run_command(cmd, timeout=options.count * options.timeout + 10, merge_stderr=True)

    stats = parse_windows_ping_output(output) if windows else parse_unix_ping_output(output)
    sent = stats.get("sent", 0)
    received = stats.get("received", 0)
    lost = stats.get("lost")
    if lost is None:
        lost = sent - received
    packet_loss = lost / sent * 100 if sent > 0 else 0.0

    error_message = ""
    if rc != 0 and received == 0:
        text = (err or output).strip()
        reason = text.splitlines()[-1] if text else f"exit status {rc}"
        error_message = f"failed to ping {host}: {reason}"
        logger.info("%s", error_message)

    return PingResult(
        host=host,
        sent=sent,
        received=received,
        lost=lost,
        packet_loss=packet_loss,
        min_rtt=timedelta(milliseconds=stats.get("min_ms", 0.0)),
        avg_rtt=timedelta(milliseconds=stats.get("avg_ms", 0.0)),
        max_rtt=timedelta(milliseconds=stats.get("max_ms", 0.0)),
        stddev_rtt=timedelta(milliseconds=stats.get("mdev_ms", 0.0)),
        success=received > 0,
        error_message=error_message,
        raw_output=output.strip(),
    )


def ping_check(host: str, options: Optional[PingOptions] = None) -> CheckResult:
    """Ping *host* and return a structured :class:`CheckResult`."""
    result = ping(host, options)

    if result.success and result.lost == 0:
        status = Status.SUCCESS
    elif result.success:
        status = Status.PARTIAL
    else:
        status = Status.FAILURE

    details = [f"Sent: {result.sent}  |  Received: {result.received}  |  Lost: {result.lost} "
               f"({result.packet_loss:.1f}% loss)"]
    if result.received:
        details.append(
            f"RTT min/avg/max: {result.min_rtt.total_seconds() * 1000:.2f}/"
            f"{result.avg_rtt.total_seconds() * 1000:.2f}/"
            f"{result.max_rtt.total_seconds() * 1000:.2f} ms"
        )
    if result.stddev_rtt:
        details.append(f"Jitter (mdev): {result.stddev_rtt.total_seconds() * 1000:.2f} ms")
    if result.error_message:
        details.append(result.error_message)

    summary = "Host is reachable." if result.success else "Host is unreachable."

    return CheckResult(
        title="Ping — Reachability Check",
        status=status,
        target=host,
        summary=summary,
        details=details,
        raw_output=result.raw_output,
    )
