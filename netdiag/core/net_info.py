"""
Local network configuration: the snapshot model and its cache.

A :class:`NetworkConfig` snapshot is produced by a platform discoverer
(``ip``/``ifconfig``/``arp`` on Linux, ``ipconfig``/``arp`` on Windows) and
published through a :class:`ConfigCache`.  Interface enumeration uses
``psutil``.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

import psutil

from netdiag.config import PLATFORM
from netdiag.core.utils import CheckResult, DiscoveryError, Status

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{1,2}(?:([:-])[0-9A-Fa-f]{1,2})(?:\1[0-9A-Fa-f]{1,2}){4}$")


def parse_mac(text: Optional[str]) -> Optional[str]:
    """Normalise ``AA-BB-CC-DD-EE-FF`` / ``aa:bb:…`` to lowercase colon form."""
    if not text:
        return None
    text = text.strip()
    if not _MAC_RE.match(text):
        return None
    return ":".join(part.zfill(2) for part in re.split(r"[:-]", text)).lower()


def parse_ip(text: Optional[str]) -> Optional[IPAddress]:
    """Parse an IP address, tolerating a ``%zone`` suffix; ``None`` if invalid."""
    if not text:
        return None
    try:
        return ipaddress.ip_address(text.strip().split("%", 1)[0])
    except ValueError:
        return None


# ── Interfaces ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class InterfaceDescriptor:
    """What the OS reports about one network interface."""

    name: str
    hardware_address: Optional[str] = None
    addresses: Tuple[str, ...] = ()
    netmasks: Tuple[str, ...] = ()
    mtu: int = 0
    is_up: bool = False


def list_interfaces() -> Dict[str, InterfaceDescriptor]:
    """Enumerate interfaces via psutil, keyed by name."""
    stats = psutil.net_if_stats()
    result: Dict[str, InterfaceDescriptor] = {}
    for name, snics in psutil.net_if_addrs().items():
        mac = None
        addresses: List[str] = []
        netmasks: List[str] = []
        for snic in snics:
            if snic.family == psutil.AF_LINK:
                mac = parse_mac(snic.address)
            elif snic.family in (socket.AF_INET, socket.AF_INET6):
                addresses.append(snic.address.split("%", 1)[0])
                if snic.netmask:
                    netmasks.append(snic.netmask)
        st = stats.get(name)
        result[name] = InterfaceDescriptor(
            name=name,
            hardware_address=mac,
            addresses=tuple(addresses),
            netmasks=tuple(netmasks),
            mtu=st.mtu if st else 0,
            is_up=st.isup if st else False,
        )
    return result


InterfaceProvider = Callable[[], Dict[str, InterfaceDescriptor]]


# ── Snapshot ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NetworkConfig:
    """One resolved view of the host's active network configuration.

    ``interface_name`` and ``hardware_address`` are always present; every
    other field is best-effort and may be ``None`` / empty.
    """

    interface_name: str
    hardware_address: str
    local_ip: Optional[IPAddress] = None
    subnet_mask: Optional[IPAddress] = None
    default_gateway: Optional[IPAddress] = None
    default_gateway_hardware_address: Optional[str] = None
    dns_servers: Tuple[str, ...] = ()
    dns_suffix: str = ""
    interface_handle: Optional[InterfaceDescriptor] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.interface_name:
            raise ValueError("interface_name must not be empty")
        if not self.hardware_address:
            raise ValueError("hardware_address must not be empty")

    def details(self) -> List[str]:
        def show(value: object) -> str:
            return str(value) if value else "<none>"

        lines = [
            f"Interface: {self.interface_name}",
            f"Hardware address: {self.hardware_address}",
            f"Local IP: {show(self.local_ip)}",
            f"Subnet mask: {show(self.subnet_mask)}",
            f"Default gateway: {show(self.default_gateway)}",
            f"Gateway hardware address: {show(self.default_gateway_hardware_address)}",
            f"DNS servers: {', '.join(self.dns_servers) or '<none>'}",
            f"DNS suffix: {show(self.dns_suffix)}",
        ]
        iface = self.interface_handle
        if iface is not None:
            state = "up" if iface.is_up else "down"
            lines.append(f"Link: {state}, MTU {iface.mtu or '<unknown>'}")
            lines.append(f"Interface netmasks: {', '.join(iface.netmasks) or '<none>'}")
        return lines

    def __str__(self) -> str:
        return "\n".join(self.details())


# ── Discovery & cache ─────────────────────────────────────────────────────────


class ConfigDiscoverer:
    """Produces a fresh :class:`NetworkConfig` or raises :class:`DiscoveryError`."""

    def discover(self) -> NetworkConfig:
        raise NotImplementedError


def default_discoverer() -> ConfigDiscoverer:
    """Pick the discoverer for the host OS."""
    if PLATFORM.is_windows:
        from netdiag.core.windows_config import WindowsConfigDiscoverer
        return WindowsConfigDiscoverer()
    from netdiag.core.linux_config import LinuxConfigDiscoverer
    return LinuxConfigDiscoverer()


class ConfigCache:
    """Holds the last discovered snapshot.

    A single lock guards lookups and rebuilds, so callers racing a cold
    cache wait for one discovery and all receive the same instance.
    """

    def __init__(self, discoverer: Optional[ConfigDiscoverer] = None) -> None:
        self._discoverer = discoverer or default_discoverer()
        self._lock = threading.Lock()
        self._snapshot: Optional[NetworkConfig] = None

    @property
    def cached(self) -> Optional[NetworkConfig]:
        """The published snapshot, without triggering discovery."""
        return self._snapshot

    def get(self) -> NetworkConfig:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._discover()
            return self._snapshot

    def refresh(self) -> NetworkConfig:
        """Rediscover and publish a new snapshot.

        If discovery fails the error propagates and the previous snapshot
        stays published.
        """
        with self._lock:
            self._snapshot = self._discover()
            return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None

    def _discover(self) -> NetworkConfig:
        logger.debug("Discovering network configuration with %s", type(self._discoverer).__name__)
        snapshot = self._discoverer.discover()
        logger.info("Discovered configuration for interface %s", snapshot.interface_name)
        return snapshot


# ── Public API ────────────────────────────────────────────────────────────────


def network_info(cache: ConfigCache, refresh: bool = False) -> CheckResult:
    """Render the current snapshot (discovering it if needed) as a result."""
    try:
        config = cache.refresh() if refresh else cache.get()
    except DiscoveryError as exc:
        return CheckResult(
            title="Network Configuration",
            status=Status.ERROR,
            summary=f"Discovery failed: {exc}",
        )

    missing = [
        name for name, value in (
            ("local IP", config.local_ip),
            ("subnet mask", config.subnet_mask),
            ("default gateway", config.default_gateway),
            ("DNS servers", config.dns_servers),
        ) if not value
    ]
    if missing:
        status = Status.PARTIAL
        summary = f"Configuration for {config.interface_name} is missing: {', '.join(missing)}."
    else:
        status = Status.SUCCESS
        summary = f"Active interface {config.interface_name}."

    return CheckResult(
        title="Network Configuration",
        status=status,
        target=config.interface_name,
        summary=summary,
        details=config.details(),
    )
