"""
Network configuration discovery on Windows.

The local IP comes from a connected (never written) UDP socket, the
interface from psutil, and everything else from ``ipconfig /all`` and
``arp -a``.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from netdiag.config import DEFAULT_COMMAND_TIMEOUT, ROUTE_PROBE_ADDRESS, ROUTE_PROBE_PORT
from netdiag.core.dotted import extract_dotted, split_adapter_sections
from netdiag.core.net_info import (
    ConfigDiscoverer,
    IPAddress,
    InterfaceProvider,
    NetworkConfig,
    list_interfaces,
    parse_ip,
    parse_mac,
)
from netdiag.core.utils import DiscoveryError, run_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IpconfigInfo:
    dns_servers: Tuple[str, ...] = field(default_factory=tuple)
    suffix: str = ""
    subnet_mask: Optional[IPAddress] = None
    default_gateway: Optional[IPAddress] = None


def probe_local_ip(address: str = ROUTE_PROBE_ADDRESS, port: int = ROUTE_PROBE_PORT) -> IPAddress:
    """Let the routing table choose the outbound address; no packet is sent."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect((address, port))
            local = sock.getsockname()[0]
    except OSError as exc:
        raise DiscoveryError(f"could not determine local IP: {exc}") from exc
    ip = parse_ip(local)
    if ip is None:
        raise DiscoveryError(f"failed to get local UDP address (got {local!r})")
    return ip


def parse_ipconfig(output: str, interface_name: str) -> IpconfigInfo:
    """Pick the adapter section for *interface_name* out of ``ipconfig /all``.

    The default gateway is taken from whichever adapter reports one last.
    """
    dns_servers: Tuple[str, ...] = ()
    suffix = ""
    subnet_mask = None
    gateway = None

    sections = split_adapter_sections(output)
    if interface_name in sections:
        matched = interface_name
    else:
        matched = next((name for name in sections if name and name.startswith(interface_name)), None)

    if matched is not None:
        lines = sections[matched]
        dns_servers = tuple(dict.fromkeys(v for v in extract_dotted(lines, "DNS Servers") if v))
        suffix = extract_dotted(lines, "Connection-specific DNS Suffix")[0]
        subnet_mask = parse_ip(extract_dotted(lines, "Subnet Mask")[0])
    else:
        logger.warning("No ipconfig section for adapter %r", interface_name)

    for lines in sections.values():
        for line in lines:
            if "Default Gateway" in line:
                parts = line.split(":")
                if len(parts) == 2:
                    ip = parse_ip(parts[1])
                    if ip is not None:
                        gateway = ip

    return IpconfigInfo(dns_servers=dns_servers, suffix=suffix, subnet_mask=subnet_mask, default_gateway=gateway)


def parse_arp_windows(output: str, gateway: str) -> Optional[str]:
    """Gateway MAC from ``arp -a <gateway>``.

    ``  192.168.1.1           aa-bb-cc-dd-ee-ff     dynamic``
    """
    chunks = output.split(gateway)
    if len(chunks) >= 3:
        tokens = chunks[2].split()
        mac = parse_mac(tokens[0]) if tokens else None
        if mac:
            return mac

    # The interface line only shares the gateway's text when the local IP
    # happens to start with it; otherwise look for the row directly.
    for line in output.splitlines():
        fields = line.split()
        if len(fields) >= 2 and fields[0] == gateway:
            return parse_mac(fields[1])
    return None


class WindowsConfigDiscoverer(ConfigDiscoverer):
    """Builds a :class:`NetworkConfig` from ``ipconfig`` and ``arp``."""

    def __init__(
        self,
        runner: Callable = run_command,
        interfaces: InterfaceProvider = list_interfaces,
        probe: Callable[[], IPAddress] = probe_local_ip,
    ) -> None:
        self._run = runner
        self._interfaces = interfaces
        self._probe = probe

    def discover(self) -> NetworkConfig:
        local_ip = self._probe()

        iface = None
        for candidate in self._interfaces().values():
            if str(local_ip) in candidate.addresses:
                iface = candidate
                break
        if iface is None:
            raise DiscoveryError(f"no interface holds local address {local_ip}")
        if not iface.hardware_address:
            raise DiscoveryError(f"interface {iface.name!r} has no hardware address")

        info = self._ipconfig(iface.name)
        gateway_mac = self._gateway_mac(info.default_gateway) if info.default_gateway is not None else None

        return NetworkConfig(
            interface_name=iface.name,
            hardware_address=iface.hardware_address,
            local_ip=local_ip,
            subnet_mask=info.subnet_mask,
            default_gateway=info.default_gateway,
            default_gateway_hardware_address=gateway_mac,
            dns_servers=info.dns_servers,
            dns_suffix=info.suffix,
            interface_handle=iface,
        )

    def _ipconfig(self, interface_name: str) -> IpconfigInfo:
        rc, stdout, stderr = self._run(["ipconfig", "/all"], timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            logger.warning("ipconfig /all failed: %s", (stderr or stdout).strip())
            return IpconfigInfo()
        return parse_ipconfig(stdout, interface_name)

    def _gateway_mac(self, gateway: IPAddress) -> Optional[str]:
        rc, stdout, stderr = self._run(["arp", "-a", str(gateway)], timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            logger.warning("arp -a %s failed: %s", gateway, (stderr or stdout).strip())
            return None
        return parse_arp_windows(stdout, str(gateway))
