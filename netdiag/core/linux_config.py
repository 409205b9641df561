"""
Network configuration discovery on Linux (and other non-Windows hosts).

Runs ``ip route get``, ``ifconfig <iface>``, greps the dhclient lease file
and asks ``arp`` for the gateway's MAC.  Only the route lookup and the
interface lookup are essential; the remaining steps leave their fields
empty when the tool is missing or fails.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from netdiag.config import (
    ARP_PATHS,
    DEFAULT_COMMAND_TIMEOUT,
    DHCP_LEASE_DIR,
    GREP_PATHS,
    IFCONFIG_PATHS,
    IP_PATHS,
    LEASE_DNS_SERVERS_OFFSET,
    LEASE_DOMAIN_NAME_OFFSET,
    ROUTE_PROBE_ADDRESS,
    SHELL_METACHARACTERS,
)
from netdiag.core.net_info import (
    ConfigDiscoverer,
    IPAddress,
    InterfaceProvider,
    NetworkConfig,
    list_interfaces,
    parse_ip,
    parse_mac,
)
from netdiag.core.utils import (
    DiscoveryError,
    OutputFormatError,
    ToolUnavailableError,
    UnsafeInterfaceNameError,
    find_command,
    run_command,
)

logger = logging.getLogger(__name__)

_NETMASK_RE = re.compile(r"(?:netmask\s+|Mask:)(\d{1,3}(?:\.\d{1,3}){3})")


@dataclass(frozen=True)
class RouteInfo:
    gateway: Optional[IPAddress]
    interface: str
    local_ip: Optional[IPAddress]


# ── Parsers ───────────────────────────────────────────────────────────────────


def parse_route_get(output: str) -> RouteInfo:
    """Parse ``ip route get <addr>``.

    ``8.8.8.8 via 192.168.1.1 dev eth0 src 192.168.1.10 uid 1000``
    """
    fields = output.split()
    if len(fields) < 7:
        raise OutputFormatError(f"unexpected 'ip route get' output: {output.strip()!r}")

    def after(keyword: str, position: int) -> Optional[str]:
        if keyword in fields:
            idx = fields.index(keyword)
            return fields[idx + 1] if idx + 1 < len(fields) else None
        return fields[position] if keyword != "via" else None

    # Positions 2/4/6 hold gateway/interface/source in the "via" form; the
    # keywords also cover directly connected destinations.
    interface = after("dev", 4)
    if not interface:
        raise OutputFormatError(f"no interface in 'ip route get' output: {output.strip()!r}")
    return RouteInfo(
        gateway=parse_ip(after("via", 2)),
        interface=interface,
        local_ip=parse_ip(after("src", 6)),
    )


def parse_ifconfig_netmask(output: str) -> Optional[IPAddress]:
    """Subnet mask from the second line of ``ifconfig <iface>``."""
    lines = output.splitlines()
    if len(lines) < 2:
        return None
    line = lines[1].strip()
    fields = line.split()
    if len(fields) > 4:
        mask = parse_ip(fields[4])
        if mask is not None:
            return mask
    m = _NETMASK_RE.search(line)
    if m:
        logger.debug("ifconfig field 5 is %r; took netmask from label instead",
                     fields[4] if len(fields) > 4 else None)
        return parse_ip(m.group(1))
    return None


def _lease_value(line: str, label: str, offset: int) -> str:
    expected = f"option {label} "
    if line.startswith(expected[:offset]) and len(line) > offset:
        value = line[offset:]
    else:
        idx = line.find(label)
        logger.warning("Lease line %r does not match the expected layout; parsing after %r", line, label)
        value = line[idx + len(label):]
    return value.strip().rstrip(";").strip()


def parse_dhcp_lease_lines(output: str) -> Tuple[List[str], str]:
    """Extract DNS servers and domain suffix from ``grep domain-name`` output."""
    servers: List[str] = []
    suffix = ""
    for raw in output.strip().splitlines():
        line = raw.strip()
        if "domain-name-servers" in line:
            value = _lease_value(line, "domain-name-servers", LEASE_DNS_SERVERS_OFFSET)
            for item in value.split(","):
                item = item.strip()
                if item and item not in servers:
                    servers.append(item)
        elif "domain-name" in line:
            suffix = _lease_value(line, "domain-name", LEASE_DOMAIN_NAME_OFFSET).strip('"')
    return servers, suffix


def parse_arp_linux(output: str) -> Optional[str]:
    """MAC address from ``arp -e <ip>`` (third column of the first data row)."""
    lines = output.splitlines()
    if len(lines) < 2:
        return None
    fields = lines[1].split()
    if len(fields) > 2:
        return parse_mac(fields[2])
    return None


def check_interface_name(name: str) -> None:
    if any(ch in name for ch in SHELL_METACHARACTERS):
        raise UnsafeInterfaceNameError(f"invalid interface name: {name!r}")


# ── Discoverer ────────────────────────────────────────────────────────────────


class LinuxConfigDiscoverer(ConfigDiscoverer):
    """Builds a :class:`NetworkConfig` from Linux command-line tools."""

    def __init__(
        self,
        runner: Callable = run_command,
        which: Callable[..., str] = find_command,
        interfaces: InterfaceProvider = list_interfaces,
        lease_dir: str = DHCP_LEASE_DIR,
    ) -> None:
        self._run = runner
        self._which = which
        self._interfaces = interfaces
        self._lease_dir = lease_dir

    def discover(self) -> NetworkConfig:
        route = self._route()
        # The name ends up in a file path and command arguments below.
        check_interface_name(route.interface)

        iface = self._interfaces().get(route.interface)
        if iface is None:
            raise DiscoveryError(f"interface {route.interface!r} not found")
        if not iface.hardware_address:
            raise DiscoveryError(f"interface {route.interface!r} has no hardware address")

        subnet_mask = self._subnet_mask(route.interface)
        dns_servers, suffix = self._leases(route.interface)

        gateway_mac = self._gateway_mac(route.gateway) if route.gateway is not None else None

        return NetworkConfig(
            interface_name=route.interface,
            hardware_address=iface.hardware_address,
            local_ip=route.local_ip,
            subnet_mask=subnet_mask,
            default_gateway=route.gateway,
            default_gateway_hardware_address=gateway_mac,
            dns_servers=tuple(dns_servers),
            dns_suffix=suffix,
            interface_handle=iface,
        )

    def _route(self) -> RouteInfo:
        ip_cmd = self._which("ip", IP_PATHS)
        if not ip_cmd:
            raise ToolUnavailableError("ip command not found")
        rc, stdout, stderr = self._run([ip_cmd, "route", "get", ROUTE_PROBE_ADDRESS],
                                       timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            raise DiscoveryError(f"'ip route get' failed: {(stderr or stdout).strip()}")
        return parse_route_get(stdout)

    def _subnet_mask(self, interface: str) -> Optional[IPAddress]:
        ifconfig = self._which("ifconfig", IFCONFIG_PATHS) or "ifconfig"
        rc, stdout, stderr = self._run([ifconfig, interface], timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            logger.warning("ifconfig %s failed, subnet mask unknown: %s", interface, (stderr or stdout).strip())
            return None
        return parse_ifconfig_netmask(stdout)

    def _leases(self, interface: str) -> Tuple[List[str], str]:
        lease_path = os.path.join(self._lease_dir, f"dhclient.{interface}.leases")
        grep = self._which("grep", GREP_PATHS)
        if not grep:
            logger.warning("grep not found, skipping DHCP lease lookup")
            return [], ""
        rc, stdout, stderr = self._run([grep, "domain-name", lease_path], timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            logger.warning("No DNS data from %s: %s", lease_path, (stderr or "no matching lines").strip())
            return [], ""
        return parse_dhcp_lease_lines(stdout)

    def _gateway_mac(self, gateway: IPAddress) -> Optional[str]:
        arp = self._which("arp", ARP_PATHS)
        if not arp:
            logger.warning("arp not found, gateway hardware address unknown")
            return None
        rc, stdout, stderr = self._run([arp, "-e", str(gateway)], timeout=DEFAULT_COMMAND_TIMEOUT)
        if rc != 0:
            logger.warning("arp -e %s failed: %s", gateway, (stderr or stdout).strip())
            return None
        return parse_arp_linux(stdout)
