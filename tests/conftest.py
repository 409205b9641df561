"""
Shared fixtures: captured tool output and fakes for the command runner,
command lookup and interface enumeration.
"""

from typing import Dict, List, Tuple

import pytest

from netdiag.core.net_info import InterfaceDescriptor


IP_ROUTE_GET = "8.8.8.8 via 192.168.1.1 dev eth0 src 192.168.1.23 uid 1000 \n    cache \n"

IFCONFIG_ETH0 = (
    "eth0: flags=4163<UP,BROADCAST,RUNNING,MULTICAST>  mtu 1500\n"
    "        inet 192.168.1.23  netmask 255.255.255.0  broadcast 192.168.1.255\n"
    "        ether 52:54:00:12:34:56  txqueuelen 1000  (Ethernet)\n"
)

LEASE_GREP = (
    "  option domain-name-servers 192.168.1.1,8.8.8.8;\n"
    '  option domain-name "corp.example";\n'
    "  option domain-name-servers 192.168.1.1,1.1.1.1;\n"
)

ARP_E = (
    "Address                  HWtype  HWaddress           Flags Mask            Iface\n"
    "192.168.1.1              ether   AA:BB:CC:DD:EE:01   C                     eth0\n"
)

IPCONFIG_ALL = (
    "\r\n"
    "Windows IP Configuration\r\n"
    "\r\n"
    "   Host Name . . . . . . . . . . . . : DESKTOP-1\r\n"
    "   Primary Dns Suffix  . . . . . . . : \r\n"
    "\r\n"
    "Ethernet adapter Ethernet:\r\n"
    "\r\n"
    "   Connection-specific DNS Suffix  . : corp.example\r\n"
    "   Description . . . . . . . . . . . : Intel(R) Ethernet Connection\r\n"
    "   Physical Address. . . . . . . . . : 52-54-00-12-34-56\r\n"
    "   IPv4 Address. . . . . . . . . . . : 10.0.0.5(Preferred) \r\n"
    "   Subnet Mask . . . . . . . . . . . : 255.255.255.0\r\n"
    "   Default Gateway . . . . . . . . . : 10.0.0.1\r\n"
    "   DNS Servers . . . . . . . . . . . : 10.0.0.2\r\n"
    "                                       8.8.8.8\r\n"
    "   NetBIOS over Tcpip. . . . . . . . : Enabled\r\n"
    "\r\n"
    "Wireless LAN adapter Wi-Fi:\r\n"
    "\r\n"
    "   Media State . . . . . . . . . . . : Media disconnected\r\n"
    "   Connection-specific DNS Suffix  . : \r\n"
)

ARP_A = (
    "\r\n"
    "Interface: 10.0.0.5 --- 0xb\r\n"
    "  Internet Address      Physical Address      Type\r\n"
    "  10.0.0.1              aa-bb-cc-dd-ee-02     dynamic   \r\n"
)


class FakeRunner:
    """Stands in for ``run_command``; answers by the command's first two tokens."""

    def __init__(self, responses: Dict[str, Tuple[int, str, str]]) -> None:
        self.responses = responses
        self.calls: List[List[str]] = []

    def __call__(self, cmd, timeout=60, capture=True, merge_stderr=False):
        self.calls.append(list(cmd))
        name = cmd[0].rsplit("/", 1)[-1]
        for key in (f"{name} {cmd[1]}" if len(cmd) > 1 else name, name):
            if key in self.responses:
                return self.responses[key]
        return -1, "", f"Command not found: {cmd[0]}"

    def ran(self, name: str) -> bool:
        return any(c[0].rsplit("/", 1)[-1] == name for c in self.calls)


def fake_which(available=("ip", "ifconfig", "grep", "arp")):
    def which(name, candidates=()):
        return f"/usr/sbin/{name}" if name in available else ""
    return which


@pytest.fixture
def eth0():
    return InterfaceDescriptor(
        name="eth0",
        hardware_address="52:54:00:12:34:56",
        addresses=("192.168.1.23",),
        netmasks=("255.255.255.0",),
        mtu=1500,
        is_up=True,
    )


@pytest.fixture
def linux_runner():
    return FakeRunner({
        "ip route": (0, IP_ROUTE_GET, ""),
        "ifconfig": (0, IFCONFIG_ETH0, ""),
        "grep": (0, LEASE_GREP, ""),
        "arp": (0, ARP_E, ""),
    })
