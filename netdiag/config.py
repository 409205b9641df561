"""
Centralised runtime configuration and OS-detection helpers.
"""

import platform
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlatformInfo:
    """Immutable snapshot of the host OS."""

    system: str = field(default_factory=lambda: platform.system())  # Windows | Linux | Darwin
    release: str = field(default_factory=platform.release)
    is_windows: bool = field(default=False)
    is_linux: bool = field(default=False)
    is_macos: bool = field(default=False)

    def __post_init__(self) -> None:  # pragma: no cover — simple wiring
        object.__setattr__(self, "is_windows", self.system == "Windows")
        object.__setattr__(self, "is_linux", self.system == "Linux")
        object.__setattr__(self, "is_macos", self.system == "Darwin")


# Singleton — instantiated once at import time.
PLATFORM = PlatformInfo()

# Ping defaults
DEFAULT_PING_COUNT = 4
DEFAULT_PING_TIMEOUT = 4  # seconds, per echo
DEFAULT_PING_SIZE_UNIX = 56
DEFAULT_PING_SIZE_WINDOWS = 32

# Upper bounds (seconds)
DEFAULT_COMMAND_TIMEOUT = 10
DEFAULT_LOOKUP_TIMEOUT = 10
DEFAULT_RESOLVE_TIMEOUT = 15
DEFAULT_SOA_TIMEOUT = 5

# Destination used to let the routing table pick the outbound interface.
ROUTE_PROBE_ADDRESS = "8.8.8.8"
ROUTE_PROBE_PORT = 80

# Fixed-layout offsets observed in English-locale tool output.
#   ipconfig /all:  "   DNS Servers . . . . . . . . . . . : 8.8.8.8"
#   dhclient lease: "option domain-name-servers 10.0.0.1,10.0.0.2;"
#                   "option domain-name \"corp.example\";"
DOTTED_VALUE_COLUMN = 39
LEASE_DNS_SERVERS_OFFSET = 26
LEASE_DOMAIN_NAME_OFFSET = 18
DHCP_LEASE_DIR = "/var/lib/dhcp"

SHELL_METACHARACTERS = ";&|`$()\n"

# Candidate locations tried before falling back to PATH.
IP_PATHS = ("/bin/ip", "/sbin/ip", "/usr/bin/ip", "/usr/sbin/ip")
IFCONFIG_PATHS = ("/sbin/ifconfig", "/bin/ifconfig", "/usr/sbin/ifconfig", "/usr/bin/ifconfig")
ARP_PATHS = ("/usr/sbin/arp", "/sbin/arp", "/usr/bin/arp", "/bin/arp")
PING_PATHS = ("/bin/ping", "/sbin/ping", "/usr/bin/ping", "/usr/sbin/ping")
GREP_PATHS = ("/bin/grep", "/usr/bin/grep")
