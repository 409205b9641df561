"""
CLI entry-point for netdiag.

  • ``netdiag info``              — active interface, gateway, DNS servers
  • ``netdiag ping 8.8.8.8``      — ping statistics
  • ``netdiag lookup example.com`` — forward host lookup
  • ``netdiag dns example.com``   — every DNS record category
"""

from __future__ import annotations

import argparse
import sys

from netdiag import __app_name__, __version__


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="netdiag",
        description=f"{__app_name__} — host network configuration and diagnostics.",
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    sub = p.add_subparsers(dest="command", help="Diagnostic to run.")

    # ── info ──────────────────────────────────────────────────────────────
    sp = sub.add_parser("info", aliases=["config"], help="Show the active network configuration")
    sp.add_argument("-r", "--refresh", action="store_true", help="Rediscover instead of using the cached snapshot")

    # ── ping ──────────────────────────────────────────────────────────────
    sp = sub.add_parser("ping", help="ICMP ping statistics")
    sp.add_argument("target", help="Hostname or IP address")
    sp.add_argument("-c", "--count", type=int, default=0, help="Number of pings (default: 4)")
    sp.add_argument("-t", "--timeout", type=float, default=0, help="Timeout per ping in seconds (default: 4)")
    sp.add_argument("-s", "--size", type=int, default=0, help="Packet size in bytes (default: 56, 32 on Windows)")

    # ── lookup ────────────────────────────────────────────────────────────
    sp = sub.add_parser("lookup", help="Resolve a host name to its addresses")
    sp.add_argument("target", help="Hostname or URL")

    # ── dns ───────────────────────────────────────────────────────────────
    sp = sub.add_parser("dns", help="Query every DNS record category")
    sp.add_argument("target", help="Domain, URL or IP address")

    return p


def _dispatch(args: argparse.Namespace) -> None:
    """Import the relevant core module and run the requested diagnostic."""
    from netdiag.core.utils import print_result  # noqa: local import for speed

    cmd = args.command

    if cmd in ("info", "config"):
        from netdiag.core.net_info import ConfigCache, network_info
        print_result(network_info(ConfigCache(), refresh=args.refresh))

    elif cmd == "ping":
        from netdiag.core.ping import PingOptions, ping_check
        options = PingOptions(count=args.count, timeout=args.timeout, packet_size=args.size)
        print_result(ping_check(args.target, options), show_raw=True)

    elif cmd == "lookup":
        from netdiag.core.dns_lookup import lookup_hosts
        from netdiag.core.utils import CheckResult, Status
        ips = lookup_hosts(args.target)
        print_result(CheckResult(
            title="Host Lookup",
            status=Status.SUCCESS if ips else Status.FAILURE,
            target=args.target,
            summary=f"{len(ips)} address(es) found." if ips else "Name did not resolve.",
            details=ips,
        ))

    elif cmd == "dns":
        from netdiag.core.dns_lookup import dns_check
        print_result(dns_check(args.target))


def main(argv: list[str] | None = None) -> None:
    """Main entry-point called by the ``netdiag`` console script or ``python -m netdiag``."""
    from netdiag.core.utils import NetDiagError, print_error, setup_logging

    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return

    try:
        _dispatch(args)
    except NetDiagError as exc:
        print_error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
