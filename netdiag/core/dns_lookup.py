"""
DNS resolution: forward lookups and per-category record queries.

Forward lookups go through the host resolver (``socket.getaddrinfo``) so
``/etc/hosts`` and platform resolver settings apply.  CNAME, MX, NS, TXT,
SOA and PTR records are queried with dnspython.  One deadline covers the
whole record set; each query gets whatever is left of it.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import dns.exception
import dns.resolver
import dns.reversename

from netdiag.config import DEFAULT_LOOKUP_TIMEOUT, DEFAULT_RESOLVE_TIMEOUT, DEFAULT_SOA_TIMEOUT
from netdiag.core.utils import CheckResult, InputError, Status

logger = logging.getLogger(__name__)

CATEGORIES = ("a", "aaaa", "cname", "mx", "ns", "txt", "soa", "ptr")


@dataclass(frozen=True)
class MXRecord:
    host: str
    priority: int


@dataclass(frozen=True)
class SOARecord:
    primary_ns: str
    mailbox: str = ""
    serial: int = 0
    refresh: int = 0
    retry: int = 0
    expire: int = 0
    min_ttl: int = 0


@dataclass(frozen=True)
class DNSRecordSet:
    """Every record category for one domain.

    A category is ``None`` when its query failed, with the reason in
    ``unresolved``, or when it does not apply to the target (PTR for a name,
    CNAME/MX/NS/TXT/SOA for an IP literal).  An empty list means the name
    has no such records.
    """

    domain: str
    a: Optional[List[str]] = None
    aaaa: Optional[List[str]] = None
    cname: Optional[List[str]] = None
    mx: Optional[List[MXRecord]] = None
    ns: Optional[List[str]] = None
    txt: Optional[List[str]] = None
    soa: Optional[SOARecord] = None
    ptr: Optional[List[str]] = None
    unresolved: Dict[str, str] = field(default_factory=dict)

    def records(self, category: str) -> list:
        """Records of *category*, ``[]`` when unresolved."""
        value = getattr(self, category)
        if value is None:
            return []
        return [value] if category == "soa" else list(value)

    def details(self) -> List[str]:
        labels = {
            "a": "A", "aaaa": "AAAA", "cname": "CNAME", "mx": "MX",
            "ns": "NS", "txt": "TXT", "soa": "SOA", "ptr": "PTR",
        }
        lines: List[str] = []
        for category in CATEGORIES:
            for rec in self.records(category):
                if isinstance(rec, MXRecord):
                    text = f"priority {rec.priority}: {rec.host}"
                elif isinstance(rec, SOARecord):
                    text = f"primary NS {rec.primary_ns}"
                    if rec.mailbox:
                        text += f", contact {rec.mailbox}, serial {rec.serial}"
                else:
                    text = rec
                lines.append(f"{labels[category]:<6} {text}")
        return lines


def normalize_domain(domain: str) -> str:
    """Strip whitespace, an ``http(s)://`` prefix and one trailing slash."""
    domain = domain.strip()
    for prefix in ("http://", "https://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
            break
    if domain.endswith("/"):
        domain = domain[:-1]
    return domain


def _checked(domain: str) -> str:
    if not domain or not domain.strip():
        raise InputError("domain cannot be empty")
    cleaned = normalize_domain(domain)
    if not cleaned:
        raise InputError(f"no host name in {domain!r}")
    return cleaned


def _forward(domain: str, timeout: float) -> List[str]:
    """Addresses for *domain* in resolver order, without duplicates.

    ``getaddrinfo`` takes no timeout, so it runs on a worker thread that is
    abandoned once *timeout* seconds pass.
    """
    pool = ThreadPoolExecutor(max_workers=1)
    try:
        future = pool.submit(socket.getaddrinfo, domain, None)
        infos = future.result(timeout=max(timeout, 0))
    except FutureTimeout:
        raise socket.timeout(f"lookup of {domain} timed out after {timeout:g}s") from None
    finally:
        pool.shutdown(wait=False)
    return list(dict.fromkeys(info[4][0] for info in infos))


def _is_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
        return True
    except ValueError:
        return False


def _name(value: object) -> str:
    return str(value).rstrip(".")


# ── Public API ────────────────────────────────────────────────────────────────


def lookup_hosts(domain: str, timeout: float = DEFAULT_LOOKUP_TIMEOUT) -> List[str]:
    """Resolve *domain* (a host name, IP or URL-ish string) to addresses.

    An unresolvable name, or one that does not resolve within *timeout*
    seconds, yields an empty list rather than an error.
    """
    domain = _checked(domain)
    try:
        return _forward(domain, timeout)
    except (socket.gaierror, socket.timeout, UnicodeError) as exc:
        logger.info("Lookup of %s failed: %s", domain, exc)
        return []


def resolve_all(
    domain: str,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_RESOLVE_TIMEOUT,
) -> DNSRecordSet:
    """Query every record category for *domain* within *timeout* seconds.

    Categories fail independently; failures are recorded in
    ``DNSRecordSet.unresolved`` and never raised.  Categories still
    pending when the deadline passes are marked unresolved without a query.
    """
    domain = _checked(domain)
    deadline = time.monotonic() + timeout
    found: dict = {}
    unresolved: Dict[str, str] = {}

    resolver_error = ""
    if resolver is None:
        try:
            resolver = dns.resolver.Resolver()
        except dns.exception.DNSException as exc:
            resolver_error = str(exc) or type(exc).__name__
            logger.warning("No DNS resolver available: %s", resolver_error)

    def query(category: str, rdtype: str, convert, qname: str = domain, cap: Optional[float] = None) -> None:
        if resolver is None:
            unresolved[category] = resolver_error
            return
        lifetime = deadline - time.monotonic()
        if lifetime <= 0:
            unresolved[category] = f"not attempted: {timeout:g}s budget exhausted"
            logger.debug("%s lookup for %s skipped, budget exhausted", rdtype, qname)
            return
        if cap is not None:
            lifetime = min(lifetime, cap)
        try:
            answer = resolver.resolve(qname, rdtype, lifetime=lifetime)
        except dns.resolver.NoAnswer:
            found[category] = []
            return
        except dns.exception.DNSException as exc:
            unresolved[category] = str(exc) or type(exc).__name__
            logger.debug("%s lookup for %s failed: %s", rdtype, qname, unresolved[category])
            return
        found[category] = [convert(rdata) for rdata in answer]

    try:
        addresses = _forward(domain, min(deadline - time.monotonic(), DEFAULT_LOOKUP_TIMEOUT))
    except (socket.gaierror, socket.timeout, UnicodeError) as exc:
        unresolved["a"] = unresolved["aaaa"] = str(exc)
    else:
        found["a"] = [ip for ip in addresses if ipaddress.ip_address(ip.split("%", 1)[0]).version == 4]
        found["aaaa"] = [ip for ip in addresses if ipaddress.ip_address(ip.split("%", 1)[0]).version == 6]

    is_ip = _is_ip(domain)
    if not is_ip:
        query("cname", "CNAME", lambda r: _name(r.target))
        query("mx", "MX", lambda r: MXRecord(host=_name(r.exchange), priority=int(r.preference)))
        query("ns", "NS", lambda r: _name(r.target))
        query("txt", "TXT", lambda r: b"".join(r.strings).decode("utf-8", errors="replace"))
        query("soa", "SOA", lambda r: SOARecord(
            primary_ns=_name(r.mname),
            mailbox=_name(r.rname),
            serial=int(r.serial),
            refresh=int(r.refresh),
            retry=int(r.retry),
            expire=int(r.expire),
            min_ttl=int(r.minimum),
        ), cap=DEFAULT_SOA_TIMEOUT)
    else:
        address = domain.split("%", 1)[0]
        query("ptr", "PTR", lambda r: _name(r.target), qname=dns.reversename.from_address(address).to_text())

    soa = (found.get("soa") or [None])[0]
    if soa is None and found.get("ns"):
        # Best effort: the first name server stands in for the zone's primary.
        soa = SOARecord(primary_ns=found["ns"][0])
        unresolved.pop("soa", None)

    return DNSRecordSet(
        domain=domain,
        a=found.get("a"),
        aaaa=found.get("aaaa"),
        cname=found.get("cname"),
        mx=found.get("mx"),
        ns=found.get("ns"),
        txt=found.get("txt"),
        soa=soa,
        ptr=found.get("ptr"),
        unresolved=unresolved,
    )


def dns_check(domain: str) -> CheckResult:
    """Resolve all record categories for *domain* and summarise them."""
    records = resolve_all(domain)
    details = records.details()
    for category, reason in records.unresolved.items():
        details.append(f"{category.upper()} not resolved: {reason}")

    found = sum(len(records.records(c)) for c in CATEGORIES)
    if found and not records.unresolved:
        status = Status.SUCCESS
    elif found:
        status = Status.PARTIAL
    else:
        status = Status.FAILURE

    return CheckResult(
        title="DNS Records",
        status=status,
        target=records.domain,
        summary=f"{found} record(s) found for '{records.domain}'.",
        details=details,
    )
