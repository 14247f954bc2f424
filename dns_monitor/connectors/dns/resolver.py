"""DNS Monitor: DNS Resolution Connector.

The check pipeline only depends on ``RecordResolver``: a callable returning
raw record dicts for a domain. ``DNSPythonResolver`` is the default
implementation and emits the same field names PHP's ``dns_get_record``
produces (``ip``, ``ipv6``, ``target``, ``pri``, ``txt`` ...), which the
record models accept directly.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

import dns.exception
import dns.resolver

from dns_monitor.config import settings
from dns_monitor.core.errors import ResolverError
from dns_monitor.core.logging import get_logger

logger = get_logger("connectors.dns")

RawRecord = Dict[str, Any]


class RecordResolver(Protocol):
    """Returns every record of the configured types for ``domain``."""

    def __call__(self, domain: str) -> List[RawRecord]: ...


def _name(value: Any) -> str:
    return value.to_text(omit_final_dot=True)


def _text(value: Any) -> str:
    return value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value)


def rdata_to_raw(rtype: str, host: str, ttl: Optional[int], rdata: Any) -> RawRecord:
    """Flatten one dnspython rdata into a raw record dict."""
    raw: RawRecord = {"host": host, "class": "IN", "ttl": ttl, "type": rtype}

    if rtype == "A":
        raw["ip"] = rdata.address
    elif rtype == "AAAA":
        raw["ipv6"] = rdata.address
    elif rtype in ("CNAME", "NS", "PTR"):
        raw["target"] = _name(rdata.target)
    elif rtype == "MX":
        raw["target"] = _name(rdata.exchange)
        raw["pri"] = rdata.preference
    elif rtype == "TXT":
        raw["txt"] = [_text(s) for s in rdata.strings]
    elif rtype == "SRV":
        raw["target"] = _name(rdata.target)
        raw["port"] = rdata.port
        raw["pri"] = rdata.priority
        raw["weight"] = rdata.weight
    elif rtype == "SOA":
        raw["mname"] = _name(rdata.mname)
        raw["rname"] = _name(rdata.rname)
    elif rtype == "CAA":
        raw["flags"] = rdata.flags
        raw["tag"] = _text(rdata.tag)
        raw["value"] = _text(rdata.value)
    else:
        raw["value"] = rdata.to_text()
    return raw


class DNSPythonResolver:
    """Resolve a domain's records with dnspython."""

    def __init__(
        self,
        record_types: Optional[Sequence[str]] = None,
        nameservers: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
    ):
        self.record_types = [
            t.upper() for t in (record_types or settings.record_types_list)
        ]
        self.nameservers = list(
            nameservers if nameservers is not None else settings.nameservers_list
        )
        self.timeout = timeout if timeout is not None else settings.resolver_timeout

    def _resolver(self) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=not self.nameservers)
        if self.nameservers:
            resolver.nameservers = self.nameservers
        resolver.timeout = self.timeout
        resolver.lifetime = self.timeout
        return resolver

    def __call__(self, domain: str) -> List[RawRecord]:
        resolver = self._resolver()
        records: List[RawRecord] = []
        failures: List[str] = []

        for rtype in self.record_types:
            try:
                answers = resolver.resolve(domain, rtype)
            except (
                dns.resolver.NoAnswer,
                dns.resolver.NXDOMAIN,
                dns.resolver.NoNameservers,
            ):
                continue
            except dns.exception.DNSException as e:
                logger.warning(
                    f"DNS {rtype} lookup failed for {domain}: {e}",
                    extra={"domain": domain},
                )
                failures.append(rtype)
                continue

            rrset = answers.rrset
            ttl = rrset.ttl if rrset is not None else None
            host = _name(rrset.name) if rrset is not None else domain
            for rdata in answers:
                records.append(rdata_to_raw(rtype, host, ttl, rdata))

        if failures and len(failures) == len(self.record_types):
            raise ResolverError(f"All DNS lookups failed for {domain}: {failures}")

        logger.info(
            f"Resolved {len(records)} records for {domain}",
            extra={"domain": domain, "record_count": len(records)},
        )
        return records
