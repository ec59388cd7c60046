"""
scan_module/record_policy.py

Per-record decisions, all pure:
- classify / parse_record_path: which records deserve a detail fetch
- RedirectExclusion: addresses hosted by the provider's HTTP-redirect service
- evaluate: TTL policy verdict

Record paths have the shape `/REST/<Type>Record/<zone>/<fqdn>/<id>`. Only the
path is inspected, never the record content, so auxiliary types (MX, TXT, NS,
SOA, ...) are dropped without an API call.
"""
from __future__ import annotations

import ipaddress
from typing import Iterable, List, Union

from .zone_records import RecordKind, RecordRef, Verdict, ZoneRecord

ADDRESS_RECORD_TYPE = "ARecord"
ALIAS_RECORD_TYPE = "CNAMERecord"

_KIND_BY_TYPE = {
    ADDRESS_RECORD_TYPE: RecordKind.ADDRESS,
    ALIAS_RECORD_TYPE: RecordKind.ALIAS,
}

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _segments(path: str) -> List[str]:
    parts = [p for p in (path or "").strip().split("/") if p]
    if parts and parts[0].upper() == "REST":
        parts = parts[1:]
    return parts


def parse_record_path(path: str) -> RecordRef:
    """Split a record path into kind, type, zone, fqdn and id (missing parts are "")."""
    parts = _segments(path)
    rtype = parts[0] if parts else ""
    rest = parts[1:] + ["", "", ""]
    return RecordRef(
        path=path,
        kind=classify(path),
        rtype=rtype,
        zone=rest[0],
        fqdn=rest[1],
        record_id=rest[2],
    )


def classify(path: str) -> RecordKind:
    """ADDRESS for A records, ALIAS for CNAME records, OTHER for everything else."""
    parts = _segments(path)
    if not parts:
        return RecordKind.OTHER
    return _KIND_BY_TYPE.get(parts[0], RecordKind.OTHER)


class RedirectExclusion:
    """
    Matches addresses against the networks known to host the provider's
    HTTP-redirect service. Records pointing there are proxies for another
    service and are exempt from the TTL policy and the reverse index.
    """

    def __init__(self, networks: Iterable[str]):
        self.networks: List[IPNetwork] = [ipaddress.ip_network(n, strict=False) for n in networks]

    def is_redirect_address(self, address: str) -> bool:
        if not address or not self.networks:
            return False
        try:
            ip = ipaddress.ip_address(address.strip())
        except ValueError:
            return False
        return any(ip.version == net.version and ip in net for net in self.networks)


def evaluate(record: ZoneRecord, min_ttl: int) -> Verdict:
    if record.ttl < min_ttl:
        return Verdict.OFFENDING
    return Verdict.COMPLIANT
