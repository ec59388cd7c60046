# scan_module/zone_records.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class RecordKind(str, Enum):
    """Kind of record as far as the TTL policy is concerned."""
    ADDRESS = "address"
    ALIAS = "alias"
    OTHER = "other"


class Verdict(str, Enum):
    COMPLIANT = "compliant"
    OFFENDING = "offending"


@dataclass(frozen=True)
class Zone:
    """Zone metadata: name plus the provider's serial (change token)."""
    name: str
    serial: int


@dataclass(frozen=True)
class RecordRef:
    """
    Parsed form of a provider record path such as
    `/REST/ARecord/example.com/www.example.com/12345`.
    """
    path: str
    kind: RecordKind
    rtype: str
    zone: str = ""
    fqdn: str = ""
    record_id: str = ""


@dataclass(frozen=True)
class ZoneRecord:
    """
    Record detail as returned by the provider.

    Attributes:
        zone: Owning zone name.
        fqdn: Fully-qualified record name.
        rtype: Provider record type ("A", "CNAME", ...).
        ttl: Time-to-live in seconds.
        address: Resolved IP for address records, "" otherwise.
        cname: Alias target for alias records, "" otherwise.
        record_id: Provider id, when known.
    """
    zone: str
    fqdn: str
    rtype: str
    ttl: int
    address: str = ""
    cname: str = ""
    record_id: str = ""


@dataclass
class ZoneOutcome:
    """
    Result of scanning a single zone.

    `checkpoint_serial` is None when the zone must not advance in the new
    checkpoint (offenders found, a fetch failed, or metadata was unavailable).
    """
    zone: str
    serial: Optional[int] = None
    skipped: bool = False
    checkpoint_serial: Optional[int] = None
    offending: List[ZoneRecord] = field(default_factory=list)
    address_refs: List[Tuple[str, str]] = field(default_factory=list)  # (address, zone)
    alias_refs: List[Tuple[str, str]] = field(default_factory=list)  # (target, zone)
    errors: List[str] = field(default_factory=list)


@dataclass
class ScanResult:
    """
    Aggregated result of a run, handed to the reporting layer.

    Attributes:
        offending_records: Offending records in traversal order.
        address_index: resolved address -> zone names, in encounter order.
        alias_index: alias target -> zone names, in encounter order.
        checkpoint: The checkpoint written at the end of the run.
        zones_total: Number of zones in the catalog.
        zones_skipped: Zones not re-fetched because their serial was unchanged.
        zones_failed: Zones that hit a recoverable fetch error.
    """
    offending_records: List[ZoneRecord] = field(default_factory=list)
    address_index: Dict[str, List[str]] = field(default_factory=dict)
    alias_index: Dict[str, List[str]] = field(default_factory=dict)
    checkpoint: Dict[str, int] = field(default_factory=dict)
    zones_total: int = 0
    zones_skipped: int = 0
    zones_failed: int = 0

    @property
    def reverse_index(self) -> Dict[str, List[str]]:
        """Combined view of address and alias targets."""
        merged: Dict[str, List[str]] = {}
        for index in (self.address_index, self.alias_index):
            for key, zones in index.items():
                merged.setdefault(key, []).extend(zones)
        return merged
