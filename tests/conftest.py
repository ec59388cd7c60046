# tests/conftest.py
from __future__ import annotations

from typing import Dict, List, Optional, Set

import pytest

from scan_module.errors import AuthenticationError, FetchError
from scan_module.settings import Config
from scan_module.zone_records import Zone, ZoneRecord


class FakeProvider:
    """
    In-memory stand-in for the provider client.

    zones:   zone name -> serial
    records: zone name -> list of (path, ZoneRecord or None); None means the
             path is listed but has no detail (only fine for OTHER types).
    Failure knobs raise FetchError for the named zone / path, and
    `zone_list_failures` makes the first N list_zones() calls fail.
    """

    def __init__(
        self,
        zones: Dict[str, int],
        records: Optional[Dict[str, list]] = None,
        zone_list_failures: int = 0,
        login_failures: int = 0,
        failing_zones: Optional[Set[str]] = None,
        failing_record_lists: Optional[Set[str]] = None,
        failing_records: Optional[Set[str]] = None,
    ):
        self.zones = dict(zones)
        self.records = records or {}
        self.zone_list_failures = zone_list_failures
        self.login_failures = login_failures
        self.failing_zones = failing_zones or set()
        self.failing_record_lists = failing_record_lists or set()
        self.failing_records = failing_records or set()

        self.calls: List[tuple] = []
        self.logged_in = False
        self.logged_out = False

    async def login(self, customer: str, username: str, password: str) -> None:
        self.calls.append(("login", username))
        if self.login_failures > 0:
            self.login_failures -= 1
            raise AuthenticationError("bad credentials")
        self.logged_in = True

    async def logout(self) -> None:
        self.calls.append(("logout",))
        self.logged_out = True

    async def list_zones(self) -> List[str]:
        self.calls.append(("list_zones",))
        if self.zone_list_failures > 0:
            self.zone_list_failures -= 1
            raise FetchError("zone list unavailable")
        return [f"/REST/Zone/{z}/" for z in self.zones]

    async def get_zone(self, name: str) -> Zone:
        self.calls.append(("get_zone", name))
        if name in self.failing_zones:
            raise FetchError(f"zone {name} unavailable")
        return Zone(name=name, serial=self.zones[name])

    async def list_records(self, zone: str) -> List[str]:
        self.calls.append(("list_records", zone))
        if zone in self.failing_record_lists:
            raise FetchError(f"records of {zone} unavailable")
        return [path for path, _rec in self.records.get(zone, [])]

    async def get_record(self, path: str) -> ZoneRecord:
        self.calls.append(("get_record", path))
        if path in self.failing_records:
            raise FetchError(f"record {path} unavailable")
        for entries in self.records.values():
            for p, rec in entries:
                if p == path and rec is not None:
                    return rec
        raise AssertionError(f"Unexpected get_record call: {path}")

    def detail_fetches(self) -> List[str]:
        return [c[1] for c in self.calls if c[0] == "get_record"]


def a_record(zone: str, fqdn: str, address: str, ttl: int, rid: str = "1") -> tuple:
    path = f"/REST/ARecord/{zone}/{fqdn}/{rid}"
    return path, ZoneRecord(zone=zone, fqdn=fqdn, rtype="A", ttl=ttl, address=address, record_id=rid)


def cname_record(zone: str, fqdn: str, target: str, ttl: int, rid: str = "2") -> tuple:
    path = f"/REST/CNAMERecord/{zone}/{fqdn}/{rid}"
    return path, ZoneRecord(zone=zone, fqdn=fqdn, rtype="CNAME", ttl=ttl, cname=target, record_id=rid)


def other_record(zone: str, rtype: str, fqdn: str, rid: str = "3") -> tuple:
    return f"/REST/{rtype}/{zone}/{fqdn}/{rid}", None


class MemoryStore:
    """StatusStore double that records saves instead of touching disk."""

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        self.initial = dict(initial or {})
        self.saved: Optional[Dict[str, int]] = None
        self.save_count = 0

    def load(self) -> Dict[str, int]:
        return dict(self.initial)

    def save(self, checkpoint: Dict[str, int]) -> None:
        self.saved = dict(checkpoint)
        self.save_count += 1


def make_config(**overrides) -> Config:
    values = dict(customer="acme", username="auditor", password="secret", min_ttl=300)
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config() -> Config:
    return make_config()
