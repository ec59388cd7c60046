"""
scan_module/zone_scanner.py

Scans one zone against the TTL policy.

Per zone:
1. fetch metadata (name, serial)
2. compare the serial with the previous checkpoint; with `skip_unchanged`
   an unchanged zone is carried forward without fetching its records
3. list the records, classify each path, fetch details for address and
   alias records only
4. drop address records in the redirect networks, index the rest by target
   and collect the ones whose TTL is below the minimum
5. the zone advances in the new checkpoint only if it had no offenders and
   no fetch failed

Provider errors never escape this module: a zone whose metadata or record
list cannot be read is left out of the new checkpoint, and a record whose
detail fetch fails is skipped while holding its zone back for the next run.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional

from .errors import ProviderError
from .logger import get_child_logger
from .record_policy import RedirectExclusion, evaluate, parse_record_path
from .settings import Config
from .zone_records import RecordKind, Verdict, ZoneOutcome
from .zone_utils import to_ascii_hostname

log = get_child_logger("zone_scanner")


class ZoneScanner:
    """
    Args:
        client: provider client exposing async `get_zone(name)`,
            `list_records(zone)` and `get_record(path)`.
        config: run configuration (min TTL, skip policy, redirect networks).
        exclusion: redirect matcher; built from the config when omitted.
    """

    def __init__(self, client: Any, config: Config, exclusion: Optional[RedirectExclusion] = None):
        self.client = client
        self.config = config
        self.exclusion = exclusion or RedirectExclusion(config.redirect_networks)

    async def scan_zone(self, name: str, previous: Mapping[str, int]) -> ZoneOutcome:
        outcome = ZoneOutcome(zone=name)

        try:
            zone = await self.client.get_zone(name)
        except ProviderError as e:
            log.error("Could not read zone {}: {}", name, e)
            outcome.errors.append(f"zone metadata: {e}")
            return outcome

        outcome.zone = zone.name
        outcome.serial = zone.serial

        stored = previous.get(zone.name)
        if stored is not None and stored == zone.serial:
            if self.config.skip_unchanged:
                log.debug("Skipping {} (serial {} unchanged)", zone.name, zone.serial)
                outcome.skipped = True
                outcome.checkpoint_serial = stored
                return outcome
            log.debug("Re-scanning {} although serial {} is unchanged", zone.name, zone.serial)

        try:
            paths = await self.client.list_records(zone.name)
        except ProviderError as e:
            log.error("Could not list records of {}: {}", zone.name, e)
            outcome.errors.append(f"record list: {e}")
            return outcome

        for path in paths:
            ref = parse_record_path(path)
            kind = ref.kind
            if kind is RecordKind.OTHER:
                log.debug("skipping {}", path)
                continue

            try:
                record = await self.client.get_record(path)
            except ProviderError as e:
                log.warning("Could not read record {}: {}", path, e)
                outcome.errors.append(f"{path}: {e}")
                continue

            # detail replies may omit the owner names the path already carries
            if not record.fqdn or not record.zone:
                record = replace(
                    record,
                    fqdn=record.fqdn or ref.fqdn,
                    zone=record.zone or ref.zone or zone.name,
                    record_id=record.record_id or ref.record_id,
                )

            if kind is RecordKind.ADDRESS:
                if self.exclusion.is_redirect_address(record.address):
                    log.debug("{} points at the redirect service ({}), ignored", record.fqdn, record.address)
                    continue
                if record.address:
                    outcome.address_refs.append((record.address, zone.name))
            else:
                target = to_ascii_hostname(record.cname)
                if target:
                    outcome.alias_refs.append((target, zone.name))

            if evaluate(record, self.config.min_ttl) is Verdict.OFFENDING:
                log.debug("{} TTL {} below {}", record.fqdn, record.ttl, self.config.min_ttl)
                outcome.offending.append(record)

        if not outcome.offending and not outcome.errors:
            outcome.checkpoint_serial = zone.serial
        return outcome
