"""
scan_module/scan_runner.py

Top-level sequencing of one audit run:

    load checkpoint -> log in -> zone catalog -> scan every zone
    -> save new checkpoint -> ScanResult

Zones are scanned one after another by default. With `zone_concurrency > 1`
they run under a semaphore; each zone produces its own ZoneOutcome and the
outcomes are merged in catalog order, so the report and the checkpoint do not
depend on scheduling. Fatal errors (checkpoint unreadable, login, catalog)
propagate before the checkpoint is written.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional

from .catalog import ZoneCatalogFetcher, call_with_retry
from .logger import get_child_logger
from .reverse_index import ReverseIndexBuilder
from .settings import Config
from .status_store import StatusStore
from .zone_records import ScanResult, ZoneOutcome
from .zone_scanner import ZoneScanner

log = get_child_logger("scan_runner")


def aggregate(outcomes: List[ZoneOutcome], zones_total: int) -> ScanResult:
    """Fold per-zone outcomes (already in catalog order) into a ScanResult."""
    addresses = ReverseIndexBuilder()
    aliases = ReverseIndexBuilder()
    result = ScanResult(zones_total=zones_total)
    new_checkpoint: Dict[str, int] = {}

    for outcome in outcomes:
        result.offending_records.extend(outcome.offending)
        for key, zone in outcome.address_refs:
            addresses.record(key, zone)
        for key, zone in outcome.alias_refs:
            aliases.record(key, zone)
        if outcome.checkpoint_serial is not None:
            new_checkpoint[outcome.zone] = outcome.checkpoint_serial
        if outcome.skipped:
            result.zones_skipped += 1
        if outcome.errors:
            result.zones_failed += 1

    result.address_index = addresses.snapshot()
    result.alias_index = aliases.snapshot()
    result.checkpoint = new_checkpoint
    return result


class ScanRunner:
    def __init__(
        self,
        config: Config,
        client: Any,
        store: StatusStore,
        scanner: Optional[ZoneScanner] = None,
    ):
        self.config = config
        self.client = client
        self.store = store
        self.scanner = scanner or ZoneScanner(client, config)

    async def _scan_sequential(self, zones: List[str], previous: Mapping[str, int]) -> List[ZoneOutcome]:
        outcomes: List[ZoneOutcome] = []
        total = len(zones)
        for counter, name in enumerate(zones):
            log.info("{} {:6.2f}% done", name, (counter / float(total)) * 100.0)
            outcomes.append(await self.scanner.scan_zone(name, previous))
        return outcomes

    async def _scan_concurrent(self, zones: List[str], previous: Mapping[str, int]) -> List[ZoneOutcome]:
        semaphore = asyncio.Semaphore(self.config.zone_concurrency)
        total = len(zones)
        done = 0

        async def _sem_scan(name: str) -> ZoneOutcome:
            nonlocal done
            async with semaphore:
                outcome = await self.scanner.scan_zone(name, previous)
            done += 1
            log.info("{} {:6.2f}% done", outcome.zone, (done / float(total)) * 100.0)
            return outcome

        # gather keeps the order of its arguments
        return list(await asyncio.gather(*(_sem_scan(z) for z in zones)))

    async def run(self) -> ScanResult:
        previous = self.store.load()

        await call_with_retry(
            "log in",
            lambda: self.client.login(self.config.customer, self.config.username, self.config.password),
            self.config.catalog_attempts,
        )
        try:
            zones = await ZoneCatalogFetcher(self.client, self.config.catalog_attempts).fetch_zones()
            if self.config.zone_concurrency > 1 and len(zones) > 1:
                outcomes = await self._scan_concurrent(zones, previous)
            else:
                outcomes = await self._scan_sequential(zones, previous)
        finally:
            await self.client.logout()

        result = aggregate(outcomes, len(zones))
        log.info(
            "Scanned {} zones: {} unchanged, {} with errors, {} offending records",
            result.zones_total,
            result.zones_skipped,
            result.zones_failed,
            len(result.offending_records),
        )

        log.info("Saving status file...")
        self.store.save(result.checkpoint)
        return result
