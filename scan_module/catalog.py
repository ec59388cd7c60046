"""
scan_module/catalog.py

Zone catalog fetch with a fixed attempt bound.

The listing is a single call per run, so attempts follow each other without a
delay. Exhausting the bound is fatal: nothing can be scanned without the
catalog. The same helper guards the provider login.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, List, TypeVar

from .errors import FetchError, ProviderError
from .logger import get_child_logger
from .zone_utils import zone_name_from_path

log = get_child_logger("catalog")

DEFAULT_ATTEMPTS = 5

T = TypeVar("T")


async def call_with_retry(
    what: str,
    call: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
) -> T:
    """
    Await `call()` up to `attempts` times, returning the first success.

    Provider errors are logged and retried; after the last attempt the final
    error is re-raised unchanged.
    """
    last_error: ProviderError = FetchError(f"{what}: no attempt made")
    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except ProviderError as e:
            last_error = e
            if attempt < attempts:
                log.warning("Retrying {}.. {}/{} ({})", what, attempt, attempts, e)
    log.error("Failed to {} after {} attempts: {}", what, attempts, last_error)
    raise last_error


class ZoneCatalogFetcher:
    """Fetches the ordered zone list from the provider client."""

    def __init__(self, client: Any, attempts: int = DEFAULT_ATTEMPTS):
        self.client = client
        self.attempts = attempts

    async def fetch_zones(self) -> List[str]:
        """
        Returns:
            Zone names in catalog order.

        Raises:
            FetchError: every attempt failed.
        """
        try:
            paths = await call_with_retry("get zone list", self.client.list_zones, self.attempts)
        except FetchError:
            raise
        except ProviderError as e:
            raise FetchError(f"zone list unavailable: {e}", e.messages) from e

        zones = [z for z in (zone_name_from_path(p) for p in paths) if z]
        log.info("Got Zone list ({} zones)", len(zones))
        return zones
