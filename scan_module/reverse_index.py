# scan_module/reverse_index.py
from __future__ import annotations

from typing import Dict, List


class ReverseIndexBuilder:
    """
    Accumulates target -> zone names.

    Keys keep first-seen order and each zone list keeps encounter order.
    Duplicates are kept on purpose: the same target listed under many zones
    (or many times in one zone) shows shared hosting / CDN fan-out.
    """

    def __init__(self) -> None:
        self._index: Dict[str, List[str]] = {}

    def record(self, key: str, zone: str) -> None:
        self._index.setdefault(key, []).append(zone)

    def snapshot(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._index.items()}
