# report_module/report.py
from __future__ import annotations

from typing import Dict, List

from scan_module.zone_records import ScanResult


def _index_lines(title: str, index: Dict[str, List[str]]) -> List[str]:
    lines = [title]
    for key, zones in index.items():
        lines.append(f"\n{key}")
        for zone in zones:
            lines.append(f"\t{zone}")
    return lines


def format_report(result: ScanResult, min_ttl: int, include_reverse_index: bool = False) -> str:
    """
    Build the text block handed to the delivery channels.

    The offender section is only present when there are offenders; the
    reverse index (CNAMES then ARECORDS) only when requested.
    """
    lines: List[str] = []
    if result.offending_records:
        lines.append(f"Those nodes have TTLs lower than {min_ttl}")
        for record in result.offending_records:
            lines.append(record.fqdn)

    if include_reverse_index:
        lines.extend(_index_lines("CNAMES", result.alias_index))
        lines.extend(_index_lines("ARECORDS", result.address_index))

    return "\n".join(lines)


def print_results(text: str) -> None:
    print(text)
