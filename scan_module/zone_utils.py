# scan_module/zone_utils.py
from __future__ import annotations

from typing import List, Optional

import idna

from .logger import get_child_logger

log = get_child_logger("zone_utils")

ZONE_PATH_PREFIX = "/REST/Zone/"


def to_ascii_hostname(name: Optional[str]) -> str:
    """
    Lowercase + IDNA (punycode) each label + strip trailing dot.
    Returns "" if input is falsy.
    """
    if not name:
        return ""
    name = str(name).strip().strip(".")
    if not name:
        return ""
    labels: List[str] = []
    for lbl in name.split("."):
        if not lbl:
            continue
        try:
            # UTS46 processing is forgiving with real-world inputs (underscores, mixed case)
            labels.append(idna.encode(lbl, uts46=True, std3_rules=False).decode("ascii"))
        except idna.IDNAError:
            log.debug("label {!r} of {} is not valid IDNA, kept as is", lbl, name)
            labels.append(lbl)
    return ".".join(labels).lower()


def zone_name_from_path(path: str) -> str:
    """
    Zone listings return full paths like `/REST/Zone/example.com/`.
    Strip the prefix and any trailing slash; plain names pass through.
    """
    name = (path or "").strip()
    if name.startswith(ZONE_PATH_PREFIX):
        name = name[len(ZONE_PATH_PREFIX):]
    return name.strip("/")
