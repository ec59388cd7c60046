"""
scan_module/status_store.py

Per-zone checkpoint (zone name -> last fully clean serial), persisted as YAML:

    data:
      example.com: 42
      example.net: 2024010101

A missing file is the normal first-run state and yields an empty checkpoint.
Saving writes a temporary file in the destination directory and renames it
over the destination, so readers never see a half-written file and a crash
leaves the previous checkpoint untouched.
"""
from __future__ import annotations

import os
import tempfile
from typing import Any, Dict

import yaml

from .errors import CheckpointError
from .logger import get_child_logger

log = get_child_logger("status_store")

Checkpoint = Dict[str, int]


def _coerce(raw: Any, path: str) -> Checkpoint:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise CheckpointError(f"checkpoint {path} is not a mapping")
    data = raw.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CheckpointError(f"checkpoint {path}: 'data' is not a mapping")

    checkpoint: Checkpoint = {}
    for zone, serial in data.items():
        if isinstance(serial, bool) or not isinstance(serial, int):
            raise CheckpointError(f"checkpoint {path}: serial for {zone!r} is not an integer")
        checkpoint[str(zone)] = serial
    return checkpoint


def load(path: str) -> Checkpoint:
    """Load the checkpoint; an absent file is an empty checkpoint, not an error."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        log.info("No status file found, a new one will be created.")
        return {}
    except OSError as e:
        raise CheckpointError(f"cannot read checkpoint {path}: {e}") from e

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CheckpointError(f"invalid YAML in checkpoint {path}: {e}") from e

    checkpoint = _coerce(raw, path)
    log.debug("Loaded checkpoint with {} zones from {}", len(checkpoint), path)
    return checkpoint


def save(path: str, checkpoint: Checkpoint) -> None:
    """
    Atomically replace `path` with the given checkpoint.

    Raises:
        CheckpointError: the temp file could not be written or renamed.
    """
    directory = os.path.dirname(os.path.abspath(path))
    payload = yaml.safe_dump({"data": dict(checkpoint)}, default_flow_style=False, sort_keys=True)

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".ttl-audit-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise CheckpointError(f"cannot write checkpoint {path}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)

    log.info("Saved checkpoint with {} zones to {}", len(checkpoint), path)


class StatusStore:
    """Thin object wrapper so the runner can be handed a store (or a fake in tests)."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Checkpoint:
        return load(self.path)

    def save(self, checkpoint: Checkpoint) -> None:
        save(self.path, checkpoint)
