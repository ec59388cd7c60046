# tests/test_status_store.py
from __future__ import annotations

import os

import pytest

from scan_module import status_store
from scan_module.errors import CheckpointError
from scan_module.status_store import StatusStore


def test_missing_file_is_empty_checkpoint(tmp_path):
    assert status_store.load(str(tmp_path / "status.yaml")) == {}


def test_reads_yaml_data_mapping(tmp_path):
    p = tmp_path / "status.yaml"
    p.write_text("data:\n  example.com: 42\n  example.net: 7\n", encoding="utf-8")
    assert status_store.load(str(p)) == {"example.com": 42, "example.net": 7}


def test_empty_data_mapping(tmp_path):
    p = tmp_path / "status.yaml"
    p.write_text("data: {}\n", encoding="utf-8")
    assert status_store.load(str(p)) == {}


@pytest.mark.parametrize(
    "content",
    ["data: [1, 2]\n", "data:\n  example.com: forty-two\n", "data: {unclosed\n", "- just\n- a list\n"],
)
def test_corrupt_checkpoint_is_an_error(tmp_path, content):
    p = tmp_path / "status.yaml"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(CheckpointError):
        status_store.load(str(p))


def test_save_replaces_file_and_leaves_no_temp(tmp_path):
    p = tmp_path / "status.yaml"
    p.write_text("data:\n  old.example: 1\n", encoding="utf-8")

    StatusStore(str(p)).save({"example.com": 42})

    assert status_store.load(str(p)) == {"example.com": 42}
    assert sorted(os.listdir(tmp_path)) == ["status.yaml"]


def test_failed_rename_keeps_previous_checkpoint(tmp_path, monkeypatch):
    p = tmp_path / "status.yaml"
    p.write_text("data:\n  example.com: 41\n", encoding="utf-8")
    before = p.read_bytes()

    def _boom(src, dst):
        raise OSError("disk went away")

    monkeypatch.setattr(status_store.os, "replace", _boom)

    with pytest.raises(CheckpointError):
        status_store.save(str(p), {"example.com": 42})

    assert p.read_bytes() == before
    assert sorted(os.listdir(tmp_path)) == ["status.yaml"]


def test_save_into_missing_directory_is_an_error(tmp_path):
    with pytest.raises(CheckpointError):
        status_store.save(str(tmp_path / "nope" / "status.yaml"), {"example.com": 1})
