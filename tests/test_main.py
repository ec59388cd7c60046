# tests/test_main.py
from __future__ import annotations

import asyncio

import pytest

import main
from conftest import FakeProvider, a_record, make_config
from scan_module.errors import FetchError
from scan_module.zone_records import ScanResult, ZoneRecord


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    # keep loguru sinks away from pytest's per-test capture streams
    monkeypatch.setattr(main, "configure_logging", lambda *a, **k: None)


@pytest.mark.parametrize("argv", [[], ["only-config.yaml"], ["a.yaml", "b.yaml", "c.yaml"]])
def test_wrong_arity_is_a_usage_error(argv):
    with pytest.raises(SystemExit) as exc:
        main.main(argv)
    assert exc.value.code == 2


def test_missing_config_exits_non_zero(tmp_path, capsys):
    status = tmp_path / "status.yaml"
    code = main.main([str(tmp_path / "missing.yaml"), str(status)])

    assert code == 1
    assert "cannot read configuration" in capsys.readouterr().err
    assert not status.exists()


def test_fatal_scan_error_exits_non_zero(tmp_path, monkeypatch):
    async def _fail(config_file, status_file):
        raise FetchError("zone list unavailable")

    monkeypatch.setattr(main, "run", _fail)
    assert main.main([str(tmp_path / "c.yaml"), str(tmp_path / "s.yaml")]) == 1


def test_run_scans_saves_and_prints(tmp_path, monkeypatch, capsys):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "customer: acme\nusername: auditor\npassword: secret\nminTTL: 300\nprint_results: true\n",
        encoding="utf-8",
    )
    status = tmp_path / "status.yaml"
    provider = FakeProvider(
        {"example.com": 42},
        {"example.com": [a_record("example.com", "www.example.com", "10.0.0.5", 60)]},
    )

    class _Client:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return provider

        async def __aexit__(self, *exc):
            return False

    monkeypatch.setattr(main, "DynClient", _Client)
    result = asyncio.run(main.run(str(config_file), str(status)))

    assert [r.fqdn for r in result.offending_records] == ["www.example.com"]
    assert status.read_text(encoding="utf-8").strip() == "data: {}"
    assert "Those nodes have TTLs lower than 300\nwww.example.com" in capsys.readouterr().out


def test_deliver_posts_to_slack_when_enabled(monkeypatch):
    sent = []

    class _Notifier:
        def __init__(self, token, channel_id):
            self.token, self.channel_id = token, channel_id

        async def post(self, text):
            sent.append((self.token, self.channel_id, text))
            return True

    monkeypatch.setattr(main, "SlackNotifier", _Notifier)
    conf = make_config(slack_results=True, slack_token="xoxb-1", slack_channel_id="C123")
    result = ScanResult(offending_records=[ZoneRecord(zone="z", fqdn="a.z", rtype="A", ttl=1)])

    text = asyncio.run(main.deliver(result, conf))

    assert sent == [("xoxb-1", "C123", text)]
    assert text.endswith("a.z")
