"""Tests for HarvestWorkflow orchestration."""

import json

import httpx
import pytest

from conftest import FakeGmail, metadata_message
from mailsift.core.config import MailsiftSettings
from mailsift.core.errors import FetchError
from mailsift.workflows.harvest import HarvestWorkflow


def _settings(monkeypatch, tmp_path, yaml_text: str = "") -> MailsiftSettings:
    config = tmp_path / "harvest.yaml"
    config.write_text(yaml_text)
    monkeypatch.setenv("MAILSIFT_CONFIG", str(config))
    return MailsiftSettings()


def _fake(n: int, next_token: str | None = None, failing: tuple[str, ...] = ()) -> FakeGmail:
    listing: dict = {
        "messages": [{"id": f"m-{i}", "threadId": f"t-{i}"} for i in range(n)],
        "resultSizeEstimate": n,
    }
    if next_token:
        listing["nextPageToken"] = next_token
    messages = {
        f"m-{i}": metadata_message(f"m-{i}", {"To": f"user{i}@x.com", "Date": f"d{i}"})
        for i in range(n)
    }
    for message_id in failing:
        messages[message_id] = httpx.ReadTimeout("timed out")
    return FakeGmail(listing=listing, messages=messages)


class TestRun:
    def test_full_pipeline(self, monkeypatch, tmp_path, fixed_now):
        settings = _settings(monkeypatch, tmp_path)
        mapping = tmp_path / "data" / "phone_numbers.json"
        mapping.parent.mkdir()
        mapping.write_text(json.dumps({"user1@x.com": "555-0101"}))
        fake = _fake(3, failing=("m-2",))

        result = HarvestWorkflow(fake, settings).run(now=fixed_now)

        assert result.query == "label:CVS subject:$4 Coupon! after:2024/03/04"
        assert fake.list_calls == [(result.query, 500)]
        assert [r.id for r in result.records] == ["m-0", "m-1", "m-2"]
        assert result.records[2].error == "timed out"
        assert result.phone_numbers == ["555-0101"]
        assert result.truncated is False

        saved = json.loads((tmp_path / "output" / "emails_2024-03-10_14-05-09.json").read_text())
        assert [d["id"] for d in saved] == ["m-0", "m-1", "m-2"]

    def test_no_matches_writes_nothing(self, monkeypatch, tmp_path, fixed_now, capsys):
        settings = _settings(monkeypatch, tmp_path)

        result = HarvestWorkflow(FakeGmail(), settings).run(now=fixed_now)

        assert result.records == []
        assert result.phone_numbers == []
        assert not (tmp_path / "output").exists()
        assert "Found 0 emails" in capsys.readouterr().out

    def test_uses_configured_query_and_cap(self, monkeypatch, tmp_path, fixed_now):
        settings = _settings(
            monkeypatch,
            tmp_path,
            "query:\n  label: Receipts\n  subject: invoice\n  lookback_days: 1\n  max_results: 2\n",
        )
        fake = _fake(2, next_token="more")

        result = HarvestWorkflow(fake, settings).run(now=fixed_now)

        assert fake.list_calls == [("label:Receipts subject:invoice after:2024/03/09", 2)]
        assert result.truncated is True
        assert len(result.records) == 2

    def test_custom_output_and_mapping_paths(self, monkeypatch, tmp_path, fixed_now):
        mapping = tmp_path / "phones.json"
        mapping.write_text(json.dumps({"user0@x.com": "555-0100"}))
        settings = _settings(
            monkeypatch,
            tmp_path,
            f"output:\n  directory: {tmp_path / 'results'}\n  mapping_path: {mapping}\n",
        )

        result = HarvestWorkflow(_fake(1), settings).run(now=fixed_now)

        assert result.phone_numbers == ["555-0100"]
        assert (tmp_path / "results" / "emails_2024-03-10_14-05-09.json").exists()

    def test_listing_failure_is_fatal(self, monkeypatch, tmp_path, fixed_now):
        settings = _settings(monkeypatch, tmp_path)
        fake = FakeGmail(listing=httpx.ConnectError("Connection refused"))

        with pytest.raises(FetchError):
            HarvestWorkflow(fake, settings).run(now=fixed_now)

        assert not (tmp_path / "output").exists()
