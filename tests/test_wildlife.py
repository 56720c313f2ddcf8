"""
Tests for the wildlife-hazard table, its refresh modes and the background loop.
"""
import asyncio

import httpx
import pytest

from airport_risk.feeds import FeedError, FeedOk, WildlifeFeed, parse_wildlife_records
from airport_risk.errors import ExternalServiceUnavailable
from airport_risk.tiers import Tier
from airport_risk.wildlife import (
    WildlifeHazardProvider,
    WildlifeHazardRecord,
    classify,
    load_static_dataset,
)

FEED_ROWS = [
    {"location": "DEL", "altitude_band_m": 2000, "incident_count": 150},
    {"location": "SIN", "altitude_band_m": 1500, "incident_count": 900},
]


class FakeWildlifeFeed:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


def test_classify_thresholds():
    assert classify(None) is Tier.UNKNOWN
    assert classify(WildlifeHazardRecord("X", 2999, 501)) is Tier.HIGH
    assert classify(WildlifeHazardRecord("X", 2999, 500)) is Tier.MEDIUM
    assert classify(WildlifeHazardRecord("X", 2999, 201)) is Tier.MEDIUM
    assert classify(WildlifeHazardRecord("X", 2999, 200)) is Tier.LOW
    assert classify(WildlifeHazardRecord("X", 3000, 5000)) is Tier.LOW


def test_load_static_dataset(dataset_path):
    table = load_static_dataset(dataset_path)
    assert table["DEL"] == WildlifeHazardRecord("DEL", 2000, 1200)
    assert set(table) == {"DEL", "BOM", "BLR", "HYD", "CCU"}


def test_static_table_is_read_only(dataset_path):
    table = load_static_dataset(dataset_path)
    with pytest.raises(TypeError):
        table["XXX"] = WildlifeHazardRecord("XXX", 0, 0)


@pytest.mark.asyncio
async def test_static_mode_assess(wildlife_provider):
    assert wildlife_provider.assess("del") is Tier.HIGH
    assert wildlife_provider.assess("BLR") is Tier.MEDIUM
    assert wildlife_provider.assess("CCU") is Tier.LOW
    assert wildlife_provider.assess("ZZZ") is Tier.UNKNOWN
    assert wildlife_provider.running is False
    assert wildlife_provider.last_refresh is not None


@pytest.mark.asyncio
async def test_missing_dataset_leaves_table_empty(tmp_path):
    provider = WildlifeHazardProvider(tmp_path / "missing.csv")
    assert await provider.refresh() is False
    assert provider.assess("DEL") is Tier.UNKNOWN


@pytest.mark.asyncio
async def test_malformed_dataset_leaves_table_empty(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("location,altitude_band_m,incident_count\nDEL,high,lots\n", encoding="utf-8")
    provider = WildlifeHazardProvider(path)
    assert await provider.refresh() is False
    assert len(provider.table) == 0


@pytest.mark.asyncio
async def test_feed_refresh_replaces_table(dataset_path):
    provider = WildlifeHazardProvider(dataset_path, feed=FakeWildlifeFeed([FeedOk(FEED_ROWS)]))
    assert await provider.refresh() is True
    assert set(provider.table) == {"DEL", "SIN"}
    assert provider.assess("DEL") is Tier.LOW
    assert provider.assess("BOM") is Tier.UNKNOWN


@pytest.mark.asyncio
async def test_feed_failure_keeps_existing_table(dataset_path):
    feed = FakeWildlifeFeed([FeedOk(FEED_ROWS), FeedError("down")])
    provider = WildlifeHazardProvider(dataset_path, feed=feed)
    await provider.refresh()
    before = provider.table

    assert await provider.refresh() is False
    assert provider.table is before


@pytest.mark.asyncio
async def test_malformed_feed_rows_keep_existing_table(dataset_path):
    feed = FakeWildlifeFeed([FeedOk(FEED_ROWS), FeedOk([{"location": "DEL"}])])
    provider = WildlifeHazardProvider(dataset_path, feed=feed)
    await provider.refresh()

    assert await provider.refresh() is False
    assert set(provider.table) == {"DEL", "SIN"}


@pytest.mark.asyncio
async def test_first_feed_failure_falls_back_to_static_once(dataset_path):
    provider = WildlifeHazardProvider(dataset_path, feed=FakeWildlifeFeed([FeedError("down")]))

    assert await provider.refresh() is True
    assert provider.assess("DEL") is Tier.HIGH
    # Already populated: later failures leave the table alone
    before = provider.table
    assert await provider.refresh() is False
    assert provider.table is before


@pytest.mark.asyncio
async def test_background_refresh_runs_until_stopped(dataset_path):
    feed = FakeWildlifeFeed([FeedOk(FEED_ROWS)])
    provider = WildlifeHazardProvider(dataset_path, feed=feed, interval=0.01)

    await provider.start()
    assert provider.running is True
    await asyncio.sleep(0.1)
    await provider.stop()

    assert feed.calls >= 2
    assert provider.running is False
    calls = feed.calls
    await asyncio.sleep(0.05)
    assert feed.calls == calls


@pytest.mark.asyncio
async def test_background_refresh_survives_crashing_feed(dataset_path):
    calls = []

    async def crashing_feed():
        calls.append(1)
        raise RuntimeError("bug in feed")

    provider = WildlifeHazardProvider(dataset_path, feed=crashing_feed, interval=0.01)
    await provider.start()
    await asyncio.sleep(0.1)
    await provider.stop()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_start_does_not_block_on_refresh(dataset_path):
    release = asyncio.Event()

    async def slow_feed():
        await release.wait()
        return FeedOk(FEED_ROWS)

    provider = WildlifeHazardProvider(dataset_path, feed=slow_feed, interval=60)
    await asyncio.wait_for(provider.start(), timeout=0.5)
    assert provider.assess("SIN") is Tier.UNKNOWN

    release.set()
    await asyncio.sleep(0.05)
    assert provider.assess("SIN") is Tier.HIGH
    await provider.stop()


@pytest.mark.asyncio
async def test_suggest_alternate(wildlife_provider):
    assert wildlife_provider.suggest_alternate("DEL") == "CCU"
    assert wildlife_provider.suggest_alternate("BLR") is None
    assert wildlife_provider.suggest_alternate("ZZZ") is None


def test_parse_wildlife_records():
    rows = parse_wildlife_records([{"location": " del", "altitudeBand": "2000", "incidentCount": 12}])
    assert rows == [{"location": "DEL", "altitude_band_m": 2000, "incident_count": 12}]

    with pytest.raises(ExternalServiceUnavailable):
        parse_wildlife_records({"location": "DEL"})
    with pytest.raises(ExternalServiceUnavailable):
        parse_wildlife_records([{"location": "DEL", "altitudeBand": 1}])


@pytest.mark.asyncio
async def test_wildlife_feed_adapter():
    payload = [{"location": "DEL", "altitudeBand": 2000, "incidentCount": 1200}]
    feed = WildlifeFeed("https://wildlife.test/all", timeout=1.0,
                        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)))
    result = await feed()
    assert result == FeedOk([{"location": "DEL", "altitude_band_m": 2000, "incident_count": 1200}])

    failing = WildlifeFeed("https://wildlife.test/all", timeout=1.0,
                           transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    assert isinstance(await failing(), FeedError)
