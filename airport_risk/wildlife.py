"""
Wildlife-hazard (bird strike) table and its background refresh.

The table is a read-only mapping swapped by reference on every refresh, so
request handlers always see either the previous table or the new one.
"""
import asyncio
import csv
import datetime
import logging
import pathlib
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from .cache import Clock, utc_now
from .feeds import FeedError, FeedOk, FeedResult
from .tiers import Tier

logger = logging.getLogger(__name__)

LOW_ALTITUDE_BAND_M: int = 3000
HIGH_INCIDENT_COUNT: int = 500
MEDIUM_INCIDENT_COUNT: int = 200

DEFAULT_REFRESH_INTERVAL: float = 300.0

WildlifeFeedCallable = Callable[[], Awaitable[FeedResult[List[Dict[str, Any]]]]]


@dataclass(frozen=True)
class WildlifeHazardRecord:
    location: str
    altitude_band_m: int
    incident_count: int


def classify(record: Optional[WildlifeHazardRecord]) -> Tier:
    """
    Classify a wildlife record.

    Args:
        record: Record for a location, or None when the location is absent

    Returns:
        Unknown when absent; High/Medium for low-altitude bands with more
        than 500/200 incidents; Low otherwise
    """
    if record is None:
        return Tier.UNKNOWN
    if record.altitude_band_m < LOW_ALTITUDE_BAND_M:
        if record.incident_count > HIGH_INCIDENT_COUNT:
            return Tier.HIGH
        if record.incident_count > MEDIUM_INCIDENT_COUNT:
            return Tier.MEDIUM
    return Tier.LOW


def build_table(rows: List[Dict[str, Any]]) -> Mapping[str, WildlifeHazardRecord]:
    table = {}
    for row in rows:
        record = WildlifeHazardRecord(
            location=str(row["location"]).strip().upper(),
            altitude_band_m=int(row["altitude_band_m"]),
            incident_count=int(row["incident_count"]),
        )
        table[record.location] = record
    return MappingProxyType(table)


def load_static_dataset(path: Union[str, pathlib.Path]) -> Mapping[str, WildlifeHazardRecord]:
    """
    Load the bundled CSV dataset.

    Raises:
        OSError: If the file cannot be read
        KeyError, ValueError: If a row is malformed
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        rows = [row for row in csv.DictReader(f) if row.get("location")]
    return build_table(rows)


class WildlifeHazardProvider:
    """
    Holds the wildlife table and keeps it current.

    With a feed, ``start()`` launches a background task that refreshes the
    table every ``interval`` seconds until ``stop()``. Without one, the static
    dataset is loaded once.
    """

    def __init__(
        self,
        dataset_path: Union[str, pathlib.Path],
        feed: Optional[WildlifeFeedCallable] = None,
        interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Clock = utc_now,
    ):
        self.dataset_path = dataset_path
        self.feed = feed
        self.interval = interval
        self.clock = clock
        self._table: Mapping[str, WildlifeHazardRecord] = MappingProxyType({})
        self._populated = False
        self._task: Optional[asyncio.Task] = None
        self.last_refresh: Optional[datetime.datetime] = None

    @property
    def table(self) -> Mapping[str, WildlifeHazardRecord]:
        return self._table

    def _swap(self, table: Mapping[str, WildlifeHazardRecord]) -> None:
        self._table = table
        self._populated = True
        self.last_refresh = self.clock()

    def _load_static(self) -> bool:
        try:
            table = load_static_dataset(self.dataset_path)
        except (OSError, KeyError, ValueError) as e:
            logger.error("Could not load wildlife dataset %s: %s", self.dataset_path, e)
            return False
        self._swap(table)
        logger.info("Loaded %d wildlife records from %s", len(table), self.dataset_path)
        return True

    async def refresh(self) -> bool:
        """
        Replace the table from the feed, or from the static dataset when no
        feed is configured.

        Returns:
            True if the table was replaced
        """
        if self.feed is None:
            return self._load_static()

        match await self.feed():
            case FeedOk(value=rows):
                try:
                    table = build_table(rows)
                except (KeyError, TypeError, ValueError) as e:
                    reason = f"malformed rows: {e}"
                else:
                    self._swap(table)
                    logger.info("Refreshed %d wildlife records from feed", len(table))
                    return True
            case FeedError(reason=reason):
                pass
            case other:
                reason = f"unexpected result {other!r}"

        logger.warning("Wildlife feed refresh failed, keeping current table: %s", reason)
        if not self._populated:
            logger.warning("Wildlife table never populated, falling back to %s", self.dataset_path)
            return self._load_static()
        return False

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Wildlife refresh crashed")
            await asyncio.sleep(self.interval)

    async def start(self) -> None:
        if self.feed is None:
            await self.refresh()
            return
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="wildlife-refresh")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get(self, location: str) -> Optional[WildlifeHazardRecord]:
        return self._table.get(location.strip().upper())

    def assess(self, location: str) -> Tier:
        return classify(self.get(location))

    def suggest_alternate(self, location: str) -> Optional[str]:
        """
        Suggest the lowest-incident location when ``location`` is High risk.

        Returns:
            Location code with the fewest incidents other than ``location``,
            or None if the location is not High or there is no other entry
        """
        key = location.strip().upper()
        table = self._table
        if classify(table.get(key)) is not Tier.HIGH:
            return None
        others = [r for r in table.values() if r.location != key]
        if not others:
            return None
        return min(others, key=lambda r: r.incident_count).location
