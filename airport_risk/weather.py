"""
Weather data fetching, caching and risk classification.

Integrates with an OpenWeatherMap-style feed to fetch current conditions per
airport, keeps them in a 10 minute cache, and substitutes a fixed
per-airport reading whenever the feed is unavailable.
"""
import asyncio
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .cache import TTLCache, TTLPolicy
from .feeds import FeedError, FeedOk, FeedResult
from .tiers import Tier

logger = logging.getLogger(__name__)

DEFAULT_TTL = datetime.timedelta(minutes=10)
DEFAULT_VISIBILITY_KM: float = 10.0
DEFAULT_CONDITION: str = "Clear"

HIGH_WIND_MS: float = 15.0
MEDIUM_WIND_MS: float = 8.0
HIGH_VISIBILITY_KM: float = 1.0
MEDIUM_VISIBILITY_KM: float = 5.0

HIGH_RISK_CONDITIONS = frozenset({"thunderstorm", "tornado"})
MEDIUM_RISK_CONDITIONS = frozenset({"rain", "snow", "fog"})

# IATA code -> name understood by the feed
QUERY_NAMES: Dict[str, str] = {
    "DEL": "Delhi",
    "BOM": "Mumbai",
    "BLR": "Bangalore",
    "HYD": "Hyderabad",
    "CCU": "Kolkata",
}

WeatherFeed = Callable[[str], Awaitable[FeedResult[Dict[str, Any]]]]


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature_c: float
    wind_speed_ms: float
    visibility_km: float
    condition: str
    fetched_at: Optional[datetime.datetime] = None
    is_fallback: bool = False


def _fallback(temp: float, wind: float, condition: str) -> WeatherSnapshot:
    return WeatherSnapshot(
        temperature_c=temp,
        wind_speed_ms=wind,
        visibility_km=DEFAULT_VISIBILITY_KM,
        condition=condition,
        is_fallback=True,
    )


FALLBACK_SNAPSHOTS: Dict[str, WeatherSnapshot] = {
    "DEL": _fallback(25.0, 5.0, "Clear"),
    "BOM": _fallback(28.0, 8.0, "Partly Cloudy"),
    "BLR": _fallback(22.0, 3.0, "Clear"),
    "HYD": _fallback(26.0, 4.0, "Clear"),
    "CCU": _fallback(30.0, 6.0, "Humid"),
}
DEFAULT_FALLBACK: WeatherSnapshot = _fallback(20.0, 5.0, "Clear")


def fallback_snapshot(location: str) -> WeatherSnapshot:
    """Return the fixed reading used when the feed is unavailable."""
    return FALLBACK_SNAPSHOTS.get(location, DEFAULT_FALLBACK)


def parse_current_conditions(
    payload: Dict[str, Any],
    fetched_at: Optional[datetime.datetime] = None,
) -> WeatherSnapshot:
    """
    Build a snapshot from a raw feed payload.

    Args:
        payload: Decoded feed response
        fetched_at: Timestamp recorded on the snapshot

    Returns:
        WeatherSnapshot with visibility converted from metres to km
        (10 km when absent) and condition defaulting to "Clear"

    Raises:
        KeyError, TypeError, ValueError: If temperature or wind is missing
            or not numeric
    """
    main: Dict[str, Any] = payload["main"]
    wind: Dict[str, Any] = payload["wind"]
    temp = float(main["temp"])
    wind_speed = float(wind["speed"])

    visibility_m = payload.get("visibility", main.get("visibility"))
    visibility_km = DEFAULT_VISIBILITY_KM if visibility_m is None else float(visibility_m) / 1000.0

    condition = DEFAULT_CONDITION
    conditions = payload.get("weather") or []
    if conditions and isinstance(conditions[0], dict):
        condition = conditions[0].get("main") or DEFAULT_CONDITION

    return WeatherSnapshot(
        temperature_c=temp,
        wind_speed_ms=wind_speed,
        visibility_km=visibility_km,
        condition=str(condition),
        fetched_at=fetched_at,
    )


def weather_risk(snapshot: WeatherSnapshot) -> Tier:
    """
    Classify a snapshot into a weather risk tier.

    Args:
        snapshot: Live or fallback reading

    Returns:
        High for strong wind, thunderstorm/tornado or visibility under 1 km;
        Medium for moderate wind, rain/snow/fog or visibility under 5 km;
        Low otherwise
    """
    condition = snapshot.condition.strip().lower()
    if (
        snapshot.wind_speed_ms > HIGH_WIND_MS
        or condition in HIGH_RISK_CONDITIONS
        or snapshot.visibility_km < HIGH_VISIBILITY_KM
    ):
        return Tier.HIGH
    if (
        snapshot.wind_speed_ms > MEDIUM_WIND_MS
        or condition in MEDIUM_RISK_CONDITIONS
        or snapshot.visibility_km < MEDIUM_VISIBILITY_KM
    ):
        return Tier.MEDIUM
    return Tier.LOW


def describe(snapshot: WeatherSnapshot) -> str:
    return (
        f"Temp: {snapshot.temperature_c:.1f}°C, "
        f"Wind: {snapshot.wind_speed_ms:.1f} m/s, "
        f"Condition: {snapshot.condition}"
    )


class WeatherProvider:
    """
    Current weather per location with caching and fallback.

    ``get`` never raises: a failed or timed-out fetch yields the location's
    fallback snapshot, which is not cached so the next call retries the feed.
    """

    def __init__(
        self,
        feed: WeatherFeed,
        policy: Optional[TTLPolicy] = None,
        timeout: float = 5.0,
        max_concurrent: int = 10,
        query_names: Optional[Dict[str, str]] = None,
    ):
        self.feed = feed
        self.cache: TTLCache[WeatherSnapshot] = TTLCache(policy or TTLPolicy(DEFAULT_TTL))
        self.timeout = timeout
        self.query_names = QUERY_NAMES if query_names is None else query_names
        # Limits concurrent API requests (prevents rate limiting)
        self._sem = asyncio.Semaphore(max_concurrent)

    async def _fetch(self, query_name: str) -> FeedResult[Dict[str, Any]]:
        try:
            async with self._sem:
                return await asyncio.wait_for(self.feed(query_name), timeout=self.timeout)
        except asyncio.TimeoutError:
            return FeedError(f"timed out after {self.timeout}s")
        except Exception as e:
            logger.exception("Weather feed raised for %s", query_name)
            return FeedError(f"feed raised {type(e).__name__}: {e}")

    async def get(self, location: str) -> WeatherSnapshot:
        key = location.strip().upper()

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Returning cached weather data for %s", key)
            return cached

        query_name = self.query_names.get(key, key)
        logger.info("Fetching weather data for %s (%s)", key, query_name)

        match await self._fetch(query_name):
            case FeedOk(value=payload):
                try:
                    snapshot = parse_current_conditions(payload, fetched_at=self.cache.policy.now())
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.warning("Malformed weather payload for %s: %r", key, e)
                    return fallback_snapshot(key)
                self.cache.put(key, snapshot)
                return snapshot
            case FeedError(reason=reason):
                logger.warning("Error fetching weather for %s: %s", key, reason)
                return fallback_snapshot(key)
            case other:
                logger.warning("Unexpected weather feed result for %s: %r", key, other)
                return fallback_snapshot(key)

    def invalidate(self, location: Optional[str] = None) -> None:
        self.cache.invalidate(None if location is None else location.strip().upper())
