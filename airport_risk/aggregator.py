"""
Risk aggregation.

Combines wildlife, weather, traffic and historical signals into one weighted
score and tier for an airport, optionally projected onto another moment.
"""
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from . import temporal
from .cache import Clock, utc_now
from .errors import InvalidInput
from .reference import ReferenceData
from .tiers import Tier, score_to_tier, tier_to_score
from .weather import WeatherProvider, describe, weather_risk
from .wildlife import WildlifeHazardProvider

logger = logging.getLogger(__name__)

WILDLIFE_WEIGHT: float = 0.4
WEATHER_WEIGHT: float = 0.35
TRAFFIC_WEIGHT: float = 0.15
HISTORICAL_WEIGHT: float = 0.1

# A target time this close to the clock counts as "now"
NOW_TOLERANCE = datetime.timedelta(seconds=60)


@dataclass(frozen=True)
class RiskBreakdown:
    wildlife_score: float
    weather_score: float
    traffic_score: float
    historical_score: float
    total_score: float
    tier: Tier
    confidence: float


@dataclass(frozen=True)
class Assessment:
    location: str
    breakdown: RiskBreakdown
    wildlife_tier: Tier
    weather_tier: Tier
    weather_narrative: str
    is_time_travel: bool
    target_time: Optional[datetime.datetime] = None
    suggested_alternate: Optional[str] = None

    @property
    def tier(self) -> Tier:
        return self.breakdown.tier

    @property
    def total_score(self) -> float:
        return self.breakdown.total_score

    def to_dict(self) -> Dict[str, Any]:
        b = self.breakdown
        return {
            "location": self.location,
            "tier": b.tier.value,
            "totalScore": b.total_score,
            "breakdown": {
                "wildlifeScore": b.wildlife_score,
                "weatherScore": b.weather_score,
                "trafficScore": b.traffic_score,
                "historicalScore": b.historical_score,
                "confidence": b.confidence,
            },
            "wildlifeTier": self.wildlife_tier.value,
            "weatherTier": self.weather_tier.value,
            "weatherNarrative": self.weather_narrative,
            "isTimeTravel": self.is_time_travel,
            "targetTime": self.target_time.isoformat() if self.target_time else None,
            "suggestedAlternate": self.suggested_alternate,
        }


def normalize_location(location: Optional[str]) -> str:
    """
    Validate and normalize a location code.

    Raises:
        InvalidInput: If the code is blank or contains anything other than
            letters and digits
    """
    if location is None or not location.strip():
        raise InvalidInput("Airport code cannot be null or empty")
    code = location.strip().upper()
    if not code.isalnum():
        raise InvalidInput(f"Malformed airport code: {location!r}")
    return code


def _as_aware(when: datetime.datetime) -> datetime.datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=datetime.timezone.utc)
    return when


class RiskAggregator:
    """
    Orchestrates the providers and scores a location.

    Args:
        weather: Provider of current weather snapshots
        wildlife: Provider of wildlife hazard tiers
        reference: Static traffic and historical tables
        clock: Source of "now" for time-travel detection
    """

    def __init__(
        self,
        weather: WeatherProvider,
        wildlife: WildlifeHazardProvider,
        reference: Optional[ReferenceData] = None,
        clock: Clock = utc_now,
    ):
        self.weather = weather
        self.wildlife = wildlife
        self.reference = reference or ReferenceData()
        self.clock = clock

    def is_time_travel(self, target_time: Optional[datetime.datetime]) -> bool:
        if target_time is None:
            return False
        return abs(_as_aware(target_time) - self.clock()) > NOW_TOLERANCE

    def breakdown(self, location: str, wildlife_tier: Tier, weather_tier: Tier) -> RiskBreakdown:
        """Score already-classified tiers for ``location``."""
        wildlife_score = tier_to_score(wildlife_tier)
        weather_score = tier_to_score(weather_tier)
        traffic_score = self.reference.traffic_score(location)
        historical_score = self.reference.historical_score(location)

        total = (
            wildlife_score * WILDLIFE_WEIGHT
            + weather_score * WEATHER_WEIGHT
            + traffic_score * TRAFFIC_WEIGHT
            + historical_score * HISTORICAL_WEIGHT
        )
        total = max(0.0, min(1.0, total))

        logger.debug(
            "Risk calculation for %s: wildlife=%s weather=%s traffic=%s historical=%s total=%s",
            location, wildlife_score, weather_score, traffic_score, historical_score, total,
        )
        return RiskBreakdown(
            wildlife_score=wildlife_score,
            weather_score=weather_score,
            traffic_score=traffic_score,
            historical_score=historical_score,
            total_score=total,
            tier=score_to_tier(total),
            confidence=self.reference.confidence(location),
        )

    async def assess(
        self,
        location: str,
        target_time: Optional[datetime.datetime] = None,
    ) -> Assessment:
        code = normalize_location(location)

        wildlife_tier = self.wildlife.assess(code)
        snapshot = await self.weather.get(code)
        weather_tier = weather_risk(snapshot)
        if snapshot.is_fallback:
            logger.info("Scoring %s on fallback weather", code)

        time_travel = self.is_time_travel(target_time)
        if time_travel:
            wildlife_tier = temporal.adjust_wildlife(wildlife_tier, target_time)
            weather_tier = temporal.adjust_weather(weather_tier, target_time)
            weather_narrative = temporal.narrative(target_time)
        else:
            weather_narrative = describe(snapshot)

        return Assessment(
            location=code,
            breakdown=self.breakdown(code, wildlife_tier, weather_tier),
            wildlife_tier=wildlife_tier,
            weather_tier=weather_tier,
            weather_narrative=weather_narrative,
            is_time_travel=time_travel,
            target_time=target_time if time_travel else None,
            suggested_alternate=self.wildlife.suggest_alternate(code),
        )
