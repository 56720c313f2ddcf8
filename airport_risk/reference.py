"""
Static reference tables: daily traffic volume and historical incident scores.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_TRAFFIC: Mapping[str, int] = MappingProxyType({
    "DEL": 1200,
    "BOM": 1000,
    "BLR": 800,
    "HYD": 600,
    "CCU": 500,
    "JFK": 1500,
})

DEFAULT_HISTORICAL: Mapping[str, float] = MappingProxyType({
    "DEL": 0.6,  # higher incident history
    "BOM": 0.7,  # monsoon season
    "CCU": 0.5,
    "JFK": 0.4,
})

# Absent from the traffic table; distinct from the low-volume score
TRAFFIC_NO_DATA_SCORE: float = 0.3
TRAFFIC_LOW_VOLUME_SCORE: float = 0.2
HISTORICAL_DEFAULT_SCORE: float = 0.3

KNOWN_CONFIDENCE: float = 0.85
UNKNOWN_CONFIDENCE: float = 0.6


@dataclass(frozen=True)
class ReferenceData:
    """Read-only lookup tables handed to the aggregator at construction."""
    traffic: Mapping[str, int] = field(default_factory=lambda: DEFAULT_TRAFFIC)
    historical: Mapping[str, float] = field(default_factory=lambda: DEFAULT_HISTORICAL)

    def __post_init__(self):
        object.__setattr__(self, "traffic", MappingProxyType(dict(self.traffic)))
        object.__setattr__(self, "historical", MappingProxyType(dict(self.historical)))

    def is_known(self, location: str) -> bool:
        return location in self.traffic

    def traffic_score(self, location: str) -> float:
        flights = self.traffic.get(location)
        if flights is None:
            return TRAFFIC_NO_DATA_SCORE
        if flights > 1200:
            return 0.8
        if flights > 800:
            return 0.6
        if flights > 500:
            return 0.4
        return TRAFFIC_LOW_VOLUME_SCORE

    def historical_score(self, location: str) -> float:
        return self.historical.get(location, HISTORICAL_DEFAULT_SCORE)

    def confidence(self, location: str) -> float:
        return KNOWN_CONFIDENCE if self.is_known(location) else UNKNOWN_CONFIDENCE
