"""
Seasonal and diurnal adjustments for assessments at a chosen moment.

Everything here is a pure function of the target timestamp. Season and hour
are taken from the timestamp's own wall clock, without timezone conversion.
"""
import datetime
from enum import Enum
from typing import Dict, Tuple

from .tiers import Tier, upgrade


class Season(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"
    WINTER = "Winter"


class TimeOfDay(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    NIGHT = "Night"


MIGRATION_SEASONS = frozenset({Season.SPRING, Season.FALL})
WINTER_MONTHS = frozenset({12, 1, 2})
STORM_MONTHS = frozenset({6, 7, 8})


def season_for(month: int) -> Season:
    if 3 <= month <= 5:
        return Season.SPRING
    if 6 <= month <= 8:
        return Season.SUMMER
    if 9 <= month <= 11:
        return Season.FALL
    return Season.WINTER


def time_of_day_for(hour: int) -> TimeOfDay:
    if 5 <= hour <= 11:
        return TimeOfDay.MORNING
    if 12 <= hour <= 16:
        return TimeOfDay.AFTERNOON
    if 17 <= hour <= 20:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def is_dawn_or_dusk(hour: int) -> bool:
    return 5 <= hour <= 8 or 17 <= hour <= 20


def adjust_wildlife(tier: Tier, when: datetime.datetime) -> Tier:
    """
    Apply the migration rule and the dawn/dusk rule.

    Both rules look at the incoming tier. Migration seasons raise any tier
    one step; dawn and dusk raise only a Low tier one step. The steps add
    up, so Low in spring at dawn ends up High while Medium at a summer dawn
    stays Medium.
    """
    steps = 0
    if season_for(when.month) in MIGRATION_SEASONS:
        steps += 1
    if is_dawn_or_dusk(when.hour) and tier is Tier.LOW:
        steps += 1
    for _ in range(steps):
        tier = upgrade(tier)
    return tier


def adjust_weather(tier: Tier, when: datetime.datetime) -> Tier:
    """Winter and storm-season months raise Low weather risk to Medium."""
    if tier is Tier.LOW and (when.month in WINTER_MONTHS or when.month in STORM_MONTHS):
        return Tier.MEDIUM
    return tier


SEASON_WEATHER: Dict[Season, str] = {
    Season.SPRING: "Mild temperatures with variable winds",
    Season.SUMMER: "Hot and humid with a chance of convective storms",
    Season.FALL: "Cooling temperatures with occasional showers",
    Season.WINTER: "Cold air with a risk of fog and low visibility",
}

TIME_OF_DAY_WEATHER: Dict[TimeOfDay, str] = {
    TimeOfDay.MORNING: "morning haze clearing through the day",
    TimeOfDay.AFTERNOON: "afternoon heating and gusty surface winds",
    TimeOfDay.EVENING: "evening cooling and increasing bird activity",
    TimeOfDay.NIGHT: "calm night-time conditions",
}


def buckets(when: datetime.datetime) -> Tuple[Season, TimeOfDay]:
    return season_for(when.month), time_of_day_for(when.hour)


def narrative(when: datetime.datetime) -> str:
    """Display-only weather description for a projected moment."""
    season, time_of_day = buckets(when)
    return (
        f"{season.value} {time_of_day.value.lower()} outlook: "
        f"{SEASON_WEATHER[season]}, {TIME_OF_DAY_WEATHER[time_of_day]}"
    )
