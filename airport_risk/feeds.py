"""
Adapters for the external weather and wildlife-hazard feeds.

Each adapter returns a FeedOk or FeedError value instead of raising, so the
providers can match on the outcome. Transport and parsing problems are raised
internally as ExternalServiceUnavailable and converted at the adapter edge.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

import httpx

from .errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FeedOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class FeedError:
    reason: str


FeedResult = Union[FeedOk[T], FeedError]


class OpenWeatherFeed:
    """
    Current-conditions feed speaking the OpenWeatherMap query format.

    Args:
        url: Endpoint URL
        api_key: Value sent as ``appid``
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def _request(self, query_name: str) -> Dict[str, Any]:
        params = {"q": query_name, "appid": self.api_key, "units": "metric"}
        logger.debug("GET %s q=%s", self.url, query_name)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.get(self.url, params=params)
                r.raise_for_status()
                payload = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceUnavailable(f"weather feed request failed: {e}") from e
        if not isinstance(payload, dict):
            raise ExternalServiceUnavailable("weather feed returned a non-object payload")
        return payload

    async def __call__(self, query_name: str) -> FeedResult[Dict[str, Any]]:
        try:
            return FeedOk(await self._request(query_name))
        except ExternalServiceUnavailable as e:
            return FeedError(str(e))


def parse_wildlife_records(payload: Any) -> List[Dict[str, Any]]:
    """
    Validate a bulk wildlife payload.

    Args:
        payload: Decoded JSON, expected to be a list of objects with
            ``location``, ``altitudeBand`` and ``incidentCount``

    Returns:
        List of dicts with keys location, altitude_band_m, incident_count

    Raises:
        ExternalServiceUnavailable: If the payload or any record is malformed
    """
    if not isinstance(payload, list):
        raise ExternalServiceUnavailable("wildlife feed payload is not a list")
    records: List[Dict[str, Any]] = []
    for item in payload:
        try:
            location = str(item["location"]).strip().upper()
            altitude = int(item["altitudeBand"])
            incidents = int(item["incidentCount"])
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceUnavailable(f"malformed wildlife record {item!r}") from e
        if not location:
            raise ExternalServiceUnavailable(f"wildlife record without location {item!r}")
        records.append({
            "location": location,
            "altitude_band_m": altitude,
            "incident_count": incidents,
        })
    return records


class WildlifeFeed:
    """Bulk wildlife-hazard feed returning every record in one request."""

    def __init__(
        self,
        url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def __call__(self) -> FeedResult[List[Dict[str, Any]]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.get(self.url)
                r.raise_for_status()
                payload = r.json()
            return FeedOk(parse_wildlife_records(payload))
        except (httpx.HTTPError, ValueError) as e:
            return FeedError(f"wildlife feed request failed: {e}")
        except ExternalServiceUnavailable as e:
            return FeedError(str(e))
