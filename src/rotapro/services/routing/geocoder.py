"""Free-text address resolution backed by Nominatim."""

from __future__ import annotations

import asyncio
import logging
import re

import httpx

from ...config import settings
from ...models.domain import Coordinate, ResolvedPoint, Stop
from .errors import GeocodeFailure

# "lat, lng" literals come from the device's live location and skip the network.
_COORDINATE_LITERAL = re.compile(r"^\s*(-?\d{1,2}(?:\.\d+)?)\s*[,;]\s*(-?\d{1,3}(?:\.\d+)?)\s*$")

logger = logging.getLogger(__name__)


def parse_coordinate_literal(address: str) -> Coordinate | None:
    match = _COORDINATE_LITERAL.match(address)
    if not match:
        return None
    latitude, longitude = float(match.group(1)), float(match.group(2))
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        return None
    return Coordinate(latitude=latitude, longitude=longitude)


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        country_codes: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.country_codes = country_codes if country_codes is not None else settings.nominatim_country_codes
        self.timeout = timeout if timeout is not None else settings.nominatim_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.nominatim_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.nominatim_backoff_seconds
        self._client = client

    async def _search(self, client: httpx.AsyncClient, address: str) -> list:
        params = {"q": address, "format": "jsonv2", "limit": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes
        response = await client.get(
            f"{self.base_url}/search",
            params=params,
            headers={"User-Agent": self.user_agent},
        )
        if response.status_code == 429 or response.status_code >= 500:
            response.raise_for_status()
        if response.is_error:
            raise GeocodeFailure(address, f"geocoder answered HTTP {response.status_code}")
        results = response.json()
        if not isinstance(results, list):
            raise GeocodeFailure(address, "malformed geocoder response")
        return results

    async def _lookup(self, address: str) -> dict | None:
        attempt = 0
        while True:
            try:
                if self._client is not None:
                    results = await self._search(self._client, address)
                else:
                    async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
                        results = await self._search(client, address)
                return results[0] if results else None
            except (httpx.HTTPError, ValueError) as error:
                attempt += 1
                if attempt > self.max_retries:
                    raise GeocodeFailure(address, f"geocoding service unavailable ({error})") from error
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug("Geocoding retry in %.1fs (attempt %s/%s): %s", wait_time, attempt, self.max_retries, error)
                await asyncio.sleep(wait_time)

    async def resolve(self, address: str) -> Coordinate:
        point = await self.resolve_stop(Stop(stop_id=address, address=address))
        return Coordinate(latitude=point.latitude, longitude=point.longitude)

    async def resolve_stop(self, stop: Stop) -> ResolvedPoint:
        if not stop.address.strip():
            raise GeocodeFailure(stop.address, "address is blank")
        literal = parse_coordinate_literal(stop.address)
        if literal is not None:
            return ResolvedPoint(stop=stop, latitude=literal.latitude, longitude=literal.longitude)
        if stop.is_current_location:
            raise GeocodeFailure(stop.address, "current location is not a 'lat, lng' pair")

        match = await self._lookup(stop.address)
        if match is None:
            raise GeocodeFailure(stop.address, "no match found")
        try:
            point = ResolvedPoint(
                stop=stop,
                latitude=float(match["lat"]),
                longitude=float(match["lon"]),
                display_name=match.get("display_name"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise GeocodeFailure(stop.address, "malformed geocoder response") from exc
        logger.debug("Resolved '%s' to (%.6f, %.6f)", stop.address, point.latitude, point.longitude)
        return point
