"""Async HTTP client for interacting with OSRM services."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import TravelMode
from .errors import ProviderError, ProviderUnavailable

# OSRM answers 429 when the public demo server throttles us; 5xx are usually transient too.
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

logger = logging.getLogger(__name__)


class _RetryableResponse(Exception):
    """Internal marker for a response worth retrying."""


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        walking_base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.walking_base_url = (walking_base_url or settings.osrm_walking_base_url or self.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._client = client

    def _service_url(self, service: str, mode: TravelMode, coordinates: Sequence[tuple[float, float]]) -> str:
        if mode is TravelMode.WALKING:
            base, profile = self.walking_base_url, settings.osrm_walking_profile
        else:
            base, profile = self.base_url, settings.osrm_driving_profile
        # OSRM expects lon,lat order
        coordinate_str = ";".join(f"{lon:.6f},{lat:.6f}" for lat, lon in coordinates)
        return f"{base}/{service}/v1/{profile}/{coordinate_str}"

    @staticmethod
    def _exclusions(mode: TravelMode, avoid_highways: bool) -> dict:
        # The foot profile has no motorway class to exclude.
        if avoid_highways and mode is TravelMode.DRIVING:
            return {"exclude": "motorway"}
        return {}

    async def _send(self, client: httpx.AsyncClient, url: str, params: dict) -> dict:
        response = await client.get(url, params=params)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _RetryableResponse(f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            if response.is_success:
                raise _RetryableResponse("malformed JSON response") from exc
            raise ProviderError(f"OSRM returned HTTP {response.status_code}") from exc
        if not isinstance(data, dict):
            raise ProviderError("OSRM returned a malformed response body.")
        if response.is_error or data.get("code") != "Ok":
            error_msg = data.get("message") or data.get("code") or f"HTTP {response.status_code}"
            raise ProviderError(f"OSRM request failed: {error_msg}")
        return data

    async def _get_json(self, url: str, params: dict) -> dict:
        """GET an OSRM endpoint, retrying transient failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                if self._client is not None:
                    return await self._send(self._client, url, params)
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
                    return await self._send(client, url, params)
            except (_RetryableResponse, httpx.TimeoutException, httpx.TransportError) as error:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning("OSRM request failed after %s attempts: %s", attempt, error)
                    raise ProviderUnavailable(
                        f"Routing service at {self.base_url} is unavailable: {error}"
                    ) from error
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    "OSRM transient error, retrying in %.1fs (attempt %s/%s): %s",
                    wait_time,
                    attempt,
                    self.max_retries,
                    error,
                )
                await asyncio.sleep(wait_time)

    async def table(
        self,
        coordinates: Sequence[tuple[float, float]],
        mode: TravelMode = TravelMode.DRIVING,
        avoid_highways: bool = False,
        sources: Sequence[int] | None = None,
        destinations: Sequence[int] | None = None,
    ) -> dict:
        """Make a single OSRM table request for a subset of coordinates."""
        if len(coordinates) < 1:
            raise ValueError("At least one coordinate is required for OSRM table.")

        params = {"annotations": "duration,distance", **self._exclusions(mode, avoid_highways)}
        if sources is not None:
            params["sources"] = ";".join(str(i) for i in sources)
        if destinations is not None:
            params["destinations"] = ";".join(str(i) for i in destinations)

        data = await self._get_json(self._service_url("table", mode, coordinates), params)
        if "durations" not in data or "distances" not in data:
            raise ProviderError("OSRM response missing durations/distances.")
        return data

    async def route(
        self,
        coordinates: Sequence[tuple[float, float]],
        mode: TravelMode = TravelMode.DRIVING,
        avoid_highways: bool = False,
    ) -> dict:
        """Get the street-following route between waypoints.

        Returns the first route object of the OSRM answer, including the full
        polyline ``geometry`` and per-leg ``steps`` with maneuvers.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "true",
            **self._exclusions(mode, avoid_highways),
        }
        data = await self._get_json(self._service_url("route", mode, coordinates), params)
        routes = data.get("routes") or []
        if not routes:
            raise ProviderError("OSRM route response contained no routes.")
        return routes[0]

    async def check_health(self) -> bool:
        """Check OSRM reachability with a minimal two-point table request."""
        test_coords = [(52.517037, 13.388860), (52.496891, 13.385983)]
        try:
            data = await self.table(test_coords)
        except (ProviderError, httpx.HTTPError):
            return False
        return isinstance(data.get("durations"), list)


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM uses Google's polyline encoding format for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0
    factor = 10**precision

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / factor, lon / factor))

    return coordinates
