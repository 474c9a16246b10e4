"""Open-Elevation adapter for ElevationProfileProvider.

Posts the sampled path to an Open-Elevation compatible ``/api/v1/lookup``
endpoint. Every failure mode (transport error, timeout, non-2xx status,
malformed body, wrong result count) degrades to a flat fallback profile;
nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from domain.terrain.services import build_profile, flat_profile, sample_path
from domain.terrain.value_objects import ElevationProfile, GeoPoint
from infrastructure.settings import ElevationApiSettings, get_settings

logger = logging.getLogger(__name__)


class ElevationResult(BaseModel):
    """Elevation data for a single coordinate pair."""

    latitude: float
    longitude: float
    elevation: float


class LookupResponse(BaseModel):
    """Response schema for the lookup endpoint."""

    results: list[ElevationResult]


def _lookup_payload(points: list[GeoPoint]) -> dict[str, Any]:
    return {
        "locations": [
            {"latitude": p.latitude, "longitude": p.longitude} for p in points
        ]
    }


class OpenElevationProvider:
    """ElevationProfileProvider backed by the Open-Elevation HTTP API.

    Args:
        settings: Endpoint, timeout and User-Agent; defaults to get_settings().
        client: Optional pre-built httpx.Client (tests pass one with a
            MockTransport). Owned by the caller when given.
        async_client: Same, for ``get_profile_async``.
    """

    def __init__(
        self,
        settings: ElevationApiSettings | None = None,
        client: httpx.Client | None = None,
        async_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings().elevation_api
        self._client = client
        self._async_client = async_client

    @property
    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.user_agent}

    def _parse(
        self,
        start: GeoPoint,
        end: GeoPoint,
        sample_count: int,
        path: tuple[list[GeoPoint], list[float], float],
        body: Any,
    ) -> ElevationProfile:
        points, distances, total = path
        try:
            response = LookupResponse.model_validate(body)
        except ValidationError as e:
            reason = f"malformed response: {e.error_count()} errors"
            return self._fallback(start, end, sample_count, reason)
        if len(response.results) != len(points):
            return self._fallback(
                start,
                end,
                sample_count,
                f"expected {len(points)} results, got {len(response.results)}",
            )
        elevations = [r.elevation for r in response.results]
        try:
            return build_profile(start, end, points, distances, elevations, total)
        except ValidationError:
            reason = "non-finite elevation in response"
            return self._fallback(start, end, sample_count, reason)

    @staticmethod
    def _fallback(
        start: GeoPoint, end: GeoPoint, sample_count: int, reason: str
    ) -> ElevationProfile:
        logger.error("Elevation lookup failed (%s); using flat terrain", reason)
        return flat_profile(start, end, sample_count, reason)

    def get_profile(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        path = sample_path(start, end, sample_count)
        payload = _lookup_payload(path[0])

        try:
            if self._client is not None:
                resp = self._client.post(
                    self.settings.url, json=payload, headers=self._headers
                )
            else:
                with httpx.Client(timeout=self.settings.timeout_seconds) as client:
                    resp = client.post(
                        self.settings.url, json=payload, headers=self._headers
                    )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            return self._fallback(start, end, sample_count, f"{type(e).__name__}: {e}")
        except ValueError:
            return self._fallback(start, end, sample_count, "response is not JSON")

        return self._parse(start, end, sample_count, path, body)

    async def get_profile_async(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        """Async variant; cancelling the awaiting task cancels the request."""
        path = sample_path(start, end, sample_count)
        payload = _lookup_payload(path[0])

        try:
            if self._async_client is not None:
                resp = await self._async_client.post(
                    self.settings.url, json=payload, headers=self._headers
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.timeout_seconds
                ) as client:
                    resp = await client.post(
                        self.settings.url, json=payload, headers=self._headers
                    )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            return self._fallback(start, end, sample_count, f"{type(e).__name__}: {e}")
        except ValueError:
            return self._fallback(start, end, sample_count, "response is not JSON")

        return self._parse(start, end, sample_count, path, body)
