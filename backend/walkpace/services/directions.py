"""
Directions provider client.

Requests a walking route and reduces the response to a PlannedRoute (first
leg of the first route). Failures are raised as categorized DirectionsError;
nothing is retried automatically.
"""

import logging
from typing import Any, Optional

import httpx

from walkpace.config import DEFAULT_DIRECTIONS_TIMEOUT, DEFAULT_DIRECTIONS_URL
from walkpace.errors import DirectionsError, InvalidInputError
from walkpace.models.route import PlannedRoute


logger = logging.getLogger(__name__)


class DirectionsClient:
    """Async client for a Google Directions style JSON endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_DIRECTIONS_URL,
        timeout: float = DEFAULT_DIRECTIONS_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def route(self, origin: str, destination: str) -> PlannedRoute:
        """
        Fetch a walking route between two addresses.

        Raises:
            InvalidInputError: If either address is empty
            DirectionsError: If the provider fails or finds no route
        """
        origin = (origin or "").strip()
        destination = (destination or "").strip()
        if not origin or not destination:
            raise InvalidInputError("Please enter both start and end locations")

        if not self._api_key:
            logger.warning("No directions API key configured")
            raise DirectionsError("REQUEST_DENIED")

        params = {
            "origin": origin,
            "destination": destination,
            "mode": "walking",
            "units": "metric",
            "avoid": "highways",
            "alternatives": "true",
            "key": self._api_key,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Directions request failed: {e}")
            raise DirectionsError("UNKNOWN_ERROR") from e

        return parse_directions_response(payload, origin, destination)


def parse_directions_response(
    payload: dict[str, Any],
    origin: Optional[str] = None,
    destination: Optional[str] = None,
) -> PlannedRoute:
    """
    Reduce a provider response to a PlannedRoute.

    Raises:
        DirectionsError: If status is not OK or the response has no usable leg
    """
    status = payload.get("status", "UNKNOWN_ERROR")
    if status != "OK":
        logger.warning(f"Directions provider returned {status}")
        raise DirectionsError(status)

    routes = payload.get("routes") or []
    if not routes or not routes[0].get("legs"):
        raise DirectionsError("ZERO_RESULTS")

    leg = routes[0]["legs"][0]
    try:
        distance_m = float(leg["distance"]["value"])
        duration_s = float(leg["duration"]["value"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed directions leg: {e}")
        raise DirectionsError("UNKNOWN_ERROR") from e

    return PlannedRoute(
        distance_km=distance_m / 1000,
        duration_minutes=duration_s / 60,
        start_address=origin,
        end_address=destination,
        distance_text=leg["distance"].get("text"),
    )
