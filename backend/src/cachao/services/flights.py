"""Flight lookup through the outbound HTTP proxy.

In-VPC Lambdas cannot reach the flight data provider directly, so the
request goes through ``aws_proxy.http_invoke``. The provider's answer is
reduced to the field names used by staff flights.
"""

from __future__ import annotations

import json
import os
from typing import Any, Optional
from urllib.parse import quote

from cachao.exceptions import AppError, ConfigurationError, NotFoundError
from cachao.services.aws_proxy import http_invoke
from cachao.utils.logging import get_logger

logger = get_logger(__name__)


def _normalize_flight_number(value: str) -> str:
    return "".join(value.split()).upper()


def _local_time(point: dict[str, Any]) -> Optional[str]:
    for key in ("scheduledTime", "scheduledTimeLocal", "scheduledTimeUtc"):
        value = point.get(key)
        if isinstance(value, dict):
            value = value.get("local") or value.get("utc")
        if value:
            return str(value)
    return None


def _airport(point: dict[str, Any]) -> Optional[str]:
    airport = point.get("airport") or {}
    return airport.get("iata") or airport.get("icao") or airport.get("name")


def normalize_flight(raw: dict[str, Any], flight_number: str) -> dict[str, Any]:
    """Map one provider flight record to staff-flight fields."""
    departure = raw.get("departure") or {}
    arrival = raw.get("arrival") or {}
    airline = raw.get("airline") or {}
    return {
        "flight_number": str(raw.get("number") or flight_number).replace(" ", ""),
        "airline": airline.get("name"),
        "departure_airport": _airport(departure),
        "arrival_airport": _airport(arrival),
        "departure_datetime": _local_time(departure),
        "arrival_datetime": _local_time(arrival),
        "status": raw.get("status"),
    }


def lookup_flight(flight_number: str, flight_date: str) -> list[dict[str, Any]]:
    """Look up a flight by number and ``YYYY-MM-DD`` date.

    Raises:
        ConfigurationError: If the provider URL is not set.
        NotFoundError: If the provider knows no such flight.
        AppError: If the provider answers with another error.
    """
    base_url = os.getenv("FLIGHT_LOOKUP_API_URL")
    if not base_url:
        raise ConfigurationError("FLIGHT_LOOKUP_API_URL")

    number = _normalize_flight_number(flight_number)
    url = f"{base_url.rstrip('/')}/flights/number/{quote(number)}/{quote(flight_date)}"
    headers = {"Accept": "application/json"}
    api_key = os.getenv("FLIGHT_LOOKUP_API_KEY")
    if api_key:
        headers["X-API-Key"] = api_key

    result = http_invoke("GET", url, headers=headers, timeout=10)
    status = int(result.get("status") or 0)
    if status in (204, 404):
        raise NotFoundError("Flight", number)
    if status >= 400:
        logger.warning(f"Flight lookup returned {status} for {number}")
        raise AppError("Flight lookup failed", status_code=502, detail=f"status {status}")

    payload = json.loads(result.get("body") or "[]")
    records = payload if isinstance(payload, list) else [payload]
    flights = [normalize_flight(r, number) for r in records if isinstance(r, dict)]
    if not flights:
        raise NotFoundError("Flight", number)
    return flights
