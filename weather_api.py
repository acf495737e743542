import os

import requests

from errors import UpstreamError, ValidationError
from forecast import WeatherSample
from logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_api")

CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
SERVICE = "OpenWeatherMap"


def _api_key(api_key):
    key = api_key or os.environ.get("OPENWEATHER_API_KEY")
    if not key:
        raise UpstreamError(
            "OpenWeatherMap API key is missing. Set OPENWEATHER_API_KEY.",
            kind="misconfigured", service=SERVICE,
        )
    return key


def _error_message(response, default):
    try:
        data = response.json()
    except ValueError:
        return default
    return (data or {}).get("message") or default


# Maps an unsuccessful OpenWeatherMap answer to an UpstreamError kind.
def _raise_for_response(response, location):
    status = response.status_code
    if status < 400:
        return
    message = _error_message(response, "Failed to fetch weather data")
    if status == 401:
        kind = "misconfigured"
        message = "Invalid OpenWeatherMap API key."
    elif status == 404:
        kind = "not_found"
        message = f"No weather data found for '{location}'."
    elif status == 400:
        kind = "invalid_location"
    elif status == 429:
        kind = "degraded"
        message = "OpenWeatherMap rate limit exceeded. Try again later."
    else:
        kind = "transient"
    logger.error("%s answered %s for %r: %s", SERVICE, status, location, message)
    raise UpstreamError(message, kind=kind, service=SERVICE)


def _get(url, location, api_key):
    location = (location or "").strip()
    if not location:
        raise ValidationError("Location is required")
    params = {"q": location, "units": "metric", "appid": _api_key(api_key)}
    try:
        response = requests.get(url, params=params, timeout=20)
    except requests.RequestException as e:
        logger.error("%s request failed for %r: %s", SERVICE, location, e)
        raise UpstreamError(f"Weather request failed: {e}", kind="transient", service=SERVICE) from e
    _raise_for_response(response, location)
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError("Weather service returned an unreadable response", kind="transient", service=SERVICE) from e


def fetch_current(location: str, api_key: str | None = None) -> WeatherSample:
    """Return the current conditions for ``location`` as a WeatherSample."""
    logger.info("Fetching current weather for %r", location)
    data = _get(CURRENT_URL, location, api_key)
    return WeatherSample.from_item(data)


def fetch_forecast(location: str, api_key: str | None = None) -> dict:
    """
    Return the 5-day / 3-hour forecast feed for ``location``.

    The result holds the resolved city name, the city's UTC offset in seconds
    and the raw ``list`` entries, which bucketing filters and normalizes.
    """
    logger.info("Fetching forecast for %r", location)
    data = _get(FORECAST_URL, location, api_key)
    city = data.get("city") or {}
    return {
        "city": city.get("name"),
        "country": city.get("country"),
        "timezone_offset": city.get("timezone") or 0,
        "samples": data.get("list") or [],
    }
