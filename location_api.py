import os

import requests

from errors import UpstreamError, ValidationError
from logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_api")

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"


def _require(location):
    location = (location or "").strip()
    if not location:
        raise ValidationError("Location is required")
    return location


def _key(api_key, env_name, service):
    key = api_key or os.environ.get(env_name)
    if not key:
        raise UpstreamError(f"{service} is not configured. Set {env_name}.", kind="misconfigured", service=service)
    return key


def _request_json(url, params, service):
    try:
        response = requests.get(url, params=params, timeout=20)
    except requests.RequestException as e:
        logger.error("%s request failed: %s", service, e)
        raise UpstreamError(f"{service} request failed: {e}", kind="transient", service=service) from e
    try:
        data = response.json()
    except ValueError:
        data = {}
    return response, data or {}


# Resolves a free-text location to map coordinates.
def geocode(location: str, api_key: str | None = None) -> dict:
    service = "Google Geocoding"
    location = _require(location)
    params = {"address": location, "key": _key(api_key, "GOOGLE_MAPS_API_KEY", service)}
    logger.info("Fetching coordinates for %r", location)
    response, data = _request_json(GEOCODE_URL, params, service)

    if response.status_code >= 400:
        raise UpstreamError("Failed to fetch location data", kind="transient", service=service)

    status = data.get("status")
    if status == "ZERO_RESULTS":
        raise UpstreamError(f'Could not find coordinates for "{location}"', kind="not_found", service=service)
    if status == "REQUEST_DENIED":
        logger.error("Geocoding request denied: %s", data.get("error_message"))
        raise UpstreamError("Map service is currently unavailable.", kind="misconfigured", service=service)
    if status == "OVER_QUERY_LIMIT":
        raise UpstreamError("Map service quota exceeded. Try again later.", kind="degraded", service=service)
    if status == "INVALID_REQUEST":
        raise UpstreamError(f"Cannot geocode '{location}'", kind="invalid_location", service=service)
    if status != "OK":
        raise UpstreamError(data.get("error_message") or "Failed to geocode location", kind="transient", service=service)

    results = data.get("results") or []
    if not results:
        raise UpstreamError("No results found for this location", kind="not_found", service=service)

    first = results[0]
    coords = (first.get("geometry") or {}).get("location") or {}
    return {
        "lat": coords.get("lat"),
        "lng": coords.get("lng"),
        "formatted_address": first.get("formatted_address"),
    }


def _quota_exceeded(data):
    error = data.get("error") or {}
    reasons = [e.get("reason") for e in error.get("errors") or []]
    return "quotaExceeded" in reasons or "rateLimitExceeded" in reasons


def search_videos(location: str, api_key: str | None = None, max_results: int = 4) -> list:
    """Return travel videos for ``location`` from the YouTube Data API."""
    service = "YouTube"
    location = _require(location)
    params = {
        "part": "snippet",
        "q": f"travel {location} tourism",
        "maxResults": max_results,
        "type": "video",
        "key": _key(api_key, "YOUTUBE_API_KEY", service),
    }
    logger.info("Fetching videos for %r", location)
    response, data = _request_json(YOUTUBE_SEARCH_URL, params, service)

    if response.status_code >= 400:
        if response.status_code == 403 and _quota_exceeded(data):
            logger.error("YouTube API quota exceeded")
            raise UpstreamError("YouTube API quota exceeded. Search directly on YouTube.", kind="degraded", service=service)
        message = (data.get("error") or {}).get("message") or "Failed to fetch videos"
        kind = "misconfigured" if response.status_code in (400, 401, 403) else "transient"
        raise UpstreamError(message, kind=kind, service=service)

    videos = []
    for item in data.get("items") or []:
        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")
        videos.append({
            "video_id": (item.get("id") or {}).get("videoId"),
            "title": snippet.get("title"),
            "channel": snippet.get("channelTitle"),
            "thumbnail": thumbnail,
        })
    return videos
