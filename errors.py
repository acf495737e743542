"""Error types shared by the weather lookup and history code.

Every error carries the HTTP status the JSON API answers with, so routes can
simply let them propagate to the handler registered in ``create_app``.
"""


class WeatherAppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


# Malformed or inconsistent input: bad dates, start > end, unresolvable location.
class ValidationError(WeatherAppError):
    status_code = 400


# Missing, invalid or expired bearer credential.
class AuthError(WeatherAppError):
    status_code = 401


# Valid identity, but the record belongs to someone else.
class ForbiddenError(WeatherAppError):
    status_code = 403


class NotFoundError(WeatherAppError):
    status_code = 404


class UpstreamError(WeatherAppError):
    """A third-party service (weather, geocoding, videos) failed.

    ``kind`` tells callers what went wrong:

    - ``misconfigured``: credentials missing or rejected
    - ``degraded``: quota exhausted or rate limited
    - ``transient``: network failure or a 5xx answer
    - ``not_found``: the service knows no such location
    - ``invalid_location``: the service rejected the location string
    """

    KIND_STATUS = {
        "misconfigured": 500,
        "degraded": 503,
        "transient": 502,
        "not_found": 404,
        "invalid_location": 400,
    }

    def __init__(self, message: str, kind: str = "transient", service: str | None = None):
        if kind not in self.KIND_STATUS:
            raise ValueError(f"unknown upstream error kind: {kind}")
        super().__init__(message)
        self.kind = kind
        self.service = service

    @property
    def status_code(self):
        return self.KIND_STATUS[self.kind]

    def to_dict(self):
        return {"error": self.message, "kind": self.kind}
