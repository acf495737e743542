"""
Create, read, update and delete a user's weather lookup history.

The caller's identity is resolved before any method here is called; every
method takes the verified user id explicitly and re-checks ownership against
the stored record each time.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Mapping

from errors import ForbiddenError, NotFoundError, UpstreamError, ValidationError
from forecast import WeatherSample, round_half_up
from logging_utils import get_tagged_logger
from models import HistoryRecord, utcnow

logger = get_tagged_logger(__name__, tag="history")

# Upstream answers that mean "this location does not exist" rather than "the service is down".
UNRESOLVABLE_KINDS = ("not_found", "invalid_location")


def parse_calendar_date(value, field: str = "date") -> date:
    """Accept a date, a datetime, ``YYYY-MM-DD`` or a full ISO-8601 timestamp."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid date format for {field}: {value!r}")


def validate_date_range(start: date | None, end: date | None, today: date) -> None:
    """Check ``start <= end <= today``; a missing side is not checked."""
    if start is not None and end is not None and start > end:
        raise ValidationError("Start date must be before end date")
    if end is not None and end > today:
        raise ValidationError("End date cannot be in the future")


@dataclass
class HistoryUpdate:
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    FIELDS = {"location": "location", "startDate": "start_date", "endDate": "end_date"}

    @classmethod
    def from_payload(cls, payload: Mapping) -> "HistoryUpdate":
        """Build an update from a JSON body; absent, null or empty keys are left unchanged."""
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object")
        unknown = set(payload) - set(cls.FIELDS) - {"id", "userId", "averageTemp", "createdAt", "updatedAt"}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        payload = {k: v for k, v in payload.items() if v is not None and v != ""}
        location = payload.get("location")
        if location is not None and not isinstance(location, str):
            raise ValidationError("Location must be a string")
        start = payload.get("startDate")
        end = payload.get("endDate")
        return cls(
            location=location,
            start_date=parse_calendar_date(start, "startDate") if start is not None else None,
            end_date=parse_calendar_date(end, "endDate") if end is not None else None,
        )

    def is_empty(self):
        return self.location is None and self.start_date is None and self.end_date is None


class HistoryManager:
    def __init__(
        self,
        store,
        weather_source: Callable[[str], WeatherSample],
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.weather_source = weather_source
        self.today = today
        self.now = now

    def _live_temperature(self, location: str) -> float:
        sample = self.weather_source(location)
        temp = getattr(sample, "temp", None)
        if temp is None:
            raise UpstreamError(
                f"Could not fetch temperature data for '{location}'", kind="not_found"
            )
        return temp

    def _owned(self, user_id: str, record_id: str, action: str) -> HistoryRecord:
        record = self.store.get(record_id)
        if record is None:
            raise NotFoundError("Record not found")
        if record.user_id != user_id:
            logger.warning("User %s tried to %s record %s owned by someone else", user_id, action, record_id)
            raise ForbiddenError(f"Not authorized to {action} this record")
        return record

    def create(self, user_id: str, location: str, start_date, end_date) -> HistoryRecord:
        if not isinstance(location, str) or not location.strip():
            raise ValidationError("Location is required")
        location = location.strip()
        start = parse_calendar_date(start_date, "startDate")
        end = parse_calendar_date(end_date, "endDate")
        validate_date_range(start, end, self.today())

        temp = self._live_temperature(location)
        record = HistoryRecord(
            user_id=user_id,
            location=location,
            start_date=start,
            end_date=end,
            average_temp=round_half_up(temp, 1),
            created_at=self.now(),
        )
        self.store.add(record)
        logger.info("Created history record %s for user %s (%s)", record.id, user_id, location)
        return record

    def list(self, user_id: str) -> list[HistoryRecord]:
        return self.store.list_by_owner(user_id)

    def get(self, user_id: str, record_id: str) -> HistoryRecord:
        return self._owned(user_id, record_id, "access")

    def update(self, user_id: str, record_id: str, changes) -> HistoryRecord:
        """Apply ``changes`` (a HistoryUpdate or a raw JSON body) to an owned record.

        Existence and ownership are checked before the body is looked at.
        """
        record = self._owned(user_id, record_id, "update")
        if not isinstance(changes, HistoryUpdate):
            changes = HistoryUpdate.from_payload(changes)

        if changes.start_date is not None or changes.end_date is not None:
            start = changes.start_date if changes.start_date is not None else record.start_date
            end = changes.end_date if changes.end_date is not None else record.end_date
            if start > end:
                raise ValidationError("Start date must be before end date")
            validate_date_range(None, changes.end_date, self.today())

        fields = {}
        if changes.location is not None:
            location = changes.location.strip()
            if not location:
                raise ValidationError("Location cannot be empty")
            try:
                self._live_temperature(location)
            except UpstreamError as e:
                if e.kind not in UNRESOLVABLE_KINDS:
                    raise
                raise ValidationError(f"Could not fetch temperature data for '{location}'") from e
            fields["location"] = location
        if changes.start_date is not None:
            fields["start_date"] = changes.start_date
        if changes.end_date is not None:
            fields["end_date"] = changes.end_date
        fields["updated_at"] = self.now()

        self.store.update(record, fields)
        logger.info("Updated history record %s (%s)", record_id, ", ".join(sorted(fields)))
        return record

    def delete(self, user_id: str, record_id: str) -> None:
        record = self._owned(user_id, record_id, "delete")
        self.store.delete(record)
        logger.info("Deleted history record %s", record_id)
