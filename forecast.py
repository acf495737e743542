import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping

from errors import ValidationError

MAX_FORECAST_DAYS = 5
INVALID_DATE = "Invalid date"
BUCKET_MODES = ("first", "mean")


@dataclass
class WeatherSample:
    """One reading from the weather feed (current conditions or a 3-hour forecast slot)."""
    timestamp: int | None
    temp: float | None
    feels_like: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None
    condition_code: int | None = None
    description: str | None = None
    icon: str | None = None

    @classmethod
    def from_item(cls, item: Mapping) -> "WeatherSample":
        """Normalize an OpenWeatherMap payload (``/weather`` or one ``/forecast`` list entry)."""
        main = item.get("main") or {}
        wind = item.get("wind") or {}
        conditions = item.get("weather") or []
        condition = conditions[0] if conditions and isinstance(conditions[0], Mapping) else {}
        return cls(
            timestamp=item.get("dt"),
            temp=main.get("temp"),
            feels_like=main.get("feels_like"),
            humidity=main.get("humidity"),
            wind_speed=wind.get("speed"),
            condition_code=condition.get("id"),
            description=condition.get("description"),
            icon=condition.get("icon"),
        )

    def is_complete(self):
        return _valid_timestamp(self.timestamp) and self.condition_code is not None

    def to_dict(self):
        return {
            "dt": self.timestamp,
            "temp": self.temp,
            "feelsLike": self.feels_like,
            "humidity": self.humidity,
            "wind": self.wind_speed,
            "conditionCode": self.condition_code,
            "description": self.description,
            "icon": self.icon,
        }


@dataclass
class DailyForecast:
    date: date
    temp: float | None
    humidity: float | None
    wind: float | None
    condition_code: int | None
    description: str | None
    icon: str | None
    timestamp: int

    def to_dict(self, tz=timezone.utc):
        label = format_day(self.timestamp, tz=tz)
        return {
            "date": self.date.isoformat(),
            "day": label["day"],
            "label": label["date"],
            "dt": self.timestamp,
            "temp": self.temp,
            "humidity": self.humidity,
            "wind": self.wind,
            "conditionCode": self.condition_code,
            "description": self.description,
            "icon": self.icon,
        }


def _valid_timestamp(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


# Rounds the way the display layer expects (halves go up, not to even).
def round_half_up(value, digits=0):
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def _mean(values, digits):
    values = [v for v in values if v is not None]
    if not values:
        return None
    return round_half_up(sum(values) / len(values), digits)


def _to_local_date(timestamp, tz):
    return datetime.fromtimestamp(timestamp, tz=tz).date()


def bucket_by_day(samples: Iterable, mode: str = "first", tz=timezone.utc, digits: int = 0) -> list[DailyForecast]:
    """Reduce a chronological series of samples to one entry per calendar day.

    ``mode="first"`` keeps the earliest sample seen for each date as-is.
    ``mode="mean"`` averages temperature, humidity and wind over the day,
    rounded half-up to ``digits`` places; condition and icon come from the
    first sample of the day. Samples without a timestamp or condition are
    dropped before bucketing. At most ``MAX_FORECAST_DAYS`` entries come back.
    """
    if mode not in BUCKET_MODES:
        raise ValidationError(f"Unknown forecast mode '{mode}'. Use one of: {', '.join(BUCKET_MODES)}")

    buckets = {}
    for sample in samples:
        if not isinstance(sample, WeatherSample):
            if not isinstance(sample, Mapping):
                continue
            sample = WeatherSample.from_item(sample)
        if not sample.is_complete():
            continue
        try:
            day = _to_local_date(sample.timestamp, tz)
        except (OverflowError, OSError, ValueError):
            continue
        buckets.setdefault(day, []).append(sample)

    daily = []
    for day, day_samples in buckets.items():
        first = day_samples[0]
        if mode == "first":
            temp, humidity, wind = first.temp, first.humidity, first.wind_speed
        else:
            temp = _mean((s.temp for s in day_samples), digits)
            humidity = _mean((s.humidity for s in day_samples), digits)
            wind = _mean((s.wind_speed for s in day_samples), digits)
        daily.append(DailyForecast(
            date=day,
            temp=temp,
            humidity=humidity,
            wind=wind,
            condition_code=first.condition_code,
            description=first.description,
            icon=first.icon,
            timestamp=first.timestamp,
        ))
        if len(daily) == MAX_FORECAST_DAYS:
            break
    return daily


# Weekday and short date for a forecast card, or an "Invalid date" marker.
def format_day(timestamp, tz=timezone.utc):
    if not _valid_timestamp(timestamp):
        return {"day": INVALID_DATE, "date": ""}
    try:
        moment = datetime.fromtimestamp(timestamp, tz=tz)
    except (OverflowError, OSError, ValueError):
        return {"day": INVALID_DATE, "date": ""}
    return {"day": moment.strftime("%A"), "date": f"{moment.strftime('%b')} {moment.day}"}
