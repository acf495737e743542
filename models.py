import uuid
from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid.uuid4().hex


# SQLite hands timestamps back without tzinfo; they are stored as UTC.
def _iso(value):
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class HistoryRecord(db.Model):
    __tablename__ = "weather_history"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    location = db.Column(db.String(255), nullable=False)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    average_temp = db.Column(db.Float, nullable=False)  # °C, one decimal place

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "location": self.location,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "averageTemp": self.average_temp,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<HistoryRecord {self.id} {self.location} {self.start_date}..{self.end_date}>"


class SearchEntry(db.Model):
    __tablename__ = "search_history"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    location = db.Column(db.String(255), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "location": self.location,
            "timestamp": _iso(self.timestamp),
        }

    def __repr__(self):
        return f"<SearchEntry {self.id} {self.location}>"
