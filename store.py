"""Persistence for history records and recent searches.

Both stores wrap a SQLAlchemy session and commit on every write. Concurrent
writers to the same row simply overwrite each other; there is no versioning.
"""
from errors import ForbiddenError, NotFoundError
from models import HistoryRecord, SearchEntry

RECENT_SEARCH_LIMIT = 5


class HistoryStore:
    def __init__(self, session):
        self.session = session

    def add(self, record: HistoryRecord) -> HistoryRecord:
        self.session.add(record)
        self.session.commit()
        return record

    def list_by_owner(self, user_id: str) -> list[HistoryRecord]:
        return self.session.query(HistoryRecord).filter_by(user_id=user_id).all()

    def get(self, record_id: str) -> HistoryRecord | None:
        return self.session.get(HistoryRecord, record_id)

    def update(self, record: HistoryRecord, fields: dict) -> HistoryRecord:
        for name, value in fields.items():
            setattr(record, name, value)
        self.session.commit()
        return record

    def delete(self, record: HistoryRecord) -> None:
        self.session.delete(record)
        self.session.commit()


class SearchHistory:
    """Per-user list of recently searched locations."""

    def __init__(self, session):
        self.session = session

    def record(self, user_id: str, location: str, when=None) -> SearchEntry:
        entry = SearchEntry(user_id=user_id, location=location)
        if when is not None:
            entry.timestamp = when
        self.session.add(entry)
        self.session.commit()
        return entry

    # Newest first.
    def recent(self, user_id: str, limit: int = RECENT_SEARCH_LIMIT) -> list[SearchEntry]:
        return (
            self.session.query(SearchEntry)
            .filter_by(user_id=user_id)
            .order_by(SearchEntry.timestamp.desc())
            .limit(limit)
            .all()
        )

    def delete(self, user_id: str, entry_id: str) -> None:
        entry = self.session.get(SearchEntry, entry_id)
        if entry is None:
            raise NotFoundError("Search entry not found")
        if entry.user_id != user_id:
            raise ForbiddenError("Not authorized to delete this search entry")
        self.session.delete(entry)
        self.session.commit()
