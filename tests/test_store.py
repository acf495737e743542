from datetime import datetime, timedelta, timezone

import pytest

from errors import ForbiddenError, NotFoundError
from models import db
from store import SearchHistory

def test_recent_searches_newest_first_and_limited(app):
    searches = SearchHistory(db.session)
    start = datetime(2024, 6, 1, tzinfo=timezone.utc)
    for i, city in enumerate(["A", "B", "C", "D", "E", "F", "G"]):
        searches.record("alice", city, when=start + timedelta(minutes=i))
    searches.record("bob", "Z", when=start + timedelta(hours=1))

    recent = searches.recent("alice")
    assert [e.location for e in recent] == ["G", "F", "E", "D", "C"]
    assert [e.location for e in searches.recent("alice", limit=2)] == ["G", "F"]

def test_delete_search_entry_checks_owner(app):
    searches = SearchHistory(db.session)
    entry = searches.record("alice", "Paris")
    entry_id = entry.id
    with pytest.raises(ForbiddenError):
        searches.delete("bob", entry_id)
    searches.delete("alice", entry_id)
    assert searches.recent("alice") == []
    with pytest.raises(NotFoundError):
        searches.delete("alice", entry_id)
