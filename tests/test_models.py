from datetime import date, datetime, timezone

from models import HistoryRecord, SearchEntry

# Section: test_model_repr, checks that __repr__ names the location.
def test_model_repr():
    r = HistoryRecord(id="abc", user_id="u1", location="Testville", start_date=None, end_date=None, average_temp=1.0)
    assert "Testville" in repr(r)
    assert "Nowhere" in repr(SearchEntry(id="x", user_id="u1", location="Nowhere"))

def test_history_record_to_dict_uses_api_field_names():
    r = HistoryRecord(
        id="abc", user_id="u1", location="Paris",
        start_date=date(2024, 6, 1), end_date=date(2024, 6, 2), average_temp=20.3,
        created_at=datetime(2024, 6, 2, 9, 30, tzinfo=timezone.utc),
    )
    assert r.to_dict() == {
        "id": "abc",
        "userId": "u1",
        "location": "Paris",
        "startDate": "2024-06-01",
        "endDate": "2024-06-02",
        "averageTemp": 20.3,
        "createdAt": "2024-06-02T09:30:00+00:00",
        "updatedAt": None,
    }

def test_naive_timestamps_serialized_as_utc():
    r = HistoryRecord(id="abc", user_id="u1", location="Paris", average_temp=1.0,
                      created_at=datetime(2024, 6, 2, 9, 30), updated_at=datetime(2024, 6, 3, 8, 0))
    data = r.to_dict()
    assert data["createdAt"] == "2024-06-02T09:30:00+00:00"
    assert data["updatedAt"] == "2024-06-03T08:00:00+00:00"
    assert SearchEntry(id="x", user_id="u1", location="Oslo", timestamp=datetime(2024, 6, 1)).to_dict()["timestamp"] \
        == "2024-06-01T00:00:00+00:00"
