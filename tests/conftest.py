import pytest
from app import create_app
from auth import create_id_token
from forecast import WeatherSample
from models import db

AUTH_SECRET = "test-auth-secret"

# Creates a Flask app with a temporary SQLite database for tests.
@pytest.fixture()
def app(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("AUTH_SECRET", AUTH_SECRET)
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-owm-key")
    app = create_app()
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()

@pytest.fixture()
def client(app):
    return app.test_client()

# Builds Authorization headers carrying a signed token for the given user.
@pytest.fixture()
def auth_headers():
    def _headers(user_id="user-a"):
        return {"Authorization": f"Bearer {create_id_token(user_id, AUTH_SECRET)}"}
    return _headers

# Replaces the live current-weather lookup with a fixed reading.
@pytest.fixture()
def fake_current(monkeypatch):
    import weather_api as wa
    calls = []
    def _fake(location, api_key=None):
        calls.append(location)
        return WeatherSample(timestamp=1717200000, temp=20.3, humidity=55, wind_speed=3.1,
                             condition_code=800, description="clear sky", icon="01d")
    monkeypatch.setattr(wa, "fetch_current", _fake)
    return calls
