import os
from datetime import date, timedelta, timezone

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

import location_api
import weather_api
from auth import IdentityVerifier, bearer_token
from errors import UpstreamError, ValidationError, WeatherAppError
from forecast import bucket_by_day
from history import HistoryManager
from logging_utils import get_tagged_logger, setup_logging
from models import db
from store import HistoryStore, SearchHistory

logger = get_tagged_logger(__name__, tag="app")


# Resolves the caller's user id from the bearer token, fresh on every request.
def _require_user():
    token = bearer_token(request.headers.get("Authorization"))
    return IdentityVerifier(current_app.config["AUTH_SECRET"]).verify(token)


# Like _require_user, but anonymous callers get None. A bad token still fails.
def _optional_user():
    if not request.headers.get("Authorization"):
        return None
    return _require_user()


def _location_arg():
    location = (request.args.get("location") or "").strip()
    if not location:
        raise ValidationError("Location is required")
    return location


def _json_body():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _fetch_current(location):
    return weather_api.fetch_current(location, api_key=current_app.config["OPENWEATHER_API_KEY"])


def _history_manager():
    return HistoryManager(HistoryStore(db.session), _fetch_current)


# Saves the lookup for a signed-in user; a failure here never fails the lookup itself.
def _remember_lookup(user_id, location):
    try:
        SearchHistory(db.session).record(user_id, location)
        today = date.today()
        _history_manager().create(user_id, location, today, today)
    except WeatherAppError as e:
        db.session.rollback()
        logger.warning("Could not save lookup of %r for user %s: %s", location, user_id, e.message)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning("Could not save lookup of %r for user %s: database error: %s", location, user_id, e)


# App factory. Environment variables first, then any test_config overrides.
def create_app(test_config=None):
    load_dotenv()
    app = Flask(__name__)
    secret_key = os.environ.get("SECRET_KEY", "dev-secret")
    app.config["SECRET_KEY"] = secret_key
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///weather.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["OPENWEATHER_API_KEY"] = os.environ.get("OPENWEATHER_API_KEY")
    app.config["GOOGLE_MAPS_API_KEY"] = os.environ.get("GOOGLE_MAPS_API_KEY")
    app.config["YOUTUBE_API_KEY"] = os.environ.get("YOUTUBE_API_KEY")
    app.config["AUTH_SECRET"] = os.environ.get("AUTH_SECRET") or secret_key
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")
    if test_config:
        app.config.update(test_config)

    setup_logging(level=app.config["LOG_LEVEL"])
    db.init_app(app)

    with app.app_context():
        db.create_all()

    @app.errorhandler(WeatherAppError)
    def handle_app_error(error):
        if isinstance(error, UpstreamError):
            logger.error("Upstream failure (%s): %s", error.kind, error.message)
        else:
            logger.warning("%s on %s %s: %s", type(error).__name__, request.method, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    # Current conditions plus one forecast entry per day for the next five days.
    @app.route("/api/weather", methods=["GET"])
    def weather():
        location = _location_arg()
        user_id = _optional_user()

        current = _fetch_current(location)
        feed = weather_api.fetch_forecast(location, api_key=app.config["OPENWEATHER_API_KEY"])
        tz = timezone(timedelta(seconds=feed["timezone_offset"]))
        daily = bucket_by_day(feed["samples"], mode="first", tz=tz)

        if user_id:
            _remember_lookup(user_id, location)

        return jsonify({
            "location": location,
            "city": feed["city"],
            "country": feed["country"],
            "current": current.to_dict(),
            "forecast": [day.to_dict(tz=tz) for day in daily],
        })

    @app.route("/api/weather/forecast", methods=["GET"])
    def forecast():
        location = _location_arg()
        mode = request.args.get("mode", "first")
        feed = weather_api.fetch_forecast(location, api_key=app.config["OPENWEATHER_API_KEY"])
        tz = timezone(timedelta(seconds=feed["timezone_offset"]))
        daily = bucket_by_day(feed["samples"], mode=mode, tz=tz)
        return jsonify({
            "location": location,
            "city": feed["city"],
            "mode": mode,
            "forecast": [day.to_dict(tz=tz) for day in daily],
        })

    @app.route("/api/weather/history", methods=["GET"])
    def list_history():
        user_id = _require_user()
        records = _history_manager().list(user_id)
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/weather/history", methods=["POST"])
    def create_history():
        user_id = _require_user()
        payload = _json_body()
        record = _history_manager().create(
            user_id,
            payload.get("location"),
            payload.get("startDate"),
            payload.get("endDate"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/weather/history/<record_id>", methods=["GET"])
    def get_history(record_id):
        user_id = _require_user()
        return jsonify(_history_manager().get(user_id, record_id).to_dict())

    @app.route("/api/weather/history/<record_id>", methods=["PUT", "PATCH"])
    def update_history(record_id):
        user_id = _require_user()
        record = _history_manager().update(user_id, record_id, request.get_json(silent=True))
        return jsonify(record.to_dict())

    # Deletes the selected record.
    @app.route("/api/weather/history/<record_id>", methods=["DELETE"])
    def delete_history(record_id):
        user_id = _require_user()
        _history_manager().delete(user_id, record_id)
        return jsonify({"success": True})

    @app.route("/api/search-history", methods=["GET"])
    def recent_searches():
        user_id = _require_user()
        return jsonify([e.to_dict() for e in SearchHistory(db.session).recent(user_id)])

    @app.route("/api/search-history/<entry_id>", methods=["DELETE"])
    def delete_search(entry_id):
        user_id = _require_user()
        SearchHistory(db.session).delete(user_id, entry_id)
        return jsonify({"success": True})

    @app.route("/api/location/coordinates", methods=["GET"])
    def coordinates():
        location = _location_arg()
        return jsonify(location_api.geocode(location, api_key=app.config["GOOGLE_MAPS_API_KEY"]))

    @app.route("/api/location/videos", methods=["GET"])
    def videos():
        location = _location_arg()
        return jsonify(location_api.search_videos(location, api_key=app.config["YOUTUBE_API_KEY"]))

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
