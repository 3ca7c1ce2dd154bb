"""
service.py — Groundwater Analytics HTTP Service (Flask)
========================================================

Thin JSON API in front of the analytics engine. Every endpoint reads from
one DataStore; district-wide results are memoized in a ResponseCache that
is flushed whenever the store is mutated.

Endpoints:
    GET  /api/health
    GET  /api/locations[?search=]             — station list
    GET  /api/locations/<name>                — one station
    GET  /api/water/overview/all              — latest per station (cached)
    GET  /api/water/stats/district            — enhanced district statistics (cached)
    GET  /api/water/compare?loc1=&loc2=       — two stations side by side
    GET  /api/water/rankings                  — stations ranked by score (cached)
    GET  /api/water/search-suggestions?q=     — name search with previews
    GET  /api/water/heatmap-data              — map heat points (cached)
    GET  /api/water/district-alerts           — district-wide alerts (cached)
    GET  /api/water/district-gov-updates      — district bulletins (cached)
    GET  /api/water/<loc>                     — enriched series
    GET  /api/water/<loc>/latest              — latest enriched observation
    GET  /api/water/<loc>/alerts              — threshold + trend alerts
    GET  /api/water/<loc>/gov-updates         — station bulletins
    GET  /api/water/<loc>/predictions?years=  — regression forecast
    GET  /api/water/<loc>/summary             — station digest
    GET  /api/water/<loc>/yearly-changes      — year-over-year changes
    GET  /api/water/<loc>/anomalies?field=    — IQR outliers of one metric
    POST /api/upload/csv                      — ingest a survey CSV (field csvFile)

Run:
    python -m backend.analytics.service
    # Starts on port 5000 by default (configurable via ANALYTICS_SERVICE_PORT)
"""

import io
import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from . import aggregation, alerts, config, trends
from .cache import ResponseCache
from .forecast import InsufficientHistoryError, predict_future
from .preprocessing import parse_csv
from .scoring import enrich
from .store import DataStore
from .utils import setup_logging

logger = logging.getLogger("analytics.service")

ANOMALY_FIELDS = ("groundwater_level", "rainfall", "depletion_rate", "consumption", "ph")


def _not_found(location: str):
    return jsonify({"success": False,
                    "message": f"No data found for location: {location}"}), 404


def create_app(store: DataStore = None, cache: ResponseCache = None) -> Flask:
    """
    Build the Flask application around a data store and a response cache.

    Args:
        store: Data context. When omitted, a new store is seeded from
            config.DATA_CSV_PATH (an empty store is used if the file is missing).
        cache: Response cache. Defaults to a ResponseCache with config TTL.

    Returns:
        Configured Flask app. The store and cache are available as
        ``app.config["STORE"]`` and ``app.config["CACHE"]``.
    """
    if store is None:
        store = DataStore()
        try:
            store.load_csv()
        except FileNotFoundError as e:
            logger.warning(f"Starting with an empty dataset: {e}")
    if cache is None:
        cache = ResponseCache()
    store.subscribe(cache.flush)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES
    app.config["STORE"] = store
    app.config["CACHE"] = cache

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_error(e):
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal Server Error"}), 500

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "OK",
            "service": "Groundwater Analytics Engine",
            "observations": len(store),
        })

    # ── Locations ─────────────────────────────────────────────────

    @app.route("/api/locations", methods=["GET"])
    def list_locations():
        result = store.locations(request.args.get("search"))
        return jsonify({"success": True, "data": result, "count": len(result)})

    @app.route("/api/locations/<name>", methods=["GET"])
    def get_location(name):
        loc = store.location(name)
        if loc is None:
            return jsonify({"success": False, "message": f"Location not found: {name}"}), 404
        return jsonify({"success": True, "data": loc})

    # ── District-wide views ───────────────────────────────────────

    @app.route("/api/water/overview/all", methods=["GET"])
    def overview():
        data = cache.get_or_compute(
            "overview",
            lambda: aggregation.overview(store.observations(), store.locations()),
        )
        return jsonify({"success": True, "data": data, "count": len(data)})

    @app.route("/api/water/stats/district", methods=["GET"])
    def district_stats():
        stats = cache.get_or_compute(
            "district-stats",
            lambda: aggregation.enhanced_district_stats(store.observations()),
        )
        return jsonify({"success": True, "stats": stats})

    @app.route("/api/water/compare", methods=["GET"])
    def compare():
        loc1, loc2 = request.args.get("loc1"), request.args.get("loc2")
        if not loc1 or not loc2:
            return jsonify({
                "success": False,
                "message": "Please provide both loc1 and loc2 query parameters",
            }), 400
        comparison = aggregation.compare_locations(loc1, loc2, store.observations())
        return jsonify({"success": True, "comparison": comparison})

    @app.route("/api/water/rankings", methods=["GET"])
    def rankings():
        data = cache.get_or_compute(
            "rankings", lambda: aggregation.rankings(store.observations())
        )
        return jsonify({"success": True, "rankings": data, "count": len(data)})

    @app.route("/api/water/search-suggestions", methods=["GET"])
    def search_suggestions():
        suggestions = aggregation.search_suggestions(
            request.args.get("q", ""), store.observations(), store.locations()
        )
        return jsonify({"success": True, "suggestions": suggestions})

    @app.route("/api/water/heatmap-data", methods=["GET"])
    def heatmap():
        data = cache.get_or_compute(
            "heatmap",
            lambda: aggregation.heatmap(store.observations(), store.locations()),
        )
        return jsonify({"success": True, "data": data, "count": len(data)})

    @app.route("/api/water/district-alerts", methods=["GET"])
    def district_alerts():
        data = cache.get_or_compute(
            "district-alerts",
            lambda: alerts.district_alerts(
                aggregation.overview(store.observations(), store.locations())
            ),
        )
        return jsonify({"success": True, "alerts": data, "count": len(data)})

    @app.route("/api/water/district-gov-updates", methods=["GET"])
    def district_gov_updates():
        data = cache.get_or_compute(
            "district-gov-updates",
            lambda: alerts.district_bulletins(
                aggregation.overview(store.observations(), store.locations())
            ),
        )
        return jsonify({"success": True, "updates": data})

    # ── Station views ─────────────────────────────────────────────

    @app.route("/api/water/<location>", methods=["GET"])
    def station_series(location):
        if store.latest(location) is None:
            return _not_found(location)
        data = cache.get_or_compute(
            ("series", location),
            lambda: [enrich(r) for r in store.series(location)],
        )
        return jsonify({"success": True, "data": data, "count": len(data)})

    @app.route("/api/water/<location>/latest", methods=["GET"])
    def station_latest(location):
        latest = store.latest(location)
        if latest is None:
            return _not_found(location)
        return jsonify({"success": True, "data": enrich(latest)})

    @app.route("/api/water/<location>/alerts", methods=["GET"])
    def station_alerts(location):
        history = store.series(location)
        if not history:
            return _not_found(location)
        result = alerts.generate_alerts(history[-1], history)
        return jsonify({"success": True, "alerts": result, "count": len(result)})

    @app.route("/api/water/<location>/gov-updates", methods=["GET"])
    def station_gov_updates(location):
        history = store.series(location)
        if not history:
            return _not_found(location)
        return jsonify({"success": True, "updates": alerts.location_bulletins(history)})

    @app.route("/api/water/<location>/predictions", methods=["GET"])
    def station_predictions(location):
        years = request.args.get("years", default=config.DEFAULT_YEARS_AHEAD, type=int)
        history = store.series(location)
        try:
            predictions = predict_future(history, years)
        except InsufficientHistoryError as e:
            return jsonify({"success": False, "message": str(e),
                            "available": e.available, "required": e.required}), 400
        except ValueError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        return jsonify({"success": True, "predictions": predictions,
                        "based_on": len(history)})

    @app.route("/api/water/<location>/summary", methods=["GET"])
    def station_summary(location):
        summary = aggregation.location_summary(location, store.series(location))
        if summary is None:
            return _not_found(location)
        return jsonify({"success": True, "summary": summary})

    @app.route("/api/water/<location>/yearly-changes", methods=["GET"])
    def station_yearly_changes(location):
        changes = trends.yearly_changes(store.series(location))
        return jsonify({"success": True, "changes": changes, "count": len(changes)})

    @app.route("/api/water/<location>/anomalies", methods=["GET"])
    def station_anomalies(location):
        field = request.args.get("field", "groundwater_level")
        if field not in ANOMALY_FIELDS:
            return jsonify({"success": False,
                            "message": f"Unsupported field: {field}"}), 400
        history = store.series(location)
        if not history:
            return _not_found(location)
        anomalies = trends.series_anomalies(history, field)
        return jsonify({"success": True, "anomalies": anomalies, "count": len(anomalies)})

    # ── Ingestion ─────────────────────────────────────────────────

    @app.route("/api/upload/csv", methods=["POST"])
    def upload_csv():
        """
        Ingest an uploaded survey CSV.

        Rows are upserted by (location, year); the store notifies the
        cache, which drops every memoized response.
        """
        upload = request.files.get("csvFile")
        if upload is None:
            return jsonify({"success": False, "message": "No CSV file uploaded"}), 400
        if not (upload.mimetype == "text/csv" or (upload.filename or "").endswith(".csv")):
            return jsonify({"success": False, "message": "Only CSV files are allowed"}), 400

        try:
            rows = parse_csv(io.BytesIO(upload.read()))
        except ValueError as e:
            return jsonify({"success": False, "message": f"Invalid CSV: {e}"}), 400
        if not rows:
            return jsonify({"success": False,
                            "message": "CSV file is empty or malformatted"}), 400

        ingested = store.upsert(rows)
        locations = {r["location"] for r in rows}
        logger.info(f"CSV upload: {ingested} records for {len(locations)} locations")
        return jsonify({
            "success": True,
            "message": f"CSV processed: {ingested} records ingested",
            "details": {"total_rows": len(rows), "locations": len(locations)},
        })

    return app


def main() -> None:
    setup_logging()
    app = create_app()
    logger.info(f"Starting analytics service on port {config.SERVICE_PORT}")
    app.run(host="0.0.0.0", port=config.SERVICE_PORT, debug=False)


if __name__ == "__main__":
    main()
