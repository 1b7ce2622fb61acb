"""Reference receiver — accepts flushed batches over HTTP.

Stands in for the real logging backend during development: validates each
entry, keeps the most recent ones in memory and echoes them to the log.
"""

import logging

from flask import Flask, jsonify, request

from component_logger.config import ServerConfig
from component_logger.store import EntryStore
from component_logger.validator import EntryValidator

logger = logging.getLogger(__name__)

_CATEGORY_LEVELS = {
    "Error": logging.ERROR,
    "Warning": logging.WARNING,
    "Event": logging.INFO,
    "Debug": logging.DEBUG,
}


def create_app(config: ServerConfig | None = None):
    """Flask application factory."""
    app = Flask(__name__)
    config = config or ServerConfig()

    validator = EntryValidator(config.schema_path)
    store = EntryStore(max_size=config.max_entries)

    # Store components on app for access in tests
    app.config["components"] = {
        "config": config,
        "validator": validator,
        "store": store,
    }

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "total_entries": store.total_count,
            "current_stored": store.current_size,
            "transactions": store.transaction_count,
        })

    @app.route("/api/component-logs", methods=["POST"])
    def ingest_component_logs():
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get("component_logs"), list):
            return jsonify({
                "status": "invalid",
                "errors": ["body must be an object with a 'component_logs' list"],
            }), 400

        accepted = 0
        rejected = []
        for index, entry in enumerate(body["component_logs"]):
            is_valid, errors = validator.validate(entry)
            if not is_valid:
                rejected.append({"index": index, "errors": errors})
                continue
            store.add(entry)
            accepted += 1
            logger.log(
                _CATEGORY_LEVELS.get(entry["category"], logging.INFO),
                "[%s] %s %s: %s",
                entry.get("transaction_id"),
                entry["category"],
                (entry.get("provenance") or {}).get("origin_name", "-"),
                entry.get("summary") or (entry.get("error") or {}).get("message"),
            )

        if rejected:
            logger.warning("Rejected %d of %d entries", len(rejected), len(body["component_logs"]))

        return jsonify({
            "status": "accepted",
            "accepted": accepted,
            "rejected": rejected,
        }), 201

    @app.route("/api/component-logs/recent")
    def recent_component_logs():
        limit = request.args.get("limit", 20, type=int)
        transaction_id = request.args.get("transaction_id")
        if transaction_id:
            return jsonify(store.for_transaction(transaction_id))
        return jsonify(store.get_recent(max(0, min(limit, config.max_entries))))

    @app.route("/api/validation-stats")
    def validation_stats():
        return jsonify(validator.get_stats())

    return app
