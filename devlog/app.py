"""Flask request router for log ingestion and retrieval."""

import json
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from werkzeug.exceptions import InternalServerError, MethodNotAllowed, NotFound

from devlog.config import Config
from devlog.store import EntryStore, StoreError
from devlog.validator import first_invalid, normalize_entries

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

CHUNK_SIZE = 64 * 1024

STATUS_PAYLOAD = {
    "name": "dev-log",
    "status": "running",
    "message": "Dev-log server is running. POST logs to / or /logs",
    "endpoints": {
        "POST /": "Submit logs",
        "POST /logs": "Submit logs (alternative)",
        "GET /logs": "Get all logs",
        "GET /health": "Health check",
    },
}


class BodyTooLarge(Exception):
    """Raised once the streamed request body passes the size ceiling."""

    def __init__(self, received: int, limit: int):
        super().__init__(f"request body of {received} bytes exceeds {limit} bytes")
        self.received = received
        self.limit = limit


def _reject_constant(constant: str):
    raise ValueError(f"Invalid JSON constant: {constant}")


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def read_body(stream, limit: int, content_length: int | None = None) -> bytes:
    """Accumulate *stream* chunk by chunk, failing fast past *limit* bytes.

    A declared Content-Length over the limit is rejected before reading.
    """
    if content_length is not None and content_length > limit:
        raise BodyTooLarge(content_length, limit)

    chunks = []
    received = 0
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            break
        received += len(chunk)
        if received > limit:
            raise BodyTooLarge(received, limit)
        chunks.append(chunk)

    body = b"".join(chunks)
    if len(body) > limit:
        raise BodyTooLarge(len(body), limit)
    return body


def create_app(config: Config | None = None, store: EntryStore | None = None) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)
    app.json.sort_keys = False

    if config is None:
        config = Config()
    if store is None:
        store = EntryStore(config.log_path)

    # Store components on app for access in tests
    app.config["components"] = {
        "config": config,
        "store": store,
    }

    # --- Cross-cutting policy ---

    @app.before_request
    def preflight():
        # Answered for every path, matched or not
        if request.method == "OPTIONS":
            return app.response_class(status=200)
        # Flask adds HEAD to GET routes; the route table has none
        if request.method == "HEAD":
            raise NotFound()
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    # --- Routes ---

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "timestamp": utc_timestamp()})

    @app.route("/", methods=["GET"])
    def status():
        return jsonify(STATUS_PAYLOAD)

    @app.route("/", methods=["POST"], endpoint="ingest_root")
    @app.route("/logs", methods=["POST"])
    def ingest_logs():
        body = read_body(request.stream, config.max_body_size, request.content_length)

        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except ValueError as e:
            logger.warning("Rejected malformed JSON body: %s", e)
            return jsonify({"error": str(e)}), 400

        entries = normalize_entries(payload)
        bad_index = first_invalid(entries)
        if bad_index is not None:
            logger.warning("Rejected batch of %d: entry %d is not a log entry",
                           len(entries), bad_index)
            return jsonify({"error": "Invalid log entry structure"}), 400

        try:
            store.append(entries)
        except StoreError as e:
            logger.error("Failed to persist %d entries: %s", len(entries), e)
            return jsonify({"error": f"Failed to persist log entries: {e}"}), 500

        logger.debug("Stored %d entries", len(entries))
        return jsonify({"success": True})

    @app.route("/logs", methods=["GET"])
    def get_logs():
        return jsonify(store.read_all())

    # --- Error handlers ---

    @app.errorhandler(BodyTooLarge)
    def body_too_large(e):
        logger.warning("Aborted request: %s", e)
        response = jsonify({"error": "Request body too large"})
        response.status_code = 413
        # Unread body bytes are not drained
        response.headers["Connection"] = "close"
        return response

    @app.errorhandler(NotFound)
    @app.errorhandler(MethodNotAllowed)
    def not_found(e):
        return "Not Found", 404, {"Content-Type": "text/plain; charset=utf-8"}

    @app.errorhandler(InternalServerError)
    def internal_error(e):
        logger.error("Unhandled error serving %s %s: %s",
                     request.method, request.path,
                     getattr(e, "original_exception", e),
                     exc_info=getattr(e, "original_exception", None))
        return jsonify({"error": "Internal server error"}), 500

    return app
