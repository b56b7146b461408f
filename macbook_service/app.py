import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .catalog import Catalog, DatasetError, load_catalog
from .config import Settings, load_settings
from .queries import DeviceQuery, run_query, sortable_fields

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error(status: int, error: str, message: str):
    return jsonify({"success": False, "error": error, "message": message}), status


def _internal_error(exc: Exception):
    logger.exception("Request %s %s failed", request.method, request.path)
    return _error(500, "Internal server error", str(exc))


def _requested_url() -> str:
    return request.full_path.rstrip("?")


def _api_documentation(settings: Settings) -> dict:
    return {
        "title": "MacBook Device API Documentation",
        "version": settings.version,
        "base_url": f"http://localhost:{settings.port}",
        "endpoints": {
            "GET /health": "Health check endpoint",
            "GET /api/devices": {
                "description": "Get all MacBook devices",
                "query_parameters": {
                    "status": "Filter by support status (supported, vintage, obsolete)",
                    "search": "Search in model name, model ID, or support status",
                    "sort_by": f"Sort by field ({', '.join(sortable_fields())})",
                    "order": "Sort order (asc, desc) - default: desc",
                    "type": "Filter by device type (air, pro)",
                },
            },
            "GET /api/devices/macbook-air": "Get MacBook Air models only",
            "GET /api/devices/macbook-pro": "Get MacBook Pro models only",
            "GET /api/devices/:modelId": "Get specific device by model ID",
            "GET /api/support-status": "Get support status definitions",
        },
        "examples": {
            "All supported devices": "/api/devices?status=supported",
            "Search for M1 models": "/api/devices?search=M1",
            "MacBook Air sorted by name": "/api/devices/macbook-air?sort_by=model_name&order=asc",
            "Specific device": "/api/devices/MacBookAir10,1",
        },
    }


def create_app(catalog: Optional[Catalog] = None, settings: Optional[Settings] = None) -> Flask:
    """Build the Flask app around a catalog that is loaded once and only read afterwards.

    Raises DatasetError when no catalog is given and the configured data file is unusable.
    """
    settings = settings or load_settings()
    if catalog is None:
        catalog = load_catalog(settings.data_path)

    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app, resources={r"/*": {"origins": "*"}})
    app.extensions["macbook_catalog"] = catalog
    app.extensions["macbook_settings"] = settings

    def _device_list(query: DeviceQuery, include_metadata: bool = False):
        devices = run_query(catalog, query)
        body = {
            "success": True,
            "count": len(devices),
            "data": [d.to_dict() for d in devices],
        }
        if include_metadata:
            body["metadata"] = {
                "support_status_definitions": dict(catalog.support_status_definitions),
                "notes": dict(catalog.notes),
            }
        return jsonify(body), 200

    # ---------------------------
    # ROUTES
    # ---------------------------
    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "healthy",
            "timestamp": _utc_now_iso(),
            "version": settings.version,
        }), 200

    @app.route("/api/devices", methods=["GET"])
    def list_devices():
        try:
            return _device_list(DeviceQuery.from_args(request.args), include_metadata=True)
        except Exception as e:
            return _internal_error(e)

    # Static group routes win over /api/devices/<model_id>
    @app.route("/api/devices/macbook-air", methods=["GET"])
    def list_macbook_air():
        try:
            query = replace(DeviceQuery.from_args(request.args), device_type="air")
            return _device_list(query)
        except Exception as e:
            return _internal_error(e)

    @app.route("/api/devices/macbook-pro", methods=["GET"])
    def list_macbook_pro():
        try:
            query = replace(DeviceQuery.from_args(request.args), device_type="pro")
            return _device_list(query)
        except Exception as e:
            return _internal_error(e)

    @app.route("/api/devices/<model_id>", methods=["GET"])
    def get_device(model_id: str):
        try:
            device = catalog.find_device(model_id)
            if device is None:
                return _error(404, "Device not found", f"No device found with model ID: {model_id}")
            return jsonify({"success": True, "data": device.to_dict()}), 200
        except Exception as e:
            return _internal_error(e)

    @app.route("/api/support-status", methods=["GET"])
    def support_status():
        return jsonify({"success": True, "data": dict(catalog.support_status_definitions)}), 200

    @app.route("/api/docs", methods=["GET"])
    def docs():
        return jsonify(_api_documentation(settings)), 200

    @app.route("/", methods=["GET"])
    def root():
        return jsonify({
            "message": "MacBook Device API Service",
            "version": settings.version,
            "documentation": "/api/docs",
            "endpoints": {
                "devices": "/api/devices",
                "health": "/health",
            },
        }), 200

    # ---------------------------
    # ERRORS + ACCESS LOG
    # ---------------------------
    @app.errorhandler(404)
    @app.errorhandler(405)
    def endpoint_not_found(e):
        return _error(
            404,
            "Endpoint not found",
            f"The endpoint {_requested_url()} does not exist. Visit /api/docs for available endpoints.",
        )

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return _error(e.code or 500, e.name, e.description or "")

    @app.errorhandler(Exception)
    def unhandled_error(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error(500, "Internal server error", "Something went wrong on our end")

    @app.after_request
    def access_log(response):
        logger.info(
            '%s "%s %s" %s %s',
            request.remote_addr or "-",
            request.method,
            _requested_url(),
            response.status_code,
            response.content_length if response.content_length is not None else "-",
        )
        return response

    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    try:
        app = create_app(settings=settings)
    except DatasetError as e:
        logger.error("Error loading MacBook data: %s", e)
        sys.exit(1)

    logger.info("MacBook API Service running on port %s", settings.port)
    logger.info("API Documentation: http://localhost:%s/api/docs", settings.port)
    logger.info("All devices: http://localhost:%s/api/devices", settings.port)
    logger.info("Health check: http://localhost:%s/health", settings.port)
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
