# app.py
from __future__ import annotations
import os, logging
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Blueprint, Flask, current_app, request, jsonify, send_from_directory
from flask_cors import CORS
from flask_talisman import Talisman
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import RequestEntityTooLarge

# --- Load env BEFORE importing config (so config sees env) ---
ENV_PATH = Path(__file__).with_name(".env")
load_dotenv(ENV_PATH)

# --- Local modules ---
from config import get_config_class, validate_required_secrets
from errors import BadRequest, CVBuilderError, StorageError
from service import DocumentService
from storage import RecordStore, build_store

LOG = logging.getLogger("cv_api")

api_bp = Blueprint("cvs", __name__)
web_bp = Blueprint("web", __name__)


def _service() -> DocumentService:
    return current_app.extensions["cv_service"]

# ------------------------------
# CV documents
# ------------------------------
@api_bp.post("/api/cvs")
def store_cv():
    """
    Request: { "id": "...", "data": { ...whole CV... } }
    Response: { "success": true }
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest("Missing id or data")
    result = _service().store_document(body.get("id"), body.get("data"))
    LOG.debug("store request for %s, %s bytes", body.get("id"), request.content_length)
    return jsonify(result)

@api_bp.get("/api/cvs/<cv_id>")
def get_cv(cv_id: str):
    # the stored document is returned as-is, not wrapped
    return jsonify(_service().retrieve_document(cv_id))

@api_bp.post("/api/ids")
def issue_id():
    return jsonify({"id": _service().issue_identifier()}), 201

@api_bp.get("/health")
def health():
    return jsonify({"ok": True})

# ------------------------------
# Built front end (SPA fallback to index.html)
# ------------------------------
@web_bp.get("/", defaults={"path": ""})
@web_bp.get("/<path:path>")
def frontend(path: str):
    if path.startswith("api/"):
        return jsonify({"error": "Not found"}), 404
    static_dir = current_app.config.get("STATIC_DIR") or ""
    if not static_dir or not os.path.isdir(static_dir):
        return jsonify({"error": "front end not built"}), 404
    root = os.path.abspath(static_dir)
    if path and os.path.isfile(os.path.join(root, path)):
        return send_from_directory(root, path)
    return send_from_directory(root, "index.html")

# ------------------------------
# Errors
# ------------------------------
def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(CVBuilderError)
    def handle_cv_error(e: CVBuilderError):
        if isinstance(e, StorageError):
            LOG.error("storage failure: %s", e)
            return jsonify({"error": "Storage failure"}), e.status_code
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        limit = app.config.get("MAX_CONTENT_LENGTH")
        LOG.warning("rejected body over %s bytes", limit)
        return jsonify({"error": "payload too large"}), 413

# ------------------------------
# App factory
# ------------------------------
def create_app(config_class=None, store: Optional[RecordStore] = None,
               overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_class or get_config_class())
    if overrides:
        app.config.update(overrides)
    validate_required_secrets()  # raises only when ENV=prod and secrets missing

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    app.json.sort_keys = False
    app.url_map.strict_slashes = False

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}},
        supports_credentials=False,
        allow_headers=["Content-Type"],
        methods=["GET", "POST", "OPTIONS"],
    )

    is_prod = not (app.config.get("DEBUG") or app.config.get("TESTING"))
    Talisman(
        app,
        force_https=is_prod,
        content_security_policy={
            "default-src": ["'self'"],
            "img-src": ["'self'", "data:"],
            "style-src": ["'self'", "'unsafe-inline'"],
            "script-src": ["'self'"],
            "connect-src": ["'self'"],
            "frame-ancestors": ["'none'"],
        },
        session_cookie_secure=is_prod,
        frame_options="DENY",
        referrer_policy="strict-origin-when-cross-origin",
    )

    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config["RATELIMIT_DEFAULT"]],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
    )
    limiter.exempt(web_bp)

    store = store or build_store(app.config)
    app.extensions["cv_store"] = store
    app.extensions["cv_service"] = DocumentService(store)

    app.register_blueprint(api_bp)
    app.register_blueprint(web_bp)
    _register_error_handlers(app)
    return app

# ------------------------------
# Entrypoint
# ------------------------------
if __name__ == "__main__":
    app = create_app()
    LOG.info("Server running on http://localhost:%s", app.config["PORT"])
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=app.config.get("DEBUG", False))
