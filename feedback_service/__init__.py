import os
import time

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

# Load .env only for local/dev. In prod, env vars come from the platform.
if os.getenv("APP_ENV", "development") != "production":
    from dotenv import load_dotenv
    load_dotenv(".env", override=True)


from .config import get_config
from .errors import ServiceError
from .extensions import db, migrate, login_manager, limiter
from .security import init_cors, init_security
from .observability import init_logging, init_sentry

def create_app():
    app = Flask(__name__)

    # ---- Rate limiting storage ----
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    use_redis = app_env in ("staging", "production")
    storage_uri = os.environ.get("REDIS_URL") if use_redis else "memory://"
    if use_redis and not storage_uri:
        # Hard fail in stage/prod so we never silently run without RL storage
        raise RuntimeError("REDIS_URL is required in staging/production for rate limiting")
    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    app.config.setdefault("RATELIMIT_HEADERS_ENABLED", True)

    app.config.from_object(get_config())

    def _require(name: str):
        val = os.getenv(name) or app.config.get(name)
        if not val:
            raise RuntimeError(f"Missing required environment variable: {name}")
        return val

    if app_env in ("staging", "production"):
        # Enforce hard requirements at startup (not at import time)
        _require("SECRET_KEY")
        _require("DATABASE_URL")

    init_logging(app)
    init_sentry(app)

    # HTTPS, HSTS & CSP only in staging/production
    if app_env in ("staging", "production"):
        init_security(app)
    # Before the limiter so preflights are answered without touching it
    init_cors(app)

    db.init_app(app)
    migrate.init_app(app, db, directory="migrations")
    login_manager.init_app(app)
    limiter.init_app(app)

    # Models register the Flask-Login request_loader on import
    from . import models  # noqa: F401

    from .blueprints.applications import bp as applications_bp
    from .blueprints.auth import bp as auth_bp
    from .blueprints.feedback import bp as feedback_bp
    from .blueprints.public import bp as public_bp

    prefix = app.config.get("API_PREFIX", "/api/v1").rstrip("/")
    app.register_blueprint(applications_bp, url_prefix=f"{prefix}/applications")
    app.register_blueprint(feedback_bp, url_prefix=f"{prefix}/feedback")
    app.register_blueprint(public_bp, url_prefix=f"{prefix}/public")
    app.register_blueprint(auth_bp, url_prefix=f"{prefix}/auth")

    @limiter.exempt
    @app.get(f"{prefix}/health")
    def health():
        return "OK", 200, {"Content-Type": "text/plain; charset=utf-8"}

    @limiter.exempt
    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}, 200

    # ---- Error handlers: every error is {"error": ...} JSON ----
    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    # 429 Too Many Requests with Retry-After
    @app.errorhandler(429)
    def too_many_requests(e):
        retry_after = getattr(e, "retry_after", None)
        if retry_after is None:
            current = limiter.current_limit
            if current is not None:
                retry_after = max(0, int(current.reset_at - time.time()))
        payload = {"error": "rate_limited"}
        headers = {}
        if retry_after is not None:
            payload["retry_after"] = int(retry_after)
            headers["Retry-After"] = str(int(retry_after))
        return (payload, 429, headers)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        db.session.rollback()
        app.logger.exception("%s %s failed (database error)", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    from .cli import register_cli
    register_cli(app)

    return app
