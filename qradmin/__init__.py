"""Flask application factory for the QR campaign admin."""

from __future__ import annotations

import logging
import os
import time
from logging.handlers import RotatingFileHandler

from flask import Flask, g, jsonify, redirect, render_template, request, session
from sqlalchemy import text

from .config import Config
from .extensions import db, init_celery

logger = logging.getLogger(__name__)

_LOG_FORMAT = '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'


def _configure_logging(app: Flask) -> None:
    """Уровень из LOG_LEVEL, консоль + (опционально) ротируемый LOG_FILE."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    pkg_logger = logging.getLogger("qradmin")
    pkg_logger.setLevel(level)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    if not any(getattr(h, "_qradmin", False) for h in pkg_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._qradmin = True  # type: ignore[attr-defined]
        pkg_logger.addHandler(console)

    log_file = app.config.get("LOG_FILE")
    if log_file and not any(getattr(h, "baseFilename", None) == os.path.abspath(log_file) for h in pkg_logger.handlers):
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding='utf-8')
        file_handler.setFormatter(formatter)
        pkg_logger.addHandler(file_handler)


def _register_blueprints(app: Flask) -> None:
    """Register API and page blueprints."""
    from .analytics import bp as analytics_bp
    from .auth import bp as auth_bp
    from .campaigns import bp as campaigns_bp
    from .notifications import bp as notifications_bp
    from .pages import bp as pages_bp
    from .qr import bp as qr_bp
    from .users import bp as users_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(campaigns_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(notifications_bp)

    app.register_blueprint(qr_bp)
    app.register_blueprint(pages_bp)


def _register_common_routes(app: Flask) -> None:
    @app.get("/health")
    def health():
        return ("", 204)

    @app.get("/ready")
    def ready():
        db.session.execute(text("SELECT 1"))
        return jsonify(status="ok"), 200

    @app.route("/api-test", methods=["HEAD"])
    def api_test():
        return ("", 200)


def _is_api() -> bool:
    return request.path.startswith("/api/")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(401)
    def _unauthorized(_err):
        if _is_api():
            return jsonify(error="Authentication required"), 401
        return redirect("/auth", code=302)

    @app.errorhandler(403)
    def _forbidden(_err):
        if _is_api():
            return jsonify(error="Admin access required"), 403
        return redirect("/home", code=302)

    @app.errorhandler(404)
    def _not_found(_err):
        if _is_api():
            return jsonify(error="Not found"), 404
        return render_template("not_found.html"), 404

    @app.errorhandler(405)
    def _method_not_allowed(_err):
        if _is_api():
            return jsonify(error="Method not allowed"), 405
        return render_template("not_found.html"), 405

    @app.errorhandler(500)
    def _server_error(err):
        logger.error("unhandled error on %s %s", request.method, request.path,
                     exc_info=getattr(err, "original_exception", None))
        if _is_api():
            return jsonify(error="Internal server error"), 500
        return render_template("not_found.html", server_error=True), 500


def _register_rate_limit(app: Flask) -> None:
    from .helpers import client_ip
    from .security.rate_limit import check_rate_limit

    @app.before_request
    def _api_rate_limit():
        # HEAD используют health-check'и балансировщиков
        if not _is_api() or request.method == "HEAD":
            return None
        ok, info = check_rate_limit(
            bucket="api",
            ident=client_ip(),
            limit=int(app.config.get("RATE_LIMIT_API_REQUESTS", 100)),
            window_seconds=int(app.config.get("RATE_LIMIT_API_WINDOW_SEC", 900)),
        )
        g.rate_limit_info = info
        if not ok:
            logger.warning("rate limit exceeded for %s on %s", client_ip(), request.path)
            resp = jsonify(error="Too many requests, please try again later.", **info.to_dict())
            resp.status_code = 429
            resp.headers.update(info.http_headers())
            return resp
        return None


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(resp):
        if request.path.startswith("/api/"):
            started = g.get("request_started")
            duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
            logger.info(
                "%s %s %s %.1fms user=%s",
                request.method,
                request.path,
                resp.status_code,
                duration_ms,
                session.get("username") or "-",
            )
        return resp


def _apply_security_headers(app: Flask) -> None:
    @app.after_request
    def _set_headers(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("X-XSS-Protection", "1; mode=block")
        resp.headers.setdefault("Referrer-Policy", "same-origin")
        info = g.get("rate_limit_info")
        if info is not None:
            for key, value in info.http_headers().items():
                resp.headers.setdefault(key, value)
        return resp


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)
    db.init_app(app)
    init_celery(app)

    from .commands import register_commands
    register_commands(app)

    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()
        if app.config.get("SEED_ON_STARTUP"):
            from .seed import seed_database
            seed_database()

    os.makedirs(app.config.get("UPLOAD_FOLDER", "uploads"), exist_ok=True)

    _register_blueprints(app)
    _register_common_routes(app)
    _register_error_handlers(app)
    _register_rate_limit(app)
    _register_request_logging(app)
    _apply_security_headers(app)
    return app
