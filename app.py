from __future__ import annotations

from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask_cors import CORS
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from config import Settings, get_settings
from db import MarketplaceStore
from analytics.service import AnalyticsService, utc_now
from routes import analytics_bp
from utils.errors import AppError


def _cors_origins(value: str):
    origins = [o.strip() for o in value.split(",") if o.strip()]
    if not origins or origins == ["*"]:
        return "*"
    return origins


def init_store(store: MarketplaceStore, create_indexes: bool = False) -> None:
    """Create analytics indexes when enabled; the API still starts when MongoDB is unreachable"""
    if not store.enabled:
        print("✗ MongoDB URI not configured - analytics endpoints will answer 503")
        return

    if not create_indexes:
        print("✓ MongoDB configured (index creation disabled, set MONGODB_CREATE_INDEXES=true to build them)")
        return

    try:
        store.ensure_indexes()
        print("✓ MongoDB analytics indexes ready")
    except PyMongoError as e:
        print(f"✗ Failed to initialize MongoDB: {e}")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        # Details stay in the server log, the client gets a generic message
        print(f"[Analytics] Error in {request.method} {request.path}: {error!r}")
        return jsonify({'success': False, 'message': 'Internal server error'}), 500


def create_app(settings: Settings | None = None, store=None, clock=utc_now) -> Flask:
    settings = settings or get_settings()
    if store is None:
        store = MarketplaceStore(settings.mongodb_uri, settings.mongodb_db)
        init_store(store, settings.create_indexes)

    app = Flask(__name__)

    CORS(app, resources={
        r"/*": {
            "origins": _cors_origins(settings.cors_origins),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "Accept", "X-Requested-With"],
            "supports_credentials": False,
            "max_age": 3600
        }
    })

    # Routes read these through current_app.config
    app.config['settings'] = settings
    app.config['store'] = store
    app.config['analytics_service'] = AnalyticsService.from_settings(store, settings, clock=clock)

    app.register_blueprint(analytics_bp)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        db_status = store.status()
        return jsonify(
            {
                "success": True,
                "time": datetime.now(timezone.utc).isoformat(),
                "db": {"enabled": db_status.enabled, "ok": db_status.ok, "message": db_status.message},
            }
        )

    @app.get("/api-info")
    def api_info():
        return jsonify(
            {
                "success": True,
                "message": "Analytics backend is running.",
                "routes": {
                    "health": "/health",
                    "dashboard": "/api/analytics/dashboard",
                    "sales": "/api/analytics/sales",
                    "financial": "/api/analytics/financial",
                    "vendors": "/api/analytics/vendors",
                    "export": "/api/analytics/export",
                },
            }
        )

    return app


if __name__ == "__main__":
    settings = get_settings()
    app = create_app(settings)

    print("\n" + "="*60)
    print("MARKETPLACE ANALYTICS SERVER")
    print("="*60)
    print(f"  Host: {settings.host}")
    print(f"  Port: {settings.port}")
    print(f"  Debug: {settings.debug}")
    print("\n📋 Available endpoints:")
    print("  • Health:     /health")
    print("  • Analytics:  /api/analytics/*")
    print("\n" + "="*60 + "\n")

    try:
        app.run(host=settings.host, port=settings.port, debug=settings.debug)
    finally:
        app.config['store'].close()
