# backend/bizdash/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .errors import register_error_handlers
    from .gatekeeper import register_gatekeeper
    from .services.outbox_service import dispatch_after_request

    register_error_handlers(app)
    register_gatekeeper(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.brand_profiles import brand_profiles_bp
    from .routes.user_brand_scopes import user_brand_scopes_bp
    from .routes.users import users_bp
    from .routes.roles import roles_bp
    from .routes.quotations import quotations_bp
    from .routes.sales_orders import sales_orders_bp
    from .routes.invoices import invoices_bp
    from .routes.purchases import purchases_bp
    from .routes.reports import reports_bp
    from .routes.stock_mutations import stock_mutations_bp
    from .routes.activity import activity_bp, notifications_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(brand_profiles_bp)
    app.register_blueprint(user_brand_scopes_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(quotations_bp)
    app.register_blueprint(sales_orders_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(stock_mutations_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(notifications_bp)

    app.after_request(dispatch_after_request)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
