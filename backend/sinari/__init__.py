# backend/sinari/__init__.py
from flask import Flask, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.product_logs import product_logs_bp
    from .routes.services import services_bp
    from .routes.technicians import technicians_bp
    from .routes.store_setting import store_setting_bp
    from .routes.dashboard import dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(product_logs_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(technicians_bp)
    app.register_blueprint(store_setting_bp)
    app.register_blueprint(dashboard_bp)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return {"errors": error.description or error.name}, error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return {"errors": "Internal server error"}, 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
