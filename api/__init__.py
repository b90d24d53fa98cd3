import logging

from flask import Flask, send_from_directory
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage
from models.repositories import SubscriptionRepository, UserRepository
from services.account_service import AccountService
from services.auth_service import AuthService
from services.channel_profile import ChannelProfileQuery
from services.media import LocalMediaStore
from utils.security import AuthSettings, CredentialHasher, TokenService

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Channel Accounts API",
        "version": "1.0.0",
        "description": "REST API for user accounts, JWT sessions and channel subscription profiles.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (used by tests).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Cookies carry the session, so the client origin must be explicit
    CORS(app, resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage.configure(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    # Services are built once from explicit settings and shared by all requests
    settings = AuthSettings.from_config(app.config)
    media = LocalMediaStore(app.config["MEDIA_ROOT"], app.config["MEDIA_URL_PREFIX"])
    users = UserRepository(storage)
    app.extensions["auth_service"] = AuthService(
        users=users,
        hasher=CredentialHasher(settings),
        tokens=TokenService(settings),
        media=media,
    )
    app.extensions["account_service"] = AccountService(users, SubscriptionRepository(storage), media)
    app.extensions["channel_profiles"] = ChannelProfileQuery(storage)

    from .health import bp as health_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.get(f"{app.config['MEDIA_URL_PREFIX'].rstrip('/')}/<path:filename>")
    def media_file(filename):
        return send_from_directory(media.root, filename)

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Channel Accounts API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
