import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, validate_runtime_config
from .errors import register_error_handlers
from .rate_limit import limiter
from models import storage
from services.seed import seed_admin
from services.session import SessionService
from services.token_issuer import TokenIssuer

# Exposes /swagger.json and the UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Soft-Connect API",
        "version": "1.0.0",
        "description": "Q&A forum API: accounts, sessions, posts, answers and likes.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        },
        "Cookie": {
            "type": "apiKey",
            "name": "accessToken",
            "in": "cookie",
            "description": "httpOnly cookie set by /auth/login."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The token issuer and session service are built here and shared through
    app.extensions so blueprints and decorators never construct their own.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    validate_runtime_config(app.config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Auth travels in cookies, so credentials must be allowed
    CORS(
        app,
        resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)
    limiter.init_app(app)
    register_error_handlers(app)

    issuer = TokenIssuer(
        storage,
        secret=app.config["JWT_SECRET"],
        algorithm=app.config["JWT_ALGORITHM"],
        issuer=app.config["JWT_ISSUER"],
        access_ttl=app.config["ACCESS_TOKEN_EXPIRES"],
        refresh_ttl=app.config["REFRESH_TOKEN_EXPIRES"],
    )
    app.extensions["token_issuer"] = issuer
    app.extensions["session_service"] = SessionService(
        storage,
        issuer,
        logout_scope=app.config["LOGOUT_SCOPE"],
        rotate_refresh_tokens=app.config["REFRESH_TOKEN_ROTATION"],
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .posts import bp as posts_bp
    from .answers import bp as answers_bp

    prefix = app.config["API_PREFIX"]
    for blueprint in (health_bp, auth_bp, users_bp, posts_bp, answers_bp):
        app.register_blueprint(blueprint, url_prefix=prefix + (blueprint.url_prefix or ""))

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Soft-Connect API",
            "docs": "/apidocs/",
            "health": f"{prefix}/health",
        }, 200

    with app.app_context():
        seed_admin(storage, app.config.get("ADMIN_EMAIL"), app.config.get("ADMIN_PASSWORD"))

    return app
