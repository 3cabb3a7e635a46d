from flask import Flask
from flask_cors import CORS
from .config.settings import Config
from .services.container import build_services


def create_app(config_class=Config, genai_client=None, image_store=None, lead_store=None):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    CORS(app, supports_credentials=True)

    config_class.init_app(app)

    # Services are built once per process and shared by every request
    app.extensions["dishout"] = build_services(
        app.config,
        genai_client=genai_client,
        image_store=image_store,
        lead_store=lead_store,
    )

    # Register blueprints
    from .routes.scan import scan_bp
    from .routes.auth import auth_bp
    from .routes.health import health_bp

    app.register_blueprint(scan_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)

    return app
