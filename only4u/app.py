# only4u/app.py
import logging
import os

# Show INFO logs even outside the werkzeug access log
logging.basicConfig(level=logging.INFO)

from flask import Flask

from only4u.config import Config

# Extensions
from only4u.extensions import db, login_manager, bcrypt, migrate, cors, init_mail
from only4u.errors import register_error_handlers

# Blueprints
from only4u.auth import auth_bp
from only4u.api.routes.product_routes import api_products
from only4u.api.routes.upload_routes import api_upload
from only4u.api.routes.admin_routes import api_admin
from only4u.api.routes.catalog_routes import api_catalog
from only4u.api.routes.media_routes import media_bp
from only4u import models as _models  # noqa: F401


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    bcrypt.init_app(app)
    init_mail(app)

    cors.init_app(
        app,
        resources={
            r"/api/*": {
                "origins": app.config.get("CORS_ORIGINS", []),
                "supports_credentials": True,
            }
        },
    )

    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_products)
    app.register_blueprint(api_upload)
    app.register_blueprint(api_admin)
    app.register_blueprint(api_catalog)
    app.register_blueprint(media_bp)
    register_error_handlers(app)

    from only4u.cli import create_admin
    app.cli.add_command(create_admin)

    return app
