"""Flask application factory for the Pole Capture backend."""
from flask import Flask
import os
import logging
from pathlib import Path
from .models import db
from .blueprints import health, poles, upload_urls, users
from .cli import init_db_command, check_pole_flags_command
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

STORAGE_ENV_KEYS = (
    'STORAGE_ACCOUNT_ID',
    'STORAGE_ENDPOINT_URL',
    'STORAGE_ACCESS_KEY_ID',
    'STORAGE_SECRET_ACCESS_KEY',
    'STORAGE_BUCKET',
    'STORAGE_PUBLIC_URL',
    'STORAGE_KEY_PREFIX',
    'UPLOAD_URL_EXPIRES',
)


def create_app(test_config=None, upload_signer=None):
    """Flask application factory for the Pole Capture backend.

    Creates and configures a Flask application instance with:
    - SQLAlchemy database integration for pole and user tables
    - The presigned upload URL issuer
    - Blueprint registration for API endpoints
    - CLI command registration
    - Logging configuration

    Args:
        test_config (dict, optional): Configuration overrides for testing
        upload_signer (UploadSigner, optional): Pre-built signer; otherwise one
            is created from the storage settings on first use

    Returns:
        Flask: Configured Flask application instance
    """
    setup_logging()
    logger.info("Starting Flask application initialization")

    app = Flask(__name__, instance_relative_config=True)

    if test_config is None:
        config_loaded = app.config.from_pyfile('config.py', silent=True)
        if config_loaded:
            logger.info("Loaded configuration from instance/config.py")
        else:
            logger.debug("No instance config file found, using environment")
    else:
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")

    try:
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.debug(f"Could not create instance directory: {app.instance_path}")

    # Storage settings fall back to the environment
    for key in STORAGE_ENV_KEYS:
        if key not in app.config and os.getenv(key):
            app.config[key] = os.getenv(key)

    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite+pysqlite:///poles_backend.db')
    logger.info(f"Using database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    db.init_app(app)

    if upload_signer is not None:
        app.extensions['upload_signer'] = upload_signer
        logger.info("Using injected upload signer")

    app.register_blueprint(upload_urls.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(poles.bp)
    app.register_blueprint(users.bp)
    logger.info("Registered blueprints: upload_urls, health, poles, users")

    app.cli.add_command(init_db_command)
    app.cli.add_command(check_pole_flags_command)

    logger.info("Flask application initialization completed successfully")
    return app


def main():
    """Run the development server."""
    app = create_app()
    app.run(host=os.getenv('HOST', '0.0.0.0'), port=int(os.getenv('PORT', '5000')))


if __name__ == '__main__':
    main()
