import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from config import Config

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    """Create a Flask app with SQLAlchemy database support."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)

    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('sqlite:///') and ':memory:' not in db_uri:
        db_path = db_uri.replace('sqlite:///', '', 1)
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

    # Initialize database
    db.init_app(app)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)
            # SQLite has no migration step here, so make sure the schema exists
            # before the first request touches it.
            db.create_all()

    # register blueprints
    from .routes import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .cli import register_commands
    register_commands(app)

    logger.debug("app created with database %s", db_uri.split('@')[-1])
    return app


def _configure_logging(app):
    package_logger = logging.getLogger(__name__)
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')), logging.INFO)
    package_logger.setLevel(level)
    if app.testing or package_logger.handlers or logging.getLogger().handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    package_logger.addHandler(handler)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()
