from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_limiter.errors import RateLimitExceeded
from flask_talisman import Talisman
from dotenv import load_dotenv
from limits.util import parse_many
import logging
import os
import re

from psyhospital.utils.response import error_response

db = SQLAlchemy()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)

DEFAULT_RATE_LIMIT = '200 per hour'


def _split_rate_limits(raw_value: str | None) -> list[str]:
    """Turn an env value such as "200 per hour; 20 per minute" into limiter strings.

    A Python-style list ("['200 per hour']") is accepted too. Entries the
    limits library cannot parse are dropped.
    """
    value = (raw_value or '').strip().strip('"\'').strip('[]')
    limits = []
    for part in re.split(r'[;,\n]', value):
        item = part.strip().strip('"\'')
        if not item:
            continue
        try:
            parse_many(item)
        except ValueError:
            continue
        limits.append(item)
    return limits


def _rate_limits_from_env() -> list[str]:
    merged: list[str] = []
    for name in ('RATELIMIT_DEFAULT', 'RATE_LIMIT_PER_HOUR'):
        for item in _split_rate_limits(os.getenv(name)):
            if item not in merged:
                merged.append(item)
    return merged or [DEFAULT_RATE_LIMIT]


def _build_database_uri():
    """Build the database connection string from environment variables.

    Supported env vars:
      DATABASE_URL                Full override (if set we return it directly)
      MSSQL_SERVER                e.g. localhost\\SQLEXPRESS
      MSSQL_DB                    Database name, e.g. PsychiatricHospitalDB
      MSSQL_USER                  Username (omit for trusted connection)
      MSSQL_PASSWORD              Password
      MSSQL_DRIVER                Defaults to 'ODBC Driver 17 for SQL Server'
      MSSQL_TRUSTED               'true' to use Windows Integrated Security

    Without any of them a local SQLite file is used.
    """
    full = os.getenv('DATABASE_URL')
    if full:
        return full

    server = os.getenv('MSSQL_SERVER')
    database = os.getenv('MSSQL_DB')
    driver = os.getenv('MSSQL_DRIVER', 'ODBC Driver 17 for SQL Server')
    trusted = os.getenv('MSSQL_TRUSTED', 'false').lower() == 'true'
    user = os.getenv('MSSQL_USER')
    password = os.getenv('MSSQL_PASSWORD')

    if not server or not database:
        return 'sqlite:///psyhospital.db'

    if trusted:
        # Windows Integrated security
        return f"mssql+pyodbc://@{server}/{database}?driver={driver.replace(' ', '+')}&trusted_connection=yes"

    if not user or not password:
        raise RuntimeError('MSSQL_USER and MSSQL_PASSWORD must be set (or use MSSQL_TRUSTED=true).')

    return f"mssql+pyodbc://{user}:{password}@{server}/{database}?driver={driver.replace(' ', '+')}"


def create_app(test_config: dict | None = None):
    """Application factory for the hospital records service."""
    load_dotenv()  # Load environment variables from .env if present
    app = Flask(__name__)
    default_rate_limits = _rate_limits_from_env()

    app.config['SQLALCHEMY_DATABASE_URI'] = _build_database_uri()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key')
    app.config['JWT_SECRET'] = os.getenv('JWT_SECRET')
    app.config['JWT_EXP_MINUTES'] = os.getenv('JWT_EXP_MINUTES')
    app.config['RATELIMIT_DEFAULT'] = default_rate_limits
    app.config['RATELIMIT_STORAGE_URI'] = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    app.config['REPORT_FONT_PATH'] = os.getenv('REPORT_FONT_PATH')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    db.init_app(app)
    limiter.init_app(app)
    Talisman(
        app,
        content_security_policy=None,
        force_https=False,
        strict_transport_security=False,
        session_cookie_secure=False,
    )
    migrate.init_app(app, db)

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(_error):
        limits_text = ', '.join(default_rate_limits)
        return error_response(
            message=f'Too many requests from this IP. Limit is {limits_text}.',
            status_code=429,
            code='RATE_LIMIT_EXCEEDED',
        )

    # Import models to ensure SQLAlchemy can resolve relationships
    with app.app_context():
        from . import models  # noqa: F401

    # Register blueprints
    from .routes.auth_routes import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')

    from .routes.patient_routes import patient_bp
    app.register_blueprint(patient_bp, url_prefix='/patients')

    from .routes.ward_routes import ward_bp
    app.register_blueprint(ward_bp, url_prefix='/wards')

    from .routes.record_routes import record_bp
    app.register_blueprint(record_bp, url_prefix='/records')

    from .routes.prescription_routes import prescription_bp
    app.register_blueprint(prescription_bp, url_prefix='/prescriptions')

    from .routes.report_routes import report_bp
    app.register_blueprint(report_bp, url_prefix='/reports')

    from .routes.audit_routes import audit_bp
    app.register_blueprint(audit_bp, url_prefix='/audit')

    from .cli import register_commands
    register_commands(app)

    return app
