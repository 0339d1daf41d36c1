import click
from flask import Flask, current_app
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any

from .config import load_config
from .errors import AppError, StoreError

load_dotenv()

jwt = JWTManager()

DB_EXTENSION = 'fluvial.db'


class Database:
    """Engine + scoped session factory owned by one application instance."""

    def __init__(self, url: str, pool_size: int = 10, pool_timeout: int = 30):
        if url.endswith(':memory:'):
            # Ensure a single shared in-memory SQLite database across all sessions
            self.engine = create_engine(
                url,
                echo=False,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif url.startswith('sqlite'):
            self.engine = create_engine(url, echo=False, future=True, connect_args={"check_same_thread": False})
        else:
            # Requests queue on the pool instead of opening extra connections
            self.engine = create_engine(
                url,
                echo=False,
                future=True,
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=pool_timeout,
                pool_pre_ping=True,
            )
        self.session = scoped_session(sessionmaker(bind=self.engine, expire_on_commit=False, autoflush=False))

    def remove_session(self, exc=None):
        self.session.remove()

    def dispose(self):
        self.session.remove()
        self.engine.dispose()


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)
    app.config.update(load_config())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    db = Database(
        app.config['DATABASE_URL'],
        pool_size=app.config['DB_POOL_SIZE'],
        pool_timeout=app.config['DB_POOL_TIMEOUT'],
    )
    app.extensions[DB_EXTENSION] = db
    app.teardown_appcontext(db.remove_session)

    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.requisitions import req_bp
    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(users_bp, url_prefix='/api')
    app.register_blueprint(req_bp, url_prefix='/api')

    @app.route('/api/health')
    def health():
        return {'ok': True, 'message': 'API Prefeitura de Borba ON'}

    @app.cli.command('init-db')
    def init_db():
        """Create all tables from the ORM metadata."""
        from .models import Base
        Base.metadata.create_all(db.engine)
        click.echo('Tabelas criadas.')

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if isinstance(e, StoreError) or e.status_code >= 500:
            app.logger.error('%s: %s', type(e).__name__, e.message, exc_info=e)
        return e.to_dict(), e.status_code

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'message': e.description,
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                    'kind': 'http',
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return StoreError().to_dict(), 500

    return app


def get_db():
    return current_app.extensions[DB_EXTENSION].session()
