"""Database configuration and initialization."""
from flask import current_app
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# BIGINT identity on PostgreSQL, INTEGER on SQLite (rowid autoincrement)
IdType = BigInteger().with_variant(Integer(), 'sqlite')


def _engine_options(app, database_uri):
    """Build engine keyword arguments for the configured backend."""
    options = {
        'echo': app.config.get('SQLALCHEMY_ECHO', False),
        'pool_pre_ping': True,  # Enable connection health checks
    }
    if database_uri.startswith('sqlite'):
        # In-memory databases must share one connection across threads
        options['connect_args'] = {'check_same_thread': False}
        options['poolclass'] = StaticPool
    else:
        options['pool_size'] = app.config.get('DB_POOL_SIZE', 10)
        options['max_overflow'] = app.config.get('DB_MAX_OVERFLOW', 20)
    return options


def init_db(app):
    """
    Initialize database connection for an application.

    The engine and the scoped session are owned by the application
    (``app.extensions``), so several apps (e.g. tests) never share a handle.
    """
    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(database_uri, **_engine_options(app, database_uri))

    db_session = scoped_session(
        sessionmaker(autoflush=False, bind=engine)
    )

    app.extensions['db'] = db_session
    app.extensions['db_engine'] = engine

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()

    return db_session


def create_tables(app=None):
    """Create all tables on the application's engine."""
    # Import models so every table is registered on Base.metadata
    import kasir.models  # noqa: F401

    app = app or current_app
    Base.metadata.create_all(app.extensions['db_engine'])


def drop_tables(app=None):
    """Drop all tables on the application's engine."""
    import kasir.models  # noqa: F401

    app = app or current_app
    Base.metadata.drop_all(app.extensions['db_engine'])


def get_session():
    """Get database session of the current application."""
    return current_app.extensions['db']
