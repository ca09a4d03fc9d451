"""
Base database model and session management
"""
import logging
import os
from typing import Any, Dict, Optional, Tuple, Type, TypeVar
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from artisan_sync.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

ModelT = TypeVar("ModelT")


def enable_sqlite_savepoints(target: Engine) -> None:
    """
    Let SQLAlchemy own BEGIN on pysqlite connections.

    pysqlite's implicit transaction handling breaks SAVEPOINT semantics,
    which get_or_create() depends on.
    """
    @event.listens_for(target, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Resolve relative SQLite paths to absolute so cwd changes can't break it
_db_url = settings.database_url
if _db_url.startswith("sqlite:///") and not _db_url.startswith("sqlite:////"):
    rel_path = _db_url[len("sqlite:///"):]
    _db_url = "sqlite:///" + os.path.abspath(rel_path)

# Create database engine
if _db_url.startswith("sqlite"):
    engine = create_engine(
        _db_url,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,
    )
    enable_sqlite_savepoints(engine)
else:
    engine = create_engine(
        _db_url,
        pool_pre_ping=True,
        pool_size=3,
        max_overflow=5,
        pool_recycle=300,
    )

# Create session factory
SessionLocal = sessionmaker(autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.expire_all()
        db.close()


def get_or_create(
    db: Session,
    model: Type[ModelT],
    defaults: Optional[Dict[str, Any]] = None,
    **natural_key: Any,
) -> Tuple[ModelT, bool]:
    """
    Insert-if-absent, else fetch, keyed by the model's natural key.

    Returns:
        (instance, created) where created is True only if this call inserted the row
    """
    instance = db.query(model).filter_by(**natural_key).first()
    if instance is not None:
        return instance, False

    params = dict(natural_key)
    params.update(defaults or {})
    instance = model(**params)
    try:
        with db.begin_nested():
            db.add(instance)
    except IntegrityError:
        # A concurrent writer inserted the same natural key first
        instance = db.query(model).filter_by(**natural_key).one()
        return instance, False
    return instance, True


def _migrate_missing_columns(bind: Engine):
    """Add columns defined in models but missing from existing DB tables.

    create_all() only creates missing *tables*; it cannot add new columns
    to tables that already exist.
    """
    inspector = inspect(bind)
    with bind.connect() as conn:
        for table_name, table in Base.metadata.tables.items():
            if not inspector.has_table(table_name):
                continue  # create_all will handle it
            existing = {c["name"] for c in inspector.get_columns(table_name)}
            for col in table.columns:
                if col.name not in existing:
                    col_type = col.type.compile(dialect=bind.dialect)
                    sql = f'ALTER TABLE {table_name} ADD COLUMN {col.name} {col_type}'
                    logger.info(f"Auto-migrating: {sql}")
                    conn.execute(text(sql))
        conn.commit()


def init_db(bind: Optional[Engine] = None):
    """Initialize database tables and auto-migrate new columns."""
    # Register every model on Base.metadata before create_all
    import artisan_sync.models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    _migrate_missing_columns(bind)
