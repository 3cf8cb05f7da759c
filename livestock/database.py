"""
Database setup and connection management for farm records.

This module handles:
- SQLAlchemy engine creation
- Session management
- Database initialization
"""

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
import os
from typing import Generator
import logging

import dotenv

from livestock.models import Base

logger = logging.getLogger(__name__)

dotenv.load_dotenv()


class DatabaseConfig:
    """Configuration for database connections"""

    def __init__(self):
        self.connection_string = os.getenv("FARM_DATABASE_URL", "sqlite:///./farmdesk_farm.db")

        # Connection pooling (ignored for SQLite)
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "10"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "20"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "1500"))

        self.echo = os.getenv("DB_ECHO", "False").lower() == "true"
        self.seed_demo_data = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

    @property
    def is_sqlite(self) -> bool:
        return self.connection_string.startswith("sqlite")


class DatabaseManager:
    """
    Manages database connections and session lifecycle.

    Usage:
        DatabaseManager.initialize()
        session = DatabaseManager.create_session()
    """

    _engine = None
    _SessionLocal = None
    _db_type = None

    # Table creation order
    TABLES = [
        "farms",
        "animals",
        "external_farms",
        "external_animals",
        "hire_agreements",
        "breeding_records",
        "inventory_items",
        "inventory_movements",
        "production",
        "expenses",
        "schedules",
    ]

    @classmethod
    def initialize(cls, config: DatabaseConfig = None):
        """
        Initialize database engine and session factory, create tables and
        optionally seed demo records.
        """
        if cls._engine is not None:
            logger.warning("DatabaseManager already initialized")
            return

        if config is None:
            config = DatabaseConfig()

        logger.info("Initializing farm database...")
        cls._engine = cls._create_engine(config)
        cls._db_type = "sqlite" if config.is_sqlite else cls._engine.dialect.name
        cls._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=cls._engine,
            expire_on_commit=False
        )

        cls.create_tables()

        if config.seed_demo_data:
            from livestock.seed import seed_demo_data

            session = cls._SessionLocal()
            try:
                seed_demo_data(session)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
            finally:
                session.close()

        logger.info(f"Farm database initialized ({cls._db_type})")

    @classmethod
    def _create_engine(cls, config: DatabaseConfig):
        url = config.connection_string
        if config.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
            return create_engine(url, echo=config.echo, **kwargs)

        return create_engine(
            url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo,
        )

    @classmethod
    def create_tables(cls):
        """
        Create all tables if they don't exist (IDEMPOTENT)
        """
        if cls._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        inspector = inspect(cls._engine)
        existing_tables = set(inspector.get_table_names())

        for table_name in cls.TABLES:
            if table_name not in existing_tables:
                Base.metadata.tables[table_name].create(cls._engine, checkfirst=True)
                logger.info(f"Created table: {table_name}")

    @classmethod
    def create_session(cls) -> Session:
        if cls._SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return cls._SessionLocal()

    @classmethod
    def health_check(cls) -> bool:
        """Check if database is healthy"""
        if cls._SessionLocal is None:
            return False
        session = cls._SessionLocal()
        try:
            session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False
        finally:
            session.close()


# ============ FastAPI Dependencies ============

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.post("/api/farm/animals")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    session = DatabaseManager.create_session()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error: {e}")
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
