"""
Database module for the TrendSpotter application.

This module owns the SQLAlchemy engine, the session factory and the
ORM models.  A SQLite database is used by default and PostgreSQL can
be selected with the ``DATABASE_URL`` environment variable.  Query
helpers live in :mod:`trendspotter.backend.storage`; this module only
knows how to connect and how the tables look.

Two tables are declared:

* ``users`` - accounts, with a flag marking administrators.
* ``products`` - AI product listings together with maker details,
  an upvote counter and the approval/pending flags that gate public
  visibility.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy base class used to declare models
Base = declarative_base()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Timestamps are stored without timezone information so that SQLite
    and PostgreSQL compare them the same way.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """ORM model for an application account."""

    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)  # hashed
    is_admin = Column(Boolean, nullable=False, default=False)


class Product(Base):
    """ORM model for a single AI product listing.

    ``tags`` holds a list of free-text labels.  A product is publicly
    listed only when ``is_approved`` is true and ``is_pending`` is
    false; new submissions start out pending and unapproved.
    """

    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    logo_url = Column(Text, nullable=False)
    website_url = Column(Text, nullable=False)
    launch_date = Column(DateTime, nullable=False)
    upvotes = Column(Integer, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    maker = Column(String(255), nullable=False)
    maker_role = Column(String(255), nullable=False)
    maker_email = Column(String(255), nullable=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    is_pending = Column(Boolean, nullable=False, default=True)
    submission_date = Column(DateTime, nullable=False, default=utcnow)
    pricing = Column(String(100), nullable=True, default='Free')
    category = Column(String(255), nullable=True)
    featured_tweet = Column(Text, nullable=True)


def _get_database_url() -> str:
    """Resolve the database URL from environment variables.

    ``DATABASE_URL`` overrides the default local SQLite file.  URLs
    using the ``postgres://`` scheme are rewritten to
    ``postgresql://`` because SQLAlchemy does not recognise the former.
    """
    url = os.getenv('DATABASE_URL')
    if url:
        if url.startswith('postgres://'):
            url = url.replace('postgres://', 'postgresql://', 1)
        logger.info(f"Using database URL from environment: {url}")
        return url
    default_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'trendspotter.db')
    logger.info(f"Using local SQLite database at {default_path}")
    return f"sqlite:///{default_path}"


# StaticPool keeps a single shared connection for SQLite so that an
# in-memory database survives across sessions and threads.
DATABASE_URL = _get_database_url()
if DATABASE_URL.startswith('sqlite'):
    engine = create_engine(
        DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialised (tables created if missing)")


def drop_db() -> None:
    """Drop every table."""
    Base.metadata.drop_all(bind=engine)
    logger.warning("Database tables dropped")


@contextmanager
def get_db() -> Any:
    """Provide a transactional scope for database operations.

    Yields a session that is committed when the block finishes,
    rolled back if it raises, and closed in every case.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
