"""
Shared fixtures for the TrendSpotter test suite.

The database is configured to use an in-memory SQLite instance for
isolation.  Tables are dropped and recreated around every test.
"""

from __future__ import annotations

import importlib
import os
from datetime import timedelta
from typing import Any, Callable, Dict

import pytest

os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['TRENDSPOTTER_SEED'] = '0'

from trendspotter.backend import database as db  # noqa: E402


@pytest.fixture(scope='session', autouse=True)
def in_memory_database() -> Any:
    # Reload the database module to pick up the in-memory URL even if
    # it was imported before the environment was set.
    importlib.reload(db)
    yield db


@pytest.fixture(autouse=True)
def fresh_tables(in_memory_database: Any) -> Any:
    in_memory_database.drop_db()
    in_memory_database.init_db()
    yield
    in_memory_database.drop_db()


@pytest.fixture
def product_data() -> Dict[str, Any]:
    """A valid product submission in storage (snake_case) form."""
    return {
        'name': 'Test Product',
        'description': 'A product used throughout the test suite.',
        'logo_url': 'https://example.com/logo.png',
        'website_url': 'https://example.com',
        'launch_date': db.utcnow() - timedelta(days=400),
        'tags': ['LLM', 'Coding'],
        'maker': 'Jane Maker',
        'maker_role': 'Founder',
        'maker_email': 'jane@example.com',
        'pricing': 'Freemium',
        'category': 'Coding',
    }


@pytest.fixture
def add_product(product_data: Dict[str, Any]) -> Callable[..., Dict[str, Any]]:
    """Insert a product directly, with any field overridden.

    Products are listed (approved, not pending) unless the flags are
    overridden.
    """

    def _add(**overrides: Any) -> Dict[str, Any]:
        from trendspotter.backend import storage

        values = {
            **product_data,
            'upvotes': 0,
            'is_approved': True,
            'is_pending': False,
            'submission_date': db.utcnow(),
            **overrides,
        }
        with db.get_db() as session:
            product = db.Product(**values)
            session.add(product)
            session.flush()
            return storage.product_to_dict(product)

    return _add
