"""
Database seeding for the TrendSpotter application.

``seed_database`` is safe to run on every start: it creates the admin
account if it is missing and loads the bundled sample catalogue only
when the product table is empty.  ``reset_products`` wipes every
product and reloads the sample catalogue.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from . import database as db
from . import storage
from .data_validator import ProductValidator
from .parsers import parse_products

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS_PATH = Path(__file__).parent / 'data' / 'sample_products.csv'


def ensure_admin_user(username: Optional[str] = None, password: Optional[str] = None) -> Dict[str, Any]:
    """Create the admin account if it does not exist yet."""
    username = username or os.getenv('ADMIN_USERNAME', 'admin')
    password = password or os.getenv('ADMIN_PASSWORD', 'admin')
    existing = storage.get_user_by_username(username)
    if existing:
        return existing
    user = storage.create_user(username, password, is_admin=True)
    logger.info(f"Admin user {username} created")
    return user


def load_catalogue(path: Optional[Path] = None) -> Dict[str, Any]:
    """Parse, validate and insert a catalogue file.

    Returns the insert statistics together with the validation report.
    """
    path = Path(path or SAMPLE_PRODUCTS_PATH)
    with open(path, 'rb') as fh:
        df = parse_products(fh, path.name)
    validated_df, report = ProductValidator().validate_products(df)
    for rec in report['recommendations']:
        logger.warning(rec)
    stats = storage.bulk_insert_products(validated_df)
    return {**stats, 'quality_score': report['quality_score'], 'rejected': report['summary']['unusable']}


def seed_database(catalogue_path: Optional[Path] = None) -> Dict[str, Any]:
    """Initialise tables, the admin account and, if empty, the catalogue."""
    logger.info('Initializing the database...')
    db.init_db()
    ensure_admin_user()
    result: Dict[str, Any] = {'products_loaded': 0}
    if storage.count_products() == 0:
        stats = load_catalogue(catalogue_path)
        result['products_loaded'] = stats['inserted']
        logger.info(f"Sample products added: {stats['inserted']}")
    return result


def reset_products(catalogue_path: Optional[Path] = None) -> Dict[str, Any]:
    """Delete every product and reload the sample catalogue."""
    logger.info('Resetting database products...')
    db.init_db()
    removed = storage.delete_all_products()
    stats = load_catalogue(catalogue_path)
    logger.info('Database reset complete')
    return {'products_removed': removed, 'products_loaded': stats['inserted']}
