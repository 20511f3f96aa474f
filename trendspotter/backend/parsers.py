"""
Product catalogue parsers for the TrendSpotter application.

Catalogue files are used to seed the database and to bulk import
listings.  Two formats are understood: CSV (one product per row, tag
lists separated by ``;``) and JSON (an array of product objects using
either snake_case or the API's camelCase keys).  Both parsers return a
DataFrame with canonical snake_case columns ready for
:func:`storage.bulk_insert_products`.
"""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime
from typing import Any, List, Optional

import pandas as pd  # type: ignore
from dateutil import parser as date_parser  # type: ignore

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = [
    'name',
    'description',
    'logo_url',
    'website_url',
    'launch_date',
    'upvotes',
    'tags',
    'maker',
    'maker_role',
    'maker_email',
    'is_approved',
    'is_pending',
    'submission_date',
    'pricing',
    'category',
    'featured_tweet',
]

COLUMN_MAP = {
    'Name': 'name',
    'Description': 'description',
    'logoUrl': 'logo_url', 'Logo URL': 'logo_url',
    'websiteUrl': 'website_url', 'Website': 'website_url', 'Website URL': 'website_url',
    'launchDate': 'launch_date', 'Launch Date': 'launch_date',
    'Upvotes': 'upvotes',
    'Tags': 'tags',
    'Maker': 'maker',
    'makerRole': 'maker_role', 'Maker Role': 'maker_role',
    'makerEmail': 'maker_email', 'Maker Email': 'maker_email',
    'isApproved': 'is_approved', 'Approved': 'is_approved',
    'isPending': 'is_pending', 'Pending': 'is_pending',
    'submissionDate': 'submission_date',
    'Pricing': 'pricing',
    'Category': 'category',
    'featuredTweet': 'featured_tweet', 'Featured Tweet': 'featured_tweet',
}

TRUE_VALUES = {'true', 'yes', 'y', '1'}
FALSE_VALUES = {'false', 'no', 'n', '0'}


def normalize_date(value: Any) -> Optional[datetime]:
    """Coerce a variety of date representations into a datetime.

    Strings are parsed with `dateutil.parser.parse`; datetimes and
    pandas timestamps pass through.  Anything unparseable gives
    ``None``.
    """
    if isinstance(value, (list, tuple)) or value is None or value == '':
        return None
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.parse(str(value))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date {value!r}: {e}")
        return None


def normalize_bool(value: Any) -> Optional[bool]:
    """Interpret true/false, yes/no and 1/0 values; ``None`` otherwise."""
    if isinstance(value, bool):
        return value
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def split_tags(value: Any) -> List[str]:
    """Split a ``;`` separated tag cell into a clean list."""
    if isinstance(value, (list, tuple)):
        return [str(t).strip() for t in value if str(t).strip()]
    if value is None or pd.isna(value) or not value:
        return []
    return [t.strip() for t in str(value).split(';') if t.strip()]


def _normalise_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Rename columns to canonical names and coerce column types."""
    df = df.rename(columns={k: v for k, v in COLUMN_MAP.items() if k in df.columns})
    for col in PRODUCT_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[PRODUCT_COLUMNS].astype(object)
    df['tags'] = df['tags'].apply(split_tags)
    df['launch_date'] = df['launch_date'].apply(normalize_date)
    df['submission_date'] = df['submission_date'].apply(normalize_date)
    df['is_approved'] = df['is_approved'].apply(normalize_bool)
    df['is_pending'] = df['is_pending'].apply(normalize_bool)
    df['upvotes'] = pd.to_numeric(df['upvotes'], errors='coerce')
    # NaN in optional text columns becomes None
    return df.where(pd.notna(df), None)


def parse_products_csv(file_obj: Any) -> pd.DataFrame:
    """Parse a CSV catalogue file (path or file-like object)."""
    df = pd.read_csv(file_obj, dtype=str, keep_default_na=False, na_values=[''])
    logger.info(f"Read {len(df)} rows from CSV catalogue")
    return _normalise_frame(df)


def parse_products_json(file_obj: Any) -> pd.DataFrame:
    """Parse a JSON catalogue: an array of product objects."""
    if hasattr(file_obj, 'read'):
        raw = file_obj.read()
    else:
        with open(file_obj, encoding='utf-8') as fh:
            raw = fh.read()
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')
    records = json.loads(raw)
    if not isinstance(records, list):
        raise ValueError('JSON catalogue must be an array of product objects')
    logger.info(f"Read {len(records)} records from JSON catalogue")
    return _normalise_frame(pd.DataFrame(records))


def detect_format(filename: str, content: bytes) -> str:
    """Detect the catalogue format from the filename, then the content."""
    filename_lower = filename.lower()
    if filename_lower.endswith('.csv'):
        return 'csv'
    if filename_lower.endswith('.json'):
        return 'json'
    snippet = content.decode('utf-8', errors='ignore').lstrip()[:1]
    if snippet in ('[', '{'):
        return 'json'
    return 'csv'


def parse_products(file_obj: io.BufferedIOBase, filename: str) -> pd.DataFrame:
    """Detect the format of a catalogue file and dispatch to the proper parser."""
    content = file_obj.read()
    file_format = detect_format(filename, content)
    if file_format == 'json':
        return parse_products_json(io.BytesIO(content))
    return parse_products_csv(io.StringIO(content.decode('utf-8', errors='ignore')))
