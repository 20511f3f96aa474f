"""
Product and user query layer for the TrendSpotter application.

Every function here opens its own transactional session through
:func:`database.get_db` and returns plain dictionaries (or ``None``
when a row does not exist), so callers never hold on to ORM objects
after the session has closed.

Listing rules:

* only products that are approved and no longer pending are listed;
* a time filter (``day``, ``week``, ``month`` or ``all``) restricts
  listings to products launched on or after a cutoff;
* a tag filter matches case-insensitively as a substring of any of
  the product's tags;
* listings are ordered by upvote count, highest first.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd  # type: ignore
from werkzeug.security import check_password_hash, generate_password_hash

from . import database as db
from .schemas import TimeFilter

logger = logging.getLogger(__name__)

TIME_FILTERS = tuple(f.value for f in TimeFilter)

# Number of days covered by each bounded time window
TIME_FILTER_DAYS = {
    'day': 1,
    'week': 7,
    'month': 30,
}

# Fields accepted from a maker submission; the workflow fields are
# always set by the server.
SUBMISSION_FIELDS = (
    'name',
    'description',
    'logo_url',
    'website_url',
    'launch_date',
    'tags',
    'maker',
    'maker_role',
    'maker_email',
    'pricing',
    'category',
    'featured_tweet',
)


def parse_time_filter(value: Optional[str]) -> str:
    """Normalise a time filter value.

    ``None`` and the empty string mean ``all``.  Anything that is not
    one of :data:`TIME_FILTERS` raises ``ValueError``.
    """
    if value is None or str(value).strip() == '':
        return 'all'
    normalised = str(value).strip().lower()
    if normalised not in TIME_FILTERS:
        raise ValueError(f"Unknown time filter: {value!r}. Expected one of {', '.join(TIME_FILTERS)}")
    return normalised


def get_time_filter_cutoff(time_filter: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Return the earliest launch date included by a time filter.

    The cutoff is ``now`` minus 1, 7 or 30 days, truncated to the
    start of that day so the whole first day is included.  ``all``
    returns ``None`` (no cutoff).
    """
    time_filter = parse_time_filter(time_filter)
    if time_filter == 'all':
        return None
    now = now or db.utcnow()
    start = now - timedelta(days=TIME_FILTER_DAYS[time_filter])
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def is_tag_filter_active(tag_filter: Optional[str]) -> bool:
    """Whether a tag filter value actually restricts results."""
    return bool(tag_filter and tag_filter.strip() and tag_filter.strip().lower() != 'all')


def matches_tag(tags: Iterable[str], tag_filter: str) -> bool:
    """Case-insensitive substring match of ``tag_filter`` against any tag."""
    needle = tag_filter.strip().lower()
    return any(needle in str(tag).lower() for tag in tags or [])


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def product_to_dict(product: db.Product) -> Dict[str, Any]:
    """Serialise a product row to a dictionary."""
    return {
        'id': product.id,
        'name': product.name,
        'description': product.description,
        'logo_url': product.logo_url,
        'website_url': product.website_url,
        'launch_date': product.launch_date,
        'upvotes': product.upvotes,
        'tags': list(product.tags or []),
        'maker': product.maker,
        'maker_role': product.maker_role,
        'maker_email': product.maker_email,
        'is_approved': product.is_approved,
        'is_pending': product.is_pending,
        'submission_date': product.submission_date,
        'pricing': product.pricing,
        'category': product.category,
        'featured_tweet': product.featured_tweet,
    }


def user_to_dict(user: db.User) -> Dict[str, Any]:
    """Serialise a user row.  The password hash is never included."""
    return {
        'id': user.id,
        'username': user.username,
        'is_admin': user.is_admin,
    }


def _listed_products(session: Any) -> Any:
    """Base query for publicly listed products."""
    return session.query(db.Product).filter(
        db.Product.is_approved.is_(True),
        db.Product.is_pending.is_(False),
    )


# User operations

def get_user(user_id: int) -> Optional[Dict[str, Any]]:
    with db.get_db() as session:
        user = session.query(db.User).filter(db.User.id == user_id).first()
        return user_to_dict(user) if user else None


def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    with db.get_db() as session:
        user = session.query(db.User).filter(db.User.username == username).first()
        return user_to_dict(user) if user else None


def create_user(username: str, password: str, is_admin: bool = False) -> Dict[str, Any]:
    """Create a user with a hashed password.

    Raises:
        ValueError: If the username is empty or already taken.
    """
    username = (username or '').strip()
    if not username:
        raise ValueError('Username must not be empty')
    with db.get_db() as session:
        if session.query(db.User).filter(db.User.username == username).first():
            raise ValueError(f"Username already exists: {username}")
        user = db.User(
            username=username,
            password=generate_password_hash(password),
            is_admin=is_admin,
        )
        session.add(user)
        session.flush()
        logger.info(f"Created user {username} (admin={is_admin})")
        return user_to_dict(user)


def verify_user(username: str, password: str) -> Optional[Dict[str, Any]]:
    """Return the user if the password matches, otherwise ``None``."""
    with db.get_db() as session:
        user = session.query(db.User).filter(db.User.username == username).first()
        if not user or not check_password_hash(user.password, password):
            return None
        return user_to_dict(user)


# Product operations

def get_products(time_filter: Optional[str] = 'all', tag_filter: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return listed products matching the time and tag filters.

    Args:
        time_filter: ``day``, ``week``, ``month`` or ``all``.
        tag_filter: Optional tag text.  ``None``, empty or ``all``
            disables tag filtering.

    Returns:
        Product dictionaries ordered by upvotes (highest first), ties
        broken by id.

    Raises:
        ValueError: If ``time_filter`` is not a known window.
    """
    cutoff = get_time_filter_cutoff(parse_time_filter(time_filter))
    with db.get_db() as session:
        query = _listed_products(session)
        if cutoff is not None:
            query = query.filter(db.Product.launch_date >= cutoff)
        query = query.order_by(db.Product.upvotes.desc(), db.Product.id.asc())
        products = [product_to_dict(p) for p in query]
    logger.debug(f"Fetched {len(products)} products before tag filtering")
    if not is_tag_filter_active(tag_filter):
        return products
    # tags is a list column, so matching happens after the query
    filtered = [p for p in products if matches_tag(p['tags'], tag_filter)]
    logger.info(f"Tag filter {tag_filter!r} matched {len(filtered)} of {len(products)} products")
    return filtered


def get_product(product_id: int) -> Optional[Dict[str, Any]]:
    """Fetch any product by id, whatever its approval state."""
    with db.get_db() as session:
        product = session.query(db.Product).filter(db.Product.id == product_id).first()
        return product_to_dict(product) if product else None


def create_product(data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a maker submission.

    Only :data:`SUBMISSION_FIELDS` are read from ``data``.  The new
    product always starts with zero upvotes, unapproved and pending.
    """
    values = {key: data[key] for key in SUBMISSION_FIELDS if key in data}
    if isinstance(values.get('launch_date'), datetime):
        values['launch_date'] = _to_naive_utc(values['launch_date'])
    if values.get('pricing') is None:
        values['pricing'] = 'Free'
    values['tags'] = list(values.get('tags') or [])
    with db.get_db() as session:
        product = db.Product(
            **values,
            upvotes=0,
            is_approved=False,
            is_pending=True,
            submission_date=db.utcnow(),
        )
        session.add(product)
        session.flush()
        logger.info(f"Product submitted: {product.name} (id={product.id})")
        return product_to_dict(product)


def update_product_approval(product_id: int, is_approved: bool, is_pending: bool) -> Optional[Dict[str, Any]]:
    """Set both workflow flags of a product in one update."""
    with db.get_db() as session:
        product = session.query(db.Product).filter(db.Product.id == product_id).first()
        if not product:
            return None
        product.is_approved = is_approved
        product.is_pending = is_pending
        session.flush()
        logger.info(f"Product {product_id} approval updated: approved={is_approved}, pending={is_pending}")
        return product_to_dict(product)


def upvote_product(product_id: int) -> Optional[Dict[str, Any]]:
    """Increment the upvote counter in the database and return the product."""
    with db.get_db() as session:
        updated = session.query(db.Product).filter(db.Product.id == product_id).update(
            {db.Product.upvotes: db.Product.upvotes + 1},
            synchronize_session=False,
        )
        if not updated:
            return None
        product = (
            session.query(db.Product)
            .populate_existing()
            .filter(db.Product.id == product_id)
            .first()
        )
        return product_to_dict(product)


def get_pending_products() -> List[Dict[str, Any]]:
    """Products awaiting review, newest submission first."""
    with db.get_db() as session:
        query = (
            session.query(db.Product)
            .filter(db.Product.is_pending.is_(True))
            .order_by(db.Product.submission_date.desc(), db.Product.id.desc())
        )
        return [product_to_dict(p) for p in query]


def get_featured_product() -> Optional[Dict[str, Any]]:
    """The most upvoted listed product, if any."""
    with db.get_db() as session:
        product = (
            _listed_products(session)
            .order_by(db.Product.upvotes.desc(), db.Product.id.asc())
            .first()
        )
        return product_to_dict(product) if product else None


def delete_all_products() -> int:
    """Remove every product and return how many were deleted."""
    with db.get_db() as session:
        deleted = session.query(db.Product).delete(synchronize_session=False)
    logger.info(f"Deleted {deleted} products")
    return deleted


def count_products() -> int:
    with db.get_db() as session:
        return session.query(db.Product).count()


def get_catalog_stats() -> Dict[str, Any]:
    """Return simple statistics about the product catalogue."""
    with db.get_db() as session:
        total = session.query(db.Product).count()
        pending = session.query(db.Product).filter(db.Product.is_pending.is_(True)).count()
        tag_counts: Counter = Counter()
        listed = 0
        for (tags,) in _listed_products(session).with_entities(db.Product.tags):
            listed += 1
            tag_counts.update(set(tags or []))
    tag_distribution = [
        {'tag': tag, 'count': count}
        for tag, count in sorted(tag_counts.items(), key=lambda item: (-item[1], item[0]))
    ]
    return {
        'total_products': total,
        'listed_products': listed,
        'pending_products': pending,
        'tag_distribution': tag_distribution,
    }


def _clean(value: Any) -> Any:
    """Map pandas missing values (NaN, NaT) to ``None``."""
    if isinstance(value, (list, tuple)):
        return value
    if value is None:
        return None
    if pd.isna(value):
        return None
    return value


def _as_datetime(value: Any) -> Optional[datetime]:
    value = _clean(value)
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    return None


def bulk_insert_products(df: pd.DataFrame) -> Dict[str, int]:
    """Insert products from a DataFrame, keeping their workflow fields.

    Unlike :func:`create_product`, rows may carry ``upvotes``,
    ``is_approved`` and ``is_pending`` (seed data is inserted already
    approved).  Rows without a name or launch date are skipped.

    Returns:
        Counts of ``inserted``, ``skipped`` and ``total`` rows.
    """
    stats = {'inserted': 0, 'skipped': 0, 'total': len(df)}
    with db.get_db() as session:
        for _, row in df.iterrows():
            name = _clean(row.get('name'))
            launch_date = _as_datetime(row.get('launch_date'))
            if not name or not str(name).strip() or launch_date is None:
                stats['skipped'] += 1
                continue
            upvotes = _clean(row.get('upvotes'))
            is_approved = _clean(row.get('is_approved'))
            is_pending = _clean(row.get('is_pending'))
            submission_date = _as_datetime(row.get('submission_date'))
            session.add(db.Product(
                name=str(name).strip(),
                description=_clean(row.get('description')) or '',
                logo_url=_clean(row.get('logo_url')) or '',
                website_url=_clean(row.get('website_url')) or '',
                launch_date=launch_date,
                upvotes=int(upvotes) if upvotes is not None else 0,
                tags=[str(t) for t in (_clean(row.get('tags')) or [])],
                maker=_clean(row.get('maker')) or '',
                maker_role=_clean(row.get('maker_role')) or '',
                maker_email=_clean(row.get('maker_email')) or '',
                is_approved=bool(is_approved) if is_approved is not None else False,
                is_pending=bool(is_pending) if is_pending is not None else True,
                submission_date=submission_date or db.utcnow(),
                pricing=_clean(row.get('pricing')) or 'Free',
                category=_clean(row.get('category')),
                featured_tweet=_clean(row.get('featured_tweet')),
            ))
            stats['inserted'] += 1
    logger.info(f"Bulk insert finished: {stats}")
    return stats
