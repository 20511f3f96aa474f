"""
Request and response schemas for the TrendSpotter API.

Field names are snake_case in Python and camelCase on the wire
(``logoUrl``, ``isApproved``...), so the models accept either form
when parsing and emit camelCase when serialised by alias.

``ProductCreate`` carries the submission rules the UI form enforces:
name and description lengths, http(s) URLs, one to three tags and a
valid maker email.  The API applies the same rules server side.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

URL_PATTERN = r'^https?://[^\s/$.?#][^\s]*$'

# Tags offered by the submission form
AVAILABLE_TAGS = [
    'LLM',
    'Chatbot',
    'Agent',
    'Voice AI',
    'Image Generation',
    'Video Generation',
    'Coding',
    'Business',
    'Creative',
    'Education',
    'Brain Interface',
    'Accessibility',
]

# Categories offered by the listing tag filter
BROWSE_TAGS = [
    'Content Creation',
    'Video Generation',
    'Voice and Music',
    'Scheduling Assistants',
    'Social Media Management',
    'Meeting Assistants',
    'Project Management',
]

MAX_TAGS = 3

Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TimeFilter(str, Enum):
    """Recency window applied to product launch dates."""

    day = 'day'
    week = 'week'
    month = 'month'
    all = 'all'


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductCreate(CamelModel):
    """A maker's product submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=50)
    description: str = Field(..., min_length=10, max_length=500)
    logo_url: str = Field(..., pattern=URL_PATTERN)
    website_url: str = Field(..., pattern=URL_PATTERN)
    launch_date: datetime
    tags: List[Tag] = Field(..., min_length=1, max_length=MAX_TAGS)
    maker: str = Field(..., min_length=2)
    maker_role: str = Field(..., min_length=2)
    maker_email: EmailStr
    pricing: Optional[str] = 'Free'
    category: Optional[str] = None
    featured_tweet: Optional[str] = None

    def to_storage(self) -> Dict[str, Any]:
        """Return the snake_case values accepted by ``storage.create_product``."""
        return self.model_dump()


class ProductSubmissionForm(ProductCreate):
    """The submission form: a product plus the terms checkbox."""

    terms: bool = False

    @field_validator('terms')
    @classmethod
    def terms_must_be_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError('You must accept the terms and conditions.')
        return value

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for ``POST /api/products``; terms are not sent."""
        return self.model_dump(mode='json', by_alias=True, exclude={'terms'})


class ProductApproval(CamelModel):
    id: int
    is_approved: bool
    is_pending: bool


class Upvote(CamelModel):
    product_id: int


class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    logo_url: str
    website_url: str
    launch_date: datetime
    upvotes: int
    tags: List[str]
    maker: str
    maker_role: str
    maker_email: str
    is_approved: bool
    is_pending: bool
    submission_date: datetime
    pricing: Optional[str] = None
    category: Optional[str] = None
    featured_tweet: Optional[str] = None


class TagCount(CamelModel):
    tag: str
    count: int


class CatalogStats(CamelModel):
    total_products: int
    listed_products: int
    pending_products: int
    tag_distribution: List[TagCount]


class HealthStatus(CamelModel):
    status: str
    server: str
