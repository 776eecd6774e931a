"""Pydantic schemas for trip posts.

Learn: Location is a nested object in JSON but two flat columns in the
database; PostRead.from_model() does the reshaping on the way out.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from trailsync.db.models import Post
from trailsync.schemas.base import CamelModel


class Location(CamelModel):
    city: Optional[str] = Field(None, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)


class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    map_link: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)
    number_of_days: int = Field(..., ge=1)
    location: Location
    description: str = Field(..., min_length=1)


class PostUpdate(CamelModel):
    """Partial update. photos_to_delete lists stored photo references."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    map_link: Optional[str] = Field(None, min_length=1)
    price: Optional[int] = Field(None, ge=0)
    number_of_days: Optional[int] = Field(None, ge=1)
    location: Optional[Location] = None
    description: Optional[str] = Field(None, min_length=1)
    photos_to_delete: list[str] = Field(default_factory=list)


class PostRead(CamelModel):
    id: uuid.UUID
    user: uuid.UUID
    title: str
    map_link: str
    price: int
    number_of_days: int
    location: Location
    description: str
    photos: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, post: Post) -> "PostRead":
        return cls(
            id=post.id,
            user=post.user_id,
            title=post.title,
            map_link=post.map_link,
            price=post.price,
            number_of_days=post.number_of_days,
            location=Location(city=post.location_city, country=post.location_country),
            description=post.description,
            photos=list(post.photos or []),
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
