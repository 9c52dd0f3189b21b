"""Bodies for adding and updating reviews. Ratings run from 1 to 10."""

from typing import Optional

from pydantic import Field

from devcamper.schemas.common import CamelModel, PartialUpdate


class ReviewCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    text: str = Field(min_length=1)
    rating: int = Field(ge=1, le=10)


class ReviewUpdate(PartialUpdate):
    REQUIRED_ON_RECORD = ("title", "text", "rating")

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    text: Optional[str] = Field(default=None, min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=10)
