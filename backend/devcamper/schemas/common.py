"""
DevCamper Backend: Shared Schemas
===================================

What:  Base model with camelCase aliases, the single-record success wrapper,
       the error body, and the health response.
How:   Request bodies accept camelCase (`jobAssistance`) or snake_case
       (`job_assistance`); services always read the snake_case attribute.
"""

from typing import Any, ClassVar, Dict, List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class PartialUpdate(CamelModel):
    """
    Base for update bodies: every field optional, only sent fields applied.

    Fields listed in `REQUIRED_ON_RECORD` are NOT NULL columns; sending an
    explicit null for them is rejected instead of reaching the database.
    """

    REQUIRED_ON_RECORD: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_for_required(self):
        for name in self.REQUIRED_ON_RECORD:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Snake_case field → value for the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class DataResponse(BaseModel):
    """`{success: true, data: ...}` for single-record and action responses."""

    success: bool = True
    data: Any = Field(default_factory=dict)


class ListResponse(BaseModel):
    """`{success, count, data}` for unpaginated lists (radius search)."""

    success: bool = True
    count: int
    data: List[Dict[str, Any]]


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    database: str
    geocoder: str
    version: str
