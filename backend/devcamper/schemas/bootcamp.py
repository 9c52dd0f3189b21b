"""
DevCamper Backend: Bootcamp Request Schemas
=============================================

What:  Bodies for POST /bootcamps and PUT /bootcamps/{id}.
How:   Location columns, slug, aggregates, photo and owner are server-managed
       and therefore absent here.

Boolean flags default to false on create only. Updates apply exactly the
fields sent: an explicit `false` is stored, an omitted flag keeps its value.
"""

from typing import List, Literal, Optional

from pydantic import Field

from devcamper.schemas.common import CamelModel, PartialUpdate

Career = Literal[
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
]

URL_PATTERN = r"^https?://[^\s/$.?#].[^\s]*$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class BootcampCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    address: str = Field(min_length=1, max_length=255)
    careers: List[Career] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False


class BootcampUpdate(PartialUpdate):
    REQUIRED_ON_RECORD = (
        "name",
        "description",
        "address",
        "careers",
        "housing",
        "job_assistance",
        "job_guarantee",
        "accept_gi",
    )

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    careers: Optional[List[Career]] = Field(default=None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None
