"""Bodies for adding and updating courses."""

from typing import Literal, Optional

from pydantic import Field

from devcamper.schemas.common import CamelModel, PartialUpdate

SkillLevel = Literal["beginner", "intermediate", "advanced"]


class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    weeks: str = Field(min_length=1, max_length=20)
    tuition: float = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False


class CourseUpdate(PartialUpdate):
    REQUIRED_ON_RECORD = (
        "title",
        "description",
        "weeks",
        "tuition",
        "minimum_skill",
        "scholarship_available",
    )

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[str] = Field(default=None, min_length=1, max_length=20)
    tuition: Optional[float] = Field(default=None, ge=0)
    minimum_skill: Optional[SkillLevel] = None
    scholarship_available: Optional[bool] = None
