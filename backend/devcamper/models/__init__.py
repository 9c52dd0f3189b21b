"""
DevCamper Backend: ORM Models
===============================

Importing this package registers every table with `Base.metadata`
(Alembic autogenerate and test `create_all` rely on that).
"""

from devcamper.models.bootcamp import Bootcamp, CAREERS, DEFAULT_PHOTO
from devcamper.models.course import Course, SKILL_LEVELS
from devcamper.models.review import Review
from devcamper.models.user import ROLES, User

__all__ = [
    "Bootcamp",
    "CAREERS",
    "Course",
    "DEFAULT_PHOTO",
    "ROLES",
    "Review",
    "SKILL_LEVELS",
    "User",
]
