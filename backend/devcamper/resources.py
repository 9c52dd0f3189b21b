"""
DevCamper Backend: Resource Registry
======================================

What:  Declares, per resource, the allow-list of public (camelCase) field
       names, the column each one maps to, and the optional eager expansion
       of a related collection.
Who:   The query translator (drops anything not allow-listed), the Resource
       Store (compiles filters/sorts/projections against the mapped columns),
       and services (serialize ORM rows into API records).

A field marked `queryable=False` (array-valued `careers`) can be selected but
never filtered or sorted on.
"""

from typing import Dict, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy.orm import InstrumentedAttribute

from devcamper.models import Bootcamp, Course, Review, User


class FieldSpec(NamedTuple):
    name: str
    column: str
    queryable: bool = True


class Expansion(NamedTuple):
    """
    Eager lookup of a related collection, attached to each listed record.

    local_field:    public field on this resource holding the join value
    foreign_field:  public field on the target resource matched against it
    many:           True → list of related records; False → one record or None
    fields:         target fields to include (None → every allow-listed field)
    """

    name: str
    target: str
    local_field: str
    foreign_field: str
    many: bool = True
    fields: Optional[Tuple[str, ...]] = None


class Resource:
    """An allow-listed view of one table."""

    def __init__(
        self,
        name: str,
        model,
        fields: Sequence[FieldSpec],
        owner_field: Optional[str] = "userId",
        expansion: Optional[Expansion] = None,
    ):
        self.name = name
        self.model = model
        self.fields: Tuple[FieldSpec, ...] = tuple(fields)
        self.owner_field = owner_field
        self.expansion = expansion
        self._by_name: Dict[str, FieldSpec] = {spec.name: spec for spec in self.fields}

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def is_selectable(self, name: str) -> bool:
        return name in self._by_name

    def is_queryable(self, name: str) -> bool:
        spec = self._by_name.get(name)
        return spec is not None and spec.queryable

    def column(self, name: str) -> Optional[InstrumentedAttribute]:
        spec = self._by_name.get(name)
        if spec is None:
            return None
        return getattr(self.model, spec.column)

    def to_record(self, instance) -> Dict[str, object]:
        """Serialize an ORM instance into a public record (allow-listed fields only)."""
        return {spec.name: getattr(instance, spec.column) for spec in self.fields}

    def __repr__(self) -> str:
        return f"<Resource({self.name})>"


USERS = Resource(
    name="User",
    model=User,
    owner_field="id",
    fields=[
        FieldSpec("id", "id"),
        FieldSpec("name", "name"),
        FieldSpec("email", "email"),
        FieldSpec("role", "role"),
        FieldSpec("createdAt", "created_at"),
    ],
)

BOOTCAMPS = Resource(
    name="Bootcamp",
    model=Bootcamp,
    expansion=Expansion(
        name="courses",
        target="Course",
        local_field="id",
        foreign_field="bootcampId",
        many=True,
    ),
    fields=[
        FieldSpec("id", "id"),
        FieldSpec("name", "name"),
        FieldSpec("slug", "slug"),
        FieldSpec("description", "description"),
        FieldSpec("website", "website"),
        FieldSpec("phone", "phone"),
        FieldSpec("email", "email"),
        FieldSpec("address", "address"),
        FieldSpec("latitude", "latitude"),
        FieldSpec("longitude", "longitude"),
        FieldSpec("formattedAddress", "formatted_address"),
        FieldSpec("street", "street"),
        FieldSpec("city", "city"),
        FieldSpec("state", "state"),
        FieldSpec("zipcode", "zipcode"),
        FieldSpec("country", "country"),
        FieldSpec("careers", "careers", queryable=False),
        FieldSpec("averageRating", "average_rating"),
        FieldSpec("averageCost", "average_cost"),
        FieldSpec("photo", "photo"),
        FieldSpec("housing", "housing"),
        FieldSpec("jobAssistance", "job_assistance"),
        FieldSpec("jobGuarantee", "job_guarantee"),
        FieldSpec("acceptGi", "accept_gi"),
        FieldSpec("createdAt", "created_at"),
        FieldSpec("userId", "user_id"),
    ],
)

COURSES = Resource(
    name="Course",
    model=Course,
    expansion=Expansion(
        name="bootcamp",
        target="Bootcamp",
        local_field="bootcampId",
        foreign_field="id",
        many=False,
        fields=("name", "description"),
    ),
    fields=[
        FieldSpec("id", "id"),
        FieldSpec("title", "title"),
        FieldSpec("description", "description"),
        FieldSpec("weeks", "weeks"),
        FieldSpec("tuition", "tuition"),
        FieldSpec("minimumSkill", "minimum_skill"),
        FieldSpec("scholarshipAvailable", "scholarship_available"),
        FieldSpec("createdAt", "created_at"),
        FieldSpec("bootcampId", "bootcamp_id"),
        FieldSpec("userId", "user_id"),
    ],
)

REVIEWS = Resource(
    name="Review",
    model=Review,
    expansion=Expansion(
        name="bootcamp",
        target="Bootcamp",
        local_field="bootcampId",
        foreign_field="id",
        many=False,
        fields=("name", "description"),
    ),
    fields=[
        FieldSpec("id", "id"),
        FieldSpec("title", "title"),
        FieldSpec("text", "text"),
        FieldSpec("rating", "rating"),
        FieldSpec("createdAt", "created_at"),
        FieldSpec("bootcampId", "bootcamp_id"),
        FieldSpec("userId", "user_id"),
    ],
)

_REGISTRY: Dict[str, Resource] = {
    resource.name: resource for resource in (USERS, BOOTCAMPS, COURSES, REVIEWS)
}


def get_resource(name: str) -> Resource:
    """Look up a registered resource by name (expansions refer to targets by name)."""
    return _REGISTRY[name]
