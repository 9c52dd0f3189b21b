"""
DevCamper Backend: Resource Store
===================================

What:  The document-store style client the query pipeline and the services
       talk to: `count(filter)`, `find(filter, sort, projection, skip, limit)`,
       eager expansion, radius search, plus get/add/delete for handlers.
How:   Wraps one explicit AsyncSession and one Resource. Filters use the
       translator's public field names; they are compiled here into
       SQLAlchemy clauses against the allow-listed columns.
Who:   Result Envelope Builder (count + find), resource services (CRUD).

Operator compilation (same approach as a `field[op]=value` query builder):
    eq  → column == v      gt  → column > v      gte → column >= v
    lt  → column < v       lte → column <= v     in  → column IN (...)

Operand adaptation:
    Operands arrive already coerced (int/float/bool/str). They are adapted to
    the column's Python type before binding so a strict driver (asyncpg)
    never sees e.g. an int bound to a VARCHAR. A text column binds a number
    as the exact text it was parsed from. An operand that cannot match
    the column type (a word compared with a number column, a malformed UUID)
    compiles to FALSE instead of failing the query.

Errors:
    SQLAlchemyError during reads/writes → DatabaseError (500)
    IntegrityError on flush            → ValidationError (400, duplicate value)
"""

import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, false, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import DatabaseError, ValidationError
from devcamper.query.translator import SortDirection
from devcamper.resources import Resource, get_resource
from devcamper.services.geo import angular_distance, bounding_box

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

OPERATOR_MAP = {
    "eq": "__eq__",
    "gt": "__gt__",
    "gte": "__ge__",
    "lt": "__lt__",
    "lte": "__le__",
    "in": "in_",
}

_NO_MATCH = object()


# ══════════════════════════════════════════════════════════════════════════
# Operand adaptation
# ══════════════════════════════════════════════════════════════════════════

def _python_type(column) -> Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _adapt_scalar(python_type: Optional[type], value: Any, operator: str) -> Any:
    """Convert `value` to the column's type, or return _NO_MATCH."""
    if python_type is None or value is None:
        return value

    if python_type is bool:
        return value if isinstance(value, bool) else _NO_MATCH

    if python_type is str:
        if isinstance(value, bool):
            return "true" if value else "false"
        # Numbers compare as the text the client sent ("1.50", "-0")
        return getattr(value, "raw", str(value))

    if python_type is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return _NO_MATCH
        return float(value)

    if python_type is int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return _NO_MATCH
        if float(value).is_integer():
            return int(value)
        # Fractional bound on an integer column: tighten to the nearest integer
        if operator in ("gt", "lte"):
            return math.floor(value)
        if operator in ("gte", "lt"):
            return math.ceil(value)
        return _NO_MATCH

    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except ValueError:
            return _NO_MATCH

    if python_type is datetime:
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            return _NO_MATCH

    return value


def compile_filter(resource: Resource, filter_: Dict[str, Any]) -> List[Any]:
    """
    Compile a descriptor filter into a list of SQLAlchemy clauses (ANDed).

    Unknown fields and operators are skipped; they never reach SQL.
    """
    clauses = []
    for name, condition in filter_.items():
        column = resource.column(name)
        if column is None:
            continue
        python_type = _python_type(column)
        operators = condition if isinstance(condition, dict) else {"eq": condition}

        for operator, operand in operators.items():
            method = OPERATOR_MAP.get(operator)
            if method is None:
                continue

            if operator == "in":
                items = operand if isinstance(operand, (list, tuple, set)) else [operand]
                adapted = [_adapt_scalar(python_type, item, "eq") for item in items]
                adapted = [item for item in adapted if item is not _NO_MATCH]
                clauses.append(column.in_(adapted) if adapted else false())
                continue

            adapted = _adapt_scalar(python_type, operand, operator)
            if adapted is _NO_MATCH:
                clauses.append(false())
            elif adapted is None and operator == "eq":
                clauses.append(column.is_(None))
            else:
                clauses.append(getattr(column, method)(adapted))
    return clauses


def compile_sort(resource: Resource, sort_keys: Iterable[Tuple[str, SortDirection]]) -> List[Any]:
    """ORDER BY clauses, with the primary key as a final tie-breaker for stable pages."""
    order_by = []
    for name, direction in sort_keys:
        column = resource.column(name)
        if column is None:
            continue
        order_by.append(column.desc() if direction == SortDirection.DESC else column.asc())
    order_by.append(resource.model.id.asc())
    return order_by


def _ordered_fields(resource: Resource, wanted: Iterable[str]) -> List[str]:
    """`wanted` in allow-list order, always starting with id."""
    wanted = set(wanted) | {"id"}
    return [name for name in resource.field_names if name in wanted]


# ══════════════════════════════════════════════════════════════════════════
# Resource Store
# ══════════════════════════════════════════════════════════════════════════

class ResourceStore:
    """
    Table access for one resource over an explicit session handle.

    Stateless apart from the handle; build one per request (cheap).
    """

    def __init__(self, session: AsyncSession, resource: Resource):
        self.session = session
        self.resource = resource

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _execute(self, statement):
        try:
            return await self.session.execute(statement)
        except SQLAlchemyError as e:
            logger.error("Query on %s failed: %s", self.resource.name, str(e))
            raise DatabaseError(
                message=f"Could not read {self.resource.name.lower()} records. Please try again.",
                context={"resource": self.resource.name, "error_type": type(e).__name__},
            )

    async def count(self, filter_: Dict[str, Any]) -> int:
        """Number of records matching `filter_` (pagination ignored)."""
        statement = (
            select(func.count())
            .select_from(self.resource.model)
            .where(*compile_filter(self.resource, filter_))
        )
        result = await self._execute(statement)
        return int(result.scalar_one() or 0)

    async def find(
        self,
        filter_: Dict[str, Any],
        sort: Sequence[Tuple[str, SortDirection]],
        projection: Iterable[str] = (),
        skip: int = 0,
        limit: Optional[int] = None,
        expand: bool = False,
    ) -> List[Record]:
        """
        Bounded, sorted, projected fetch.

        Args:
            filter_:     descriptor filter (public field names)
            sort:        (field, direction) pairs
            projection:  fields to return; empty → every allow-listed field
            skip/limit:  page window
            expand:      attach the resource's declared expansion to each record

        Returns:
            List of records (dicts keyed by public field name, id always present).
        """
        projection = set(projection)
        returned = _ordered_fields(self.resource, projection or self.resource.field_names)

        expansion = self.resource.expansion if expand else None
        fetched = list(returned)
        if expansion and expansion.local_field not in fetched:
            fetched.append(expansion.local_field)

        statement = (
            select(*[self.resource.column(name) for name in fetched])
            .where(*compile_filter(self.resource, filter_))
            .order_by(*compile_sort(self.resource, sort))
            .offset(skip)
        )
        if limit is not None:
            statement = statement.limit(limit)

        result = await self._execute(statement)
        records = [dict(zip(fetched, row)) for row in result.all()]

        if expansion:
            records = await self.expand(records)
            if expansion.local_field not in returned:
                for record in records:
                    record.pop(expansion.local_field, None)
        return records

    async def expand(
        self,
        records: List[Record],
        fields: Optional[Sequence[str]] = None,
    ) -> List[Record]:
        """
        Attach the declared expansion to each record with one extra query.

        Args:
            records: records holding the expansion's local field
            fields:  target fields to include (overrides the declared default)
        """
        expansion = self.resource.expansion
        if expansion is None:
            return records

        target = get_resource(expansion.target)
        wanted = list(fields or expansion.fields or target.field_names)
        if expansion.foreign_field not in wanted:
            wanted.append(expansion.foreign_field)
        names = _ordered_fields(target, wanted)

        keys = {r[expansion.local_field] for r in records if r.get(expansion.local_field) is not None}
        grouped: Dict[Any, List[Record]] = defaultdict(list)
        if keys:
            statement = (
                select(*[target.column(name) for name in names])
                .where(target.column(expansion.foreign_field).in_(list(keys)))
                .order_by(*compile_sort(target, (("createdAt", SortDirection.ASC),)))
            )
            result = await self._execute(statement)
            for row in result.all():
                related = dict(zip(names, row))
                grouped[related[expansion.foreign_field]].append(related)

        for record in records:
            matches = grouped.get(record.get(expansion.local_field), [])
            if expansion.many:
                record[expansion.name] = matches
            else:
                record[expansion.name] = matches[0] if matches else None
        return records

    async def within_radius(
        self,
        latitude: float,
        longitude: float,
        radius: float,
    ) -> List[Record]:
        """
        Records whose (latitude, longitude) lie within `radius` radians of the centre.

        A bounding-box pre-filter runs in SQL; the exact great-circle test runs
        on the candidates.
        """
        model = self.resource.model
        min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius)

        statement = select(model).where(
            model.latitude.is_not(None),
            model.longitude.is_not(None),
            model.latitude.between(min_lat, max_lat),
        )
        if min_lng is not None:
            statement = statement.where(model.longitude.between(min_lng, max_lng))
        statement = statement.order_by(*compile_sort(self.resource, ()))

        result = await self._execute(statement)
        return [
            self.resource.to_record(instance)
            for instance in result.scalars().all()
            if angular_distance(latitude, longitude, instance.latitude, instance.longitude) <= radius
        ]

    async def get(self, record_id: Any):
        """ORM instance by primary key, or None (also None for a malformed id)."""
        if not isinstance(record_id, uuid.UUID):
            try:
                record_id = uuid.UUID(str(record_id))
            except ValueError:
                return None
        try:
            return await self.session.get(self.resource.model, record_id)
        except SQLAlchemyError as e:
            logger.error("Lookup of %s %s failed: %s", self.resource.name, record_id, str(e))
            raise DatabaseError(context={"resource": self.resource.name})

    async def find_one(self, filter_: Dict[str, Any]):
        """First ORM instance matching `filter_`, or None."""
        statement = (
            select(self.resource.model)
            .where(*compile_filter(self.resource, filter_))
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    # ── Writes ────────────────────────────────────────────────────────────

    async def flush(self) -> None:
        """Flush pending changes, translating integrity failures into 400s."""
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("Integrity error on %s: %s", self.resource.name, str(e.orig))
            raise ValidationError(
                message="Duplicate or invalid field value entered",
                context={"resource": self.resource.name},
            )
        except SQLAlchemyError as e:
            logger.error("Write to %s failed: %s", self.resource.name, str(e))
            raise DatabaseError(context={"resource": self.resource.name})

    async def add(self, instance):
        self.session.add(instance)
        await self.flush()
        return instance

    async def delete(self, instance) -> None:
        await self.session.delete(instance)
        await self.flush()

    async def delete_where(self, filter_: Dict[str, Any]) -> int:
        """Bulk delete of every record matching `filter_`; returns the row count."""
        statement = delete(self.resource.model).where(*compile_filter(self.resource, filter_))
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            logger.error("Bulk delete on %s failed: %s", self.resource.name, str(e))
            raise DatabaseError(context={"resource": self.resource.name})
        return result.rowcount or 0

    async def average(self, field: str, filter_: Dict[str, Any]) -> Optional[float]:
        """AVG(field) over the matching records, None when nothing matches."""
        statement = (
            select(func.avg(self.resource.column(field)))
            .where(*compile_filter(self.resource, filter_))
        )
        result = await self._execute(statement)
        value = result.scalar_one_or_none()
        return float(value) if value is not None else None
