"""
DevCamper Backend: Result Envelope Builder
============================================

What:  Runs the "advanced results" pipeline for one list request and returns
       an immutable ResultEnvelope for the handler to send back unchanged.
How:   One count (filter only) → paginate → one bounded fetch (filter, sort,
       projection, skip/limit, optional expansion) → envelope.
Who:   List routes, through the `advanced_results(resource)` dependency.

Guarantees:
    count == len(data)
    pagination.total == number of records matching the filter
    exactly two store reads (plus one lookup if the resource declares an expansion)
    store errors propagate unchanged; no partial envelope is ever returned
"""

from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import UUID

from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.query.pagination import PaginationResult, paginate
from devcamper.query.translator import (
    QueryDescriptor,
    query_params_to_mapping,
    translate_query,
)
from devcamper.resources import Resource
from devcamper.services.store import ResourceStore


class ResultEnvelope(BaseModel):
    """`{success, count, pagination, data}` for one list request."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    count: int
    pagination: PaginationResult
    data: List[Dict[str, Any]]


async def build_envelope(
    store: ResourceStore,
    descriptor: QueryDescriptor,
    scope: Optional[Mapping[str, Any]] = None,
    max_limit: Optional[int] = None,
) -> ResultEnvelope:
    """
    Execute the descriptor against `store` and assemble the envelope.

    Args:
        store:      store client for the listed resource
        descriptor: translated query
        scope:      fixed filter entries imposed by the route (they replace any
                    user-supplied condition on the same field)
        max_limit:  page size cap (settings default)
    """
    filter_ = dict(descriptor.filter)
    if scope:
        filter_.update(scope)

    total = await store.count(filter_)
    window = paginate(descriptor.page, descriptor.limit, total, max_limit=max_limit)

    data = await store.find(
        filter_,
        descriptor.sort_keys,
        projection=descriptor.select_fields,
        skip=window.skip,
        limit=window.limit,
        expand=store.resource.expansion is not None,
    )

    return ResultEnvelope(count=len(data), pagination=window.pagination, data=data)


def advanced_results(resource: Resource, scoped: bool = False) -> Callable:
    """
    Dependency factory for list endpoints.

    Usage:
        @router.get("/bootcamps")
        async def list_bootcamps(envelope: ResultEnvelope = Depends(advanced_results(BOOTCAMPS))):
            ...

    With `scoped=True` the dependency takes the `bootcamp_id` path parameter
    and pins the listing to that bootcamp.
    """

    async def _run(request: Request, session: AsyncSession, scope=None) -> ResultEnvelope:
        descriptor = translate_query(query_params_to_mapping(request.query_params), resource)
        return await build_envelope(ResourceStore(session, resource), descriptor, scope=scope)

    if scoped:
        async def scoped_dependency(
            bootcamp_id: UUID,
            request: Request,
            session: AsyncSession = Depends(get_db_session),
        ) -> ResultEnvelope:
            return await _run(request, session, scope={"bootcampId": bootcamp_id})

        return scoped_dependency

    async def dependency(
        request: Request,
        session: AsyncSession = Depends(get_db_session),
    ) -> ResultEnvelope:
        return await _run(request, session)

    return dependency
