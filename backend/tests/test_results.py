"""
DevCamper Backend: Result Envelope Builder Tests (Mocked Store)
=================================================================

What we test:
    ✅ Exactly one count and one find per envelope
    ✅ count == len(data); pagination computed from the count
    ✅ Route scope overrides a user-supplied condition on the same field
    ✅ Empty result → {success, count: 0, pagination: {page: 1, limit: 25}, data: []}
    ✅ Store errors propagate, no partial envelope
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from devcamper.exceptions import DatabaseError
from devcamper.query.results import build_envelope
from devcamper.query.translator import QueryDescriptor, SortDirection, translate_query
from devcamper.resources import BOOTCAMPS, COURSES, USERS


def make_store(resource, total, records):
    store = MagicMock()
    store.resource = resource
    store.count = AsyncMock(return_value=total)
    store.find = AsyncMock(return_value=records)
    return store


@pytest.mark.asyncio
async def test_one_count_and_one_find():
    records = [{"id": uuid4(), "name": "A"}, {"id": uuid4(), "name": "B"}]
    store = make_store(BOOTCAMPS, total=12, records=records)
    descriptor = translate_query(
        {"housing": "true", "select": "name", "sort": "-name", "page": "3", "limit": "5"},
        BOOTCAMPS,
    )

    envelope = await build_envelope(store, descriptor)

    store.count.assert_awaited_once_with({"housing": True})
    store.find.assert_awaited_once_with(
        {"housing": True},
        (("name", SortDirection.DESC),),
        projection=frozenset({"name"}),
        skip=10,
        limit=5,
        expand=True,
    )
    assert envelope.count == 2
    assert envelope.data == records
    assert envelope.pagination.total == 12
    assert envelope.pagination.next is None
    assert envelope.pagination.previous.page == 2


@pytest.mark.asyncio
async def test_resource_without_expansion_is_not_expanded():
    store = make_store(USERS, total=1, records=[{"id": uuid4()}])
    await build_envelope(store, QueryDescriptor())
    assert store.find.await_args.kwargs["expand"] is False


@pytest.mark.asyncio
async def test_scope_overrides_user_filter():
    bootcamp_id = uuid4()
    store = make_store(COURSES, total=0, records=[])
    descriptor = translate_query({"bootcampId": "something-else", "tuition[lt]": "9000"}, COURSES)

    await build_envelope(store, descriptor, scope={"bootcampId": bootcamp_id})

    store.count.assert_awaited_once_with({"bootcampId": bootcamp_id, "tuition": {"lt": 9000}})


@pytest.mark.asyncio
async def test_empty_result_envelope():
    store = make_store(BOOTCAMPS, total=0, records=[])

    envelope = await build_envelope(store, translate_query({}, BOOTCAMPS, default_limit=25))

    assert envelope.model_dump(mode="json") == {
        "success": True,
        "count": 0,
        "pagination": {"page": 1, "limit": 25},
        "data": [],
    }


@pytest.mark.asyncio
async def test_store_error_propagates():
    store = make_store(BOOTCAMPS, total=3, records=[])
    store.find.side_effect = DatabaseError()

    with pytest.raises(DatabaseError):
        await build_envelope(store, QueryDescriptor())
