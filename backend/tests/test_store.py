"""
DevCamper Backend: Resource Store Tests (SQLite)
==================================================

What:  Runs the store against a real database (aiosqlite) so the compiled
       filters, sorts and projections are executed, not just built.

What we test:
    ✅ Equality, comparison and `in` filters; operands adapted to column types
    ✅ Sort keys with a stable id tie-breaker; skip/limit windows
    ✅ Projection always returns `id`
    ✅ Expansion: many (bootcamp → courses) and one (course → bootcamp)
    ✅ Radius search, bulk delete, averages, duplicate-value handling
"""

from uuid import uuid4

import pytest

from devcamper.exceptions import ValidationError
from devcamper.models import Bootcamp, Course, User
from devcamper.query.translator import SortDirection
from devcamper.resources import BOOTCAMPS, COURSES
from devcamper.services.geo import radius_in_radians
from devcamper.services.store import ResourceStore


async def seed(session):
    """Three bootcamps (Boston, Providence, Los Angeles), two courses on the first."""
    owner = User(name="Owner", email="owner@example.com", role="publisher", password_hash="x")
    session.add(owner)
    await session.flush()

    camps = [
        Bootcamp(
            name="Devworks Bootcamp", slug="devworks-bootcamp", description="Boston",
            address="233 Bay State Rd Boston MA 02215", careers=["Web Development"],
            latitude=42.3459, longitude=-71.0779, state="MA", zipcode="02215",
            average_cost=10000, housing=True, user_id=owner.id,
        ),
        Bootcamp(
            name="ModernTech Bootcamp", slug="moderntech-bootcamp", description="Providence",
            address="220 Pawtucket St Providence RI", careers=["UI/UX", "Business"],
            latitude=41.8240, longitude=-71.4128, state="RI", zipcode="02903",
            average_cost=7500, housing=False, user_id=owner.id,
        ),
        Bootcamp(
            name="Codemasters", slug="codemasters", description="Los Angeles",
            address="85 S Prospect Ave Los Angeles CA", careers=["Data Science"],
            latitude=34.0522, longitude=-118.2437, state="CA", zipcode="90012",
            average_cost=None, housing=True, user_id=owner.id,
        ),
    ]
    session.add_all(camps)
    await session.flush()

    session.add_all([
        Course(
            title="Front End Web Development", description="HTML, CSS", weeks="8",
            tuition=8000, minimum_skill="beginner", bootcamp_id=camps[0].id, user_id=owner.id,
        ),
        Course(
            title="Full Stack Web Development", description="MERN", weeks="12",
            tuition=12000, minimum_skill="intermediate", bootcamp_id=camps[0].id, user_id=owner.id,
        ),
    ])
    await session.flush()
    return owner, camps


class TestFind:

    @pytest.mark.asyncio
    async def test_filters_and_count(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        assert await store.count({}) == 3
        assert await store.count({"housing": True}) == 2
        assert await store.count({"averageCost": {"lte": 8000}}) == 1
        assert await store.count({"averageCost": {"gte": 5000, "lt": 10000.5}}) == 2
        assert await store.count({"state": {"in": ["MA", "CA", "NY"]}}) == 2
        assert await store.count({"zipcode": "02215"}) == 1

    @pytest.mark.asyncio
    async def test_unmatchable_operand_matches_nothing(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        assert await store.count({"averageCost": "cheap"}) == 0
        assert await store.count({"id": "not-a-uuid"}) == 0
        assert await store.count({"housing": 1}) == 0

    @pytest.mark.asyncio
    async def test_sort_projection_and_window(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        records = await store.find(
            {},
            (("name", SortDirection.ASC),),
            projection={"name"},
            skip=1,
            limit=1,
        )

        assert len(records) == 1
        assert set(records[0]) == {"id", "name"}
        assert records[0]["name"] == "Devworks Bootcamp"

    @pytest.mark.asyncio
    async def test_sort_descending(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        records = await store.find({"averageCost": {"gt": 0}}, (("averageCost", SortDirection.DESC),))
        assert [r["averageCost"] for r in records] == [10000, 7500]

    @pytest.mark.asyncio
    async def test_many_expansion_attaches_courses(self, db_session):
        _, camps = await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        records = await store.find({}, (("name", SortDirection.ASC),), projection={"name"}, expand=True)
        by_name = {r["name"]: r for r in records}

        assert len(by_name["Devworks Bootcamp"]["courses"]) == 2
        assert by_name["Codemasters"]["courses"] == []
        assert all(c["bootcampId"] == camps[0].id for c in by_name["Devworks Bootcamp"]["courses"])

    @pytest.mark.asyncio
    async def test_single_expansion_hides_unselected_join_field(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, COURSES)

        records = await store.find({}, (("title", SortDirection.ASC),), projection={"title"}, expand=True)

        assert records[0]["bootcamp"]["name"] == "Devworks Bootcamp"
        assert set(records[0]["bootcamp"]) == {"id", "name", "description"}
        assert "bootcampId" not in records[0]


class TestLookupsAndWrites:

    @pytest.mark.asyncio
    async def test_get_with_malformed_id_is_none(self, db_session):
        store = ResourceStore(db_session, BOOTCAMPS)
        assert await store.get("nope") is None
        assert await store.get(uuid4()) is None

    @pytest.mark.asyncio
    async def test_duplicate_name_is_validation_error(self, db_session):
        owner, _ = await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        with pytest.raises(ValidationError, match="Duplicate"):
            await store.add(Bootcamp(
                name="Codemasters", slug="codemasters", description="Again",
                address="Somewhere", careers=["Other"], user_id=owner.id,
            ))

    @pytest.mark.asyncio
    async def test_delete_where_and_average(self, db_session):
        _, camps = await seed(db_session)
        courses = ResourceStore(db_session, COURSES)
        scope = {"bootcampId": camps[0].id}

        assert await courses.average("tuition", scope) == 10000
        assert await courses.delete_where(scope) == 2
        assert await courses.average("tuition", scope) is None


class TestWithinRadius:

    @pytest.mark.asyncio
    async def test_radius_search(self, db_session):
        await seed(db_session)
        store = ResourceStore(db_session, BOOTCAMPS)

        # Boston → Providence is about 41 miles
        near = await store.within_radius(42.3601, -71.0589, radius_in_radians(10, "mi"))
        wider = await store.within_radius(42.3601, -71.0589, radius_in_radians(60, "mi"))
        everything = await store.within_radius(42.3601, -71.0589, radius_in_radians(3000, "mi"))

        assert [r["name"] for r in near] == ["Devworks Bootcamp"]
        assert {r["name"] for r in wider} == {"Devworks Bootcamp", "ModernTech Bootcamp"}
        assert len(everything) == 3
