"""
DevCamper Backend: API Tests (ASGI, SQLite)
=============================================

What:  End-to-end requests through the FastAPI app with httpx's ASGITransport.
How:   The app state carries a per-test SQLite engine, a fake geocoder and a
       temporary photo store (see conftest.py).

What we test:
    ✅ Envelope shape, filters, select, sort and pagination over HTTP
    ✅ Auth: register, login, me, bad credentials, missing token
    ✅ Role and ownership checks answer 403 with `{success: false, error}`
    ✅ Course/review side effects on the bootcamp (average cost/rating)
    ✅ Photo upload, serving, deletion; cascade on bootcamp delete
    ✅ Radius search, health check, request validation → 400
"""

from unittest.mock import AsyncMock, patch

import pytest
from starlette.datastructures import UploadFile

from devcamper.config import settings
from devcamper.exceptions import GeocoderError

API = "/api/v1"

BOOTCAMP = {
    "name": "Devworks Bootcamp",
    "description": "Full stack web development bootcamp",
    "website": "https://devworks.com",
    "phone": "(111) 111-1111",
    "email": "enroll@devworks.com",
    "address": "233 Bay State Rd Boston MA 02215",
    "careers": ["Web Development", "UI/UX", "Business"],
    "housing": True,
    "jobAssistance": True,
}


async def create_bootcamp(client, headers, **overrides):
    response = await client.post(f"{API}/bootcamps", json={**BOOTCAMP, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def add_course(client, headers, bootcamp_id, title, tuition, skill="beginner"):
    response = await client.post(
        f"{API}/bootcamps/{bootcamp_id}/courses",
        json={
            "title": title,
            "description": "A course",
            "weeks": "8",
            "tuition": tuition,
            "minimumSkill": skill,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_ok(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_health_degraded_when_geocoder_circuit_open(self, client, fake_geocoder):
        fake_geocoder.health_check.return_value = False
        response = await client.get("/health")
        assert response.json()["status"] == "degraded"
        assert response.json()["geocoder"] == "circuit_open"


class TestAuth:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authorized to access this route"}

    @pytest.mark.asyncio
    async def test_register_login_me(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"name": "Jane", "email": "Jane@Example.com", "password": "secret123", "role": "publisher"},
        )
        assert response.status_code == 201
        assert response.json()["success"] is True
        assert "token" in response.cookies

        response = await client.post(
            f"{API}/auth/login", json={"email": "jane@example.com", "password": "secret123"}
        )
        token = response.json()["token"]

        response = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "jane@example.com"
        assert data["role"] == "publisher"
        assert "passwordHash" not in data and "password_hash" not in data

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, client, make_user):
        user, _ = await make_user("user")
        response = await client.post(f"{API}/auth/login", json={"email": user.email, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_register_cannot_claim_admin(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"name": "Eve", "email": "eve@example.com", "password": "secret123", "role": "admin"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_update_password_wrong_current(self, client, make_user):
        _, headers = await make_user("user")
        response = await client.put(
            f"{API}/auth/updatepassword",
            json={"currentPassword": "wrong", "newPassword": "another123"},
            headers=headers,
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Password is incorrect"


class TestBootcampListing:

    @pytest.mark.asyncio
    async def test_empty_listing(self, client):
        response = await client.get(f"{API}/bootcamps")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "count": 0,
            "pagination": {"page": 1, "limit": 25},
            "data": [],
        }
        assert response.headers["X-Total-Count"] == "0"

    @pytest.mark.asyncio
    async def test_filter_select_sort_paginate(self, client, make_user):
        _, admin = await make_user("admin")
        for name, housing in (("Alpha Camp", True), ("Bravo Camp", False), ("Charlie Camp", True)):
            await create_bootcamp(client, admin, name=name, housing=housing)

        response = await client.get(
            f"{API}/bootcamps",
            params={"housing": "true", "select": "name,housing", "sort": "-name", "limit": "1", "page": "1"},
        )
        body = response.json()

        assert response.headers["X-Total-Count"] == "2"
        assert body["count"] == 1
        assert body["pagination"] == {"page": 1, "limit": 1, "next": {"page": 2, "limit": 1}}
        record = body["data"][0]
        assert record["name"] == "Charlie Camp"
        assert set(record) == {"id", "name", "housing", "courses"}

    @pytest.mark.asyncio
    async def test_unknown_params_are_ignored(self, client, make_user):
        _, admin = await make_user("admin")
        await create_bootcamp(client, admin)

        response = await client.get(f"{API}/bootcamps", params={"password": "x", "averageCost[foo]": "1"})
        assert response.status_code == 200
        # Unknown operator: compared with the literal string "1", which no number equals
        assert response.json()["count"] == 0

        response = await client.get(f"{API}/bootcamps", params={"password": "x"})
        assert response.json()["count"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            {"page": "100000000000000000000"},
            {"limit": "5", "page": "9223372036854775807"},
        ],
    )
    async def test_page_past_any_offset_is_empty(self, client, make_user, params):
        _, admin = await make_user("admin")
        await create_bootcamp(client, admin)

        response = await client.get(f"{API}/bootcamps", params=params)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 0
        assert body["data"] == []
        assert "next" not in body["pagination"]
        assert response.headers["X-Total-Count"] == "1"

    @pytest.mark.asyncio
    async def test_numeric_looking_text_filter_keeps_its_digits(self, client, make_user):
        _, admin = await make_user("admin")
        await create_bootcamp(client, admin, name="Decimal Camp", phone="1.50")
        await create_bootcamp(client, admin, name="Zero Camp", phone="-0")

        response = await client.get(f"{API}/bootcamps", params={"phone": "1.50"})
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["name"] == "Decimal Camp"

        response = await client.get(f"{API}/bootcamps", params={"phone": "-0"})
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["name"] == "Zero Camp"


class TestBootcampMutations:

    @pytest.mark.asyncio
    async def test_create_geocodes_and_slugs(self, client, make_user, fake_geocoder):
        _, publisher = await make_user("publisher")
        data = await create_bootcamp(client, publisher)

        assert data["slug"] == "devworks-bootcamp"
        assert data["city"] == "Boston"
        assert data["latitude"] == pytest.approx(42.3459)
        assert data["photo"] == "no-photo.jpg"
        fake_geocoder.geocode.assert_awaited_once_with(BOOTCAMP["address"])

    @pytest.mark.asyncio
    async def test_publisher_may_own_one_bootcamp(self, client, make_user):
        user, publisher = await make_user("publisher")
        await create_bootcamp(client, publisher)

        response = await client.post(
            f"{API}/bootcamps", json={**BOOTCAMP, "name": "Second"}, headers=publisher
        )
        assert response.status_code == 400
        assert response.json()["error"] == (
            f"User with the ID of {user.id} has already published one bootcamp."
        )

    @pytest.mark.asyncio
    async def test_user_role_cannot_create(self, client, make_user):
        _, headers = await make_user("user")
        response = await client.post(f"{API}/bootcamps", json=BOOTCAMP, headers=headers)
        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "User role user is not authorized to access this route",
        }

    @pytest.mark.asyncio
    async def test_geocoder_failure_is_500(self, client, make_user, fake_geocoder):
        _, publisher = await make_user("publisher")
        fake_geocoder.geocode.side_effect = GeocoderError(message="Could not geocode location x")

        response = await client.post(f"{API}/bootcamps", json=BOOTCAMP, headers=publisher)
        assert response.status_code == 500
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_invalid_body_is_400(self, client, make_user):
        _, publisher = await make_user("publisher")
        response = await client.post(
            f"{API}/bootcamps", json={**BOOTCAMP, "name": "x" * 51}, headers=publisher
        )
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "name" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_may_update(self, client, make_user):
        _, owner = await make_user("publisher")
        _, other = await make_user("publisher")
        _, admin = await make_user("admin")
        bootcamp = await create_bootcamp(client, owner)
        url = f"{API}/bootcamps/{bootcamp['id']}"

        response = await client.put(url, json={"phone": "(222) 222-2222"}, headers=other)
        assert response.status_code == 403
        assert response.json()["error"] == "Not authorized to commit this action."

        response = await client.put(url, json={"phone": "(222) 222-2222"}, headers=admin)
        assert response.status_code == 200
        assert response.json()["data"]["phone"] == "(222) 222-2222"

    @pytest.mark.asyncio
    async def test_explicit_false_differs_from_omission(self, client, make_user):
        _, owner = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)
        url = f"{API}/bootcamps/{bootcamp['id']}"

        response = await client.put(url, json={"description": "Updated"}, headers=owner)
        assert response.json()["data"]["housing"] is True
        assert response.json()["data"]["jobAssistance"] is True

        response = await client.put(url, json={"housing": False}, headers=owner)
        assert response.json()["data"]["housing"] is False
        assert response.json()["data"]["jobAssistance"] is True

        response = await client.put(url, json={"careers": None}, headers=owner)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_bootcamp_is_404(self, client):
        missing = "5d725a1b7b292f5f8ceff788"
        response = await client.get(f"{API}/bootcamps/{missing}")
        # Not a UUID: rejected by path validation
        assert response.status_code == 400

        missing = "0b6c2f4e-6a3f-4c34-9d1e-2f0e8a1b7c55"
        response = await client.get(f"{API}/bootcamps/{missing}")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": f"Bootcamp not found with id of {missing}",
        }

    @pytest.mark.asyncio
    async def test_delete_cascades_to_courses(self, client, make_user):
        _, owner = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)
        await add_course(client, owner, bootcamp["id"], "Front End", 8000)

        response = await client.delete(f"{API}/bootcamps/{bootcamp['id']}", headers=owner)
        assert response.status_code == 200
        assert response.json()["data"] == {"message": "Bootcamp Deleted Successfully."}

        response = await client.get(f"{API}/courses")
        assert response.json()["count"] == 0


class TestCoursesAndReviews:

    @pytest.mark.asyncio
    async def test_average_cost_follows_courses(self, client, make_user):
        _, owner = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)
        await add_course(client, owner, bootcamp["id"], "Front End", 8000)
        course = await add_course(client, owner, bootcamp["id"], "Full Stack", 12001, "intermediate")

        response = await client.get(f"{API}/bootcamps/{bootcamp['id']}")
        data = response.json()["data"]
        assert data["averageCost"] == 10010
        assert {c["title"] for c in data["courses"]} == {"Front End", "Full Stack"}

        await client.delete(f"{API}/courses/{course['id']}", headers=owner)
        response = await client.get(f"{API}/bootcamps/{bootcamp['id']}")
        assert response.json()["data"]["averageCost"] == 8000

    @pytest.mark.asyncio
    async def test_scoped_course_listing(self, client, make_user):
        _, admin = await make_user("admin")
        first = await create_bootcamp(client, admin, name="First")
        second = await create_bootcamp(client, admin, name="Second")
        await add_course(client, admin, first["id"], "A", 1000)
        await add_course(client, admin, second["id"], "B", 2000)
        await add_course(client, admin, second["id"], "C", 3000)

        response = await client.get(
            f"{API}/bootcamps/{second['id']}/courses", params={"tuition[gte]": "2500"}
        )
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["title"] == "C"
        assert body["data"][0]["bootcamp"]["name"] == "Second"

    @pytest.mark.asyncio
    async def test_course_needs_bootcamp_owner(self, client, make_user):
        _, owner = await make_user("publisher")
        _, other = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)

        response = await client.post(
            f"{API}/bootcamps/{bootcamp['id']}/courses",
            json={"title": "X", "description": "Y", "weeks": "4", "tuition": 10, "minimumSkill": "beginner"},
            headers=other,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_reviews(self, client, make_user):
        _, owner = await make_user("publisher")
        _, reviewer = await make_user("user")
        _, second_reviewer = await make_user("user")
        bootcamp = await create_bootcamp(client, owner)
        url = f"{API}/bootcamps/{bootcamp['id']}/reviews"
        review = {"title": "Great", "text": "Learned a lot", "rating": 8}

        response = await client.post(url, json=review, headers=reviewer)
        assert response.status_code == 201
        await client.post(url, json={**review, "rating": 5}, headers=second_reviewer)

        response = await client.post(url, json=review, headers=reviewer)
        assert response.status_code == 400
        assert response.json()["error"] == "You have already reviewed this bootcamp"

        response = await client.post(url, json=review, headers=owner)
        assert response.status_code == 403

        response = await client.get(f"{API}/bootcamps/{bootcamp['id']}")
        assert response.json()["data"]["averageRating"] == 6.5

        response = await client.get(url)
        assert response.json()["count"] == 2


class TestPhotos:

    @pytest.mark.asyncio
    async def test_upload_serve_delete(self, client, make_user, sample_image_bytes):
        _, owner = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)
        url = f"{API}/bootcamps/{bootcamp['id']}/photo"

        response = await client.put(url, headers=owner)
        assert response.status_code == 400
        assert response.json()["error"] == "No file was uploaded."

        response = await client.put(
            url, files={"file": ("notes.txt", b"hello", "text/plain")}, headers=owner
        )
        assert response.status_code == 400
        assert response.json()["error"] == "File must be an image"

        response = await client.put(
            url, files={"file": ("campus.jpg", sample_image_bytes, "image/jpeg")}, headers=owner
        )
        assert response.status_code == 200
        file_name = response.json()["data"]["fileName"]
        assert file_name == f"photo_{bootcamp['id']}.jpg"

        response = await client.get(f"/uploads/{file_name}")
        assert response.status_code == 200
        assert response.content == sample_image_bytes

        response = await client.delete(url, headers=owner)
        assert response.json()["data"] == {"message": "Photo deleted successfully."}

        response = await client.delete(url, headers=owner)
        assert response.status_code == 404
        assert response.json()["error"] == "No photo found for this bootcamp"

        response = await client.get(f"/uploads/{file_name}")
        assert response.status_code == 404


    @pytest.mark.asyncio
    async def test_oversized_upload_rejected_before_reading(self, client, make_user, monkeypatch):
        _, owner = await make_user("publisher")
        bootcamp = await create_bootcamp(client, owner)
        monkeypatch.setattr(settings, "max_photo_size", 1_000)

        with patch.object(UploadFile, "read", new_callable=AsyncMock) as read:
            response = await client.put(
                f"{API}/bootcamps/{bootcamp['id']}/photo",
                files={"file": ("campus.jpg", b"\xff" * 2_000, "image/jpeg")},
                headers=owner,
            )

        assert response.status_code == 400
        assert response.json()["error"] == "File cannot be more than 1 KB"
        read.assert_not_awaited()


class TestRadius:

    @pytest.mark.asyncio
    async def test_radius_search(self, client, make_user, fake_geocoder):
        _, admin = await make_user("admin")
        await create_bootcamp(client, admin)

        response = await client.get(f"{API}/bootcamps/radius/02118/10")
        body = response.json()
        assert response.status_code == 200
        assert body["count"] == 1
        assert body["data"][0]["name"] == BOOTCAMP["name"]
        fake_geocoder.geocode.assert_awaited_with("02118")

    @pytest.mark.asyncio
    async def test_radius_rejects_bad_distance_and_unit(self, client):
        assert (await client.get(f"{API}/bootcamps/radius/02118/-5")).status_code == 400
        assert (await client.get(f"{API}/bootcamps/radius/02118/5", params={"unit": "ly"})).status_code == 400


class TestUsers:

    @pytest.mark.asyncio
    async def test_admin_only(self, client, make_user):
        _, user = await make_user("user")
        _, admin = await make_user("admin")

        response = await client.get(f"{API}/users", headers=user)
        assert response.status_code == 403

        response = await client.get(f"{API}/users", params={"role": "admin"}, headers=admin)
        assert response.status_code == 200
        assert response.json()["count"] == 1

        response = await client.post(
            f"{API}/users",
            json={"name": "New", "email": "new@example.com", "password": "secret123", "role": "publisher"},
            headers=admin,
        )
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "publisher"
