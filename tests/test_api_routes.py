"""End-to-end tests of the REST routes through FastAPI's TestClient."""
from __future__ import annotations

from app.domain.models import Subscription, User
from app.domain.value_objects import UserRole
from app.worker.job_queue import DELETE_IMAGES_JOB, PROMOTE_IMAGE_JOB

TEST_PASSWORD = "secret123"


class TestEnvelope:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "success"

    def test_categories_seeded(self, client):
        response = client.get("/api/categories")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "success"
        assert [c["name"] for c in body["data"]] == ["Restaurant", "Hotel", "Shopping Mall", "Entertainment"]

    def test_missing_token(self, client):
        response = client.get("/api/me")

        assert response.status_code == 401
        assert response.json() == {"status": "error", "message": "Unauthorized", "data": None}

    def test_garbage_token(self, client):
        response = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_validation_error_envelope(self, client):
        response = client.post("/api/login", json={"email": "x@example.com"})

        body = response.json()
        assert response.status_code == 422
        assert body["status"] == "error"
        assert "password" in body["message"]

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestAuthRoutes:
    def test_register_login_logout(self, client):
        response = client.post(
            "/api/register",
            json={"name": "Eve", "email": "eve@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 201

        response = client.post("/api/login", json={"email": "eve@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['data']['access_token']}"}

        assert client.get("/api/me", headers=headers).json()["data"]["user"]["name"] == "Eve"
        assert client.post("/api/logout", headers=headers).status_code == 200
        assert client.get("/api/me", headers=headers).status_code == 401

    def test_register_business_with_payment(self, client, categories, payments):
        response = client.post(
            "/api/register",
            json={
                "name": "Dana",
                "email": "dana@example.com",
                "password": TEST_PASSWORD,
                "role": "business",
                "business_name": "Sunset Hotel",
                "category_id": categories["Hotel"].id,
                "district": "Riverside",
                "latitude": 41.2,
                "longitude": 69.1,
                "opening_hour": "08:00",
                "closing_hour": "22:00",
                "subscription_type": "yearly",
                "payment_method": "pm_card_visa",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["subscription"]["subscription_type"] == "yearly"
        assert payments.charges[0]["amount"] == 14999

    def test_register_duplicate_email(self, client, make_user):
        make_user(name="Eve")

        response = client.post(
            "/api/register",
            json={"name": "Eve", "email": "EVE@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "The email has already been taken."

    def test_payment_failure_is_reported(self, client, categories, payments, db):
        payments.error = "Your card was declined."

        response = client.post(
            "/api/register",
            json={
                "name": "Dana",
                "email": "dana@example.com",
                "password": TEST_PASSWORD,
                "role": "business",
                "business_name": "Sunset Hotel",
                "category_id": categories["Hotel"].id,
                "district": "Riverside",
                "latitude": 41.2,
                "longitude": 69.1,
                "opening_hour": "08:00",
                "closing_hour": "22:00",
                "subscription_type": "monthly",
                "payment_method": "pm_card_visa",
            },
        )

        assert response.status_code == 500
        assert response.json()["message"] == "Your card was declined."
        db.expire_all()
        assert db.query(User).filter_by(email="dana@example.com").count() == 0

    def test_refresh_rotates_token(self, client, make_user, auth_headers):
        headers = auth_headers(make_user())

        response = client.post("/api/refresh", headers=headers)

        assert response.status_code == 200
        fresh = {"Authorization": f"Bearer {response.json()['data']['access_token']}"}
        assert client.get("/api/me", headers=headers).status_code == 401
        assert client.get("/api/me", headers=fresh).status_code == 200


class TestBusinessRoutes:
    def test_subscription_edit_requires_business(self, client, make_user, auth_headers):
        response = client.put(
            "/api/business/subscription/edit",
            json={"subscription_type": "yearly", "payment_method": "pm_card_visa"},
            headers=auth_headers(make_user()),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Business authorization required."

    def test_subscription_edit(self, client, make_business, auth_headers, db):
        owner = make_business()

        response = client.put(
            "/api/business/subscription/edit",
            json={"subscription_type": "yearly", "payment_method": "pm_card_visa"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        db.expire_all()
        active = db.query(Subscription).filter_by(business_user_id=owner.id, active=True).all()
        assert [s.subscription_type for s in active] == ["yearly"]

    def test_expired_subscription_blocks_business_edit(self, client, make_business, auth_headers):
        owner = make_business(subscription_days=-1)

        response = client.put(
            "/api/business/profile/edit",
            json={"name": "Owner", "district": "Harbor"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Inactive business subscription."


class TestActivityRoutes:
    def test_booking_flow(self, client, make_user, make_business, auth_headers):
        owner = make_business(counter_booking=1)
        headers = auth_headers(make_user())
        payload = {"business_user_id": owner.id, "booking_date": "2026-11-02", "booking_time": "10:00"}

        first = client.post("/api/activity/book", json=payload, headers=headers)
        second = client.post("/api/activity/book", json=payload, headers=headers)

        assert first.status_code == 201
        assert first.json()["data"]["is_last_slot"] is True
        assert second.status_code == 409

    def test_booking_outside_hours(self, client, make_user, make_business, auth_headers):
        owner = make_business()

        response = client.post(
            "/api/activity/book",
            json={"business_user_id": owner.id, "booking_date": "2026-11-02", "booking_time": "20:00"},
            headers=auth_headers(make_user()),
        )

        assert response.status_code == 422
        assert response.json()["message"] == "Booking time is outside of business hours."

    def test_booking_time_format(self, client, make_user, make_business, auth_headers):
        owner = make_business()

        response = client.post(
            "/api/activity/book",
            json={"business_user_id": owner.id, "booking_date": "2026-11-02", "booking_time": "10am"},
            headers=auth_headers(make_user()),
        )

        assert response.status_code == 422

    def test_save_rate_review(self, client, make_user, make_business, auth_headers):
        owner = make_business()
        headers = auth_headers(make_user())
        target = {"business_user_id": owner.id}

        assert client.post("/api/activity/save", json=target, headers=headers).status_code == 201
        assert client.post("/api/activity/save", json=target, headers=headers).status_code == 409
        assert client.post("/api/activity/rate", json={**target, "rating": 4.5}, headers=headers).status_code == 200
        assert client.post("/api/activity/rate", json={**target, "rating": "4.2"}, headers=headers).status_code == 422
        assert (
            client.post("/api/activity/review", json={**target, "review": "Nice"}, headers=headers).status_code
            == 201
        )

        rating = client.get(f"/api/destinations/rating/{owner.id}").json()["data"]
        assert rating == {"rating": 4.5, "count": 1}
        checked = client.get(f"/api/user/check-rated/{owner.id}", headers=headers).json()["data"]
        assert checked == {"rated": True, "rating": 4.5}

    def test_activity_requires_token(self, client):
        assert client.post("/api/activity/save", json={"business_user_id": 1}).status_code == 401


class TestDestinationRoutes:
    def test_lists_and_lookups(self, client, make_business):
        owner = make_business(business_name="Grand Plaza", category="Hotel", district="Center")

        assert len(client.get("/api/destinations").json()["data"]) == 1
        assert client.get("/api/destinations/name/plaza").json()["data"][0]["user_id"] == owner.id
        assert client.get("/api/destinations/category/hotel").json()["data"][0]["user_id"] == owner.id
        assert client.get("/api/destinations/district/center").json()["data"][0]["user_id"] == owner.id
        assert client.get(f"/api/destinations/{owner.id}").json()["data"]["business_name"] == "Grand Plaza"
        assert client.get("/api/destinations/grouped").json()["data"]["banned"] == []

    def test_empty_search_is_success(self, client):
        response = client.get("/api/destinations/name/nothing")

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_unknown_destination_and_category(self, client):
        assert client.get("/api/destinations/999").status_code == 404
        assert client.get("/api/destinations/category/spaceport").status_code == 404


class TestUserRoutes:
    def test_bookings_owner_only(self, client, make_user, auth_headers):
        alice = make_user(name="Alice")
        bob = make_user(name="Bob")
        admin = make_user(name="Root", role=UserRole.ADMIN)

        assert client.get(f"/api/user/{alice.id}/bookings", headers=auth_headers(alice)).status_code == 200
        assert client.get(f"/api/user/{alice.id}/bookings", headers=auth_headers(bob)).status_code == 403
        assert client.get(f"/api/user/{alice.id}/saved", headers=auth_headers(admin)).status_code == 200

    def test_image_upload_and_delete(self, client, make_user, auth_headers, job_queue, png_bytes):
        user = make_user()
        headers = auth_headers(user)

        response = client.post(
            f"/api/users/{user.id}/images",
            files=[("images", ("beach.png", png_bytes, "image/png"))],
            headers=headers,
        )
        assert response.status_code == 202
        image_id = response.json()["data"][0]["id"]
        assert job_queue.jobs[0][0] == PROMOTE_IMAGE_JOB

        listed = client.get(f"/api/users/{user.id}/images", headers=headers).json()["data"]
        assert [i["id"] for i in listed] == [image_id]

        response = client.request(
            "DELETE", f"/api/users/{user.id}/images", json={"image_ids": [image_id]}, headers=headers
        )
        assert response.status_code == 202
        assert job_queue.jobs[-1][0] == DELETE_IMAGES_JOB
        assert client.get(f"/api/users/{user.id}/images", headers=headers).json()["data"] == []

    def test_invalid_upload_rejected(self, client, make_user, auth_headers):
        user = make_user()

        response = client.post(
            f"/api/users/{user.id}/images",
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
            headers=auth_headers(user),
        )

        assert response.status_code == 422

    def test_ban_requires_admin(self, client, make_user, make_business, auth_headers):
        owner = make_business()
        user = make_user()
        admin = make_user(name="Root", role=UserRole.ADMIN)

        assert client.post("/api/users/ban", json={"user_id": owner.id}, headers=auth_headers(user)).status_code == 403
        response = client.post("/api/users/ban", json={"user_id": owner.id}, headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "banned"
        assert client.get("/api/destinations").json()["data"] == []

        owner_headers = auth_headers(owner)
        assert client.get("/api/me", headers=owner_headers).status_code == 403


class TestAiRoutes:
    def test_recommendations(self, client, make_user, make_business, auth_headers, text_generator):
        user = make_user()
        owner = make_business(category="Restaurant")
        client.post("/api/activity/save", json={"business_user_id": owner.id}, headers=auth_headers(user))
        text_generator.respond_text = "Restaurant"

        response = client.get(f"/api/recommend-destinations/{user.id}")

        assert response.status_code == 200
        assert response.json()["data"]["categories"] == ["Restaurant"]

    def test_recommendations_without_history(self, client, make_user):
        assert client.get(f"/api/recommend-destinations/{make_user().id}").status_code == 404

    def test_chatbot(self, client, make_user, text_generator):
        user = make_user()
        text_generator.respond_text = "Hello traveller!"

        response = client.post(f"/api/{user.id}/chatbot", json={"message": "hi"})

        assert response.status_code == 200
        assert response.json()["data"]["response"] == "Hello traveller!"
