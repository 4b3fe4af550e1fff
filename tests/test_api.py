import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from main import create_app
from liz.core.database import get_db
from liz.core.security import create_access_token
from factories import book, insert_appointment, seed_marketplace


def _auth(user) -> dict[str, str]:
    token = create_access_token(user.user_id, user.user_type.value)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def api_client(db_session):
    app = create_app()

    async def override_db():
        yield db_session

    app.dependency_overrides[get_db] = override_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.mark.asyncio
async def test_booking_to_review_over_http(api_client, db_session):
    client: AsyncClient = api_client
    market = await seed_marketplace(db_session)
    professional_id = market.professional.user_id
    customer = _auth(market.client)
    pro = _auth(market.professional)

    created = await client.post(
        "/api/v1/appointments",
        json={
            "professional_id": professional_id,
            "subcategory_id": market.subcategory.subcategory_id,
            "address_id": market.address.address_id,
            "scheduled_date": "2024-09-20",
            "scheduled_time": "08:00",
        },
        headers=customer,
    )
    assert created.status_code == 201, created.text
    appointment = created.json()
    appointment_id = appointment["id"]
    assert appointment["status"] == "pending"
    assert appointment["price"] == "150.00"
    assert appointment["order_number"].startswith("LIZ")

    denied = await client.patch(f"/api/v1/appointments/{appointment_id}/confirm", headers=customer)
    assert denied.status_code == 403
    assert denied.json() == {"success": False, "message": "Only the professional can confirm", "code": "forbidden"}

    confirmed = await client.patch(f"/api/v1/appointments/{appointment_id}/confirm", headers=pro)
    assert confirmed.status_code == 200
    assert confirmed.json()["confirmed_at"] is not None

    again = await client.patch(f"/api/v1/appointments/{appointment_id}/confirm", headers=pro)
    assert again.status_code == 400
    assert again.json()["code"] == "invalid_state"

    for step, expected in (("on-way", "on_way"), ("start", "in_progress"), ("complete", "completed")):
        response = await client.patch(f"/api/v1/appointments/{appointment_id}/{step}", headers=pro)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == expected

    detail = await client.get(f"/api/v1/appointments/{appointment_id}", headers=customer)
    assert detail.status_code == 200
    assert detail.json()["allowed_actions"] == []

    review = await client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment_id, "rating": 5, "comment": "Impecavel"},
        headers=customer,
    )
    assert review.status_code == 201, review.text
    body = review.json()
    assert body["role_to"] == "professional"
    assert body["to_user_id"] == professional_id

    duplicate = await client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment_id, "rating": 4},
        headers=customer,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "You already reviewed this appointment"

    status = await client.get(f"/api/v1/reviews/appointment/{appointment_id}", headers=customer)
    assert status.json()["reviewed"] is True
    assert status.json()["review"]["id"] == body["id"]

    stats = await client.get(f"/api/v1/reviews/user/{professional_id}/stats", headers=pro)
    assert stats.status_code == 200
    assert stats.json()["total_reviews"] == 1
    assert stats.json()["rating_distribution"]["5"] == 1

    listing = await client.get(f"/api/v1/reviews/professional/{professional_id}", headers=pro)
    assert listing.json()["meta"] == {"total": 1, "page": 1, "limit": 10, "total_pages": 1}

    removal = await client.delete(f"/api/v1/reviews/{body['id']}", headers=pro)
    assert removal.status_code == 403


@pytest.mark.asyncio
async def test_reject_and_cancel_accept_optional_reason(api_client, db_session):
    client: AsyncClient = api_client
    market = await seed_marketplace(db_session)
    first = await book(db_session, market)
    second = await book(db_session, market)

    rejected = await client.patch(
        f"/api/v1/appointments/{first.appointment_id}/reject",
        json={"reason": "Sem agenda"},
        headers=_auth(market.professional),
    )
    assert rejected.status_code == 200
    assert rejected.json()["notes"] == "Rejected: Sem agenda"

    cancelled = await client.patch(f"/api/v1/appointments/{second.appointment_id}/cancel", headers=_auth(market.client))
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancellation_reason"] is None

    listing = await client.get("/api/v1/appointments", params={"status": "cancelled"}, headers=_auth(market.client))
    assert listing.json()["meta"]["total"] == 1
    assert listing.json()["data"][0]["id"] == second.appointment_id


@pytest.mark.asyncio
async def test_error_envelopes(api_client, db_session):
    client: AsyncClient = api_client
    assert (await client.get("/health")).json() == {"status": "ok"}
    market = await seed_marketplace(db_session)

    missing = await client.patch("/api/v1/appointments/01HZZZZZZZZZZZZZZZZZZZZZZZ/start", headers=_auth(market.professional))
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Appointment not found", "code": "not_found"}

    unauthenticated = await client.get("/api/v1/appointments")
    assert unauthenticated.status_code == 401

    done = await insert_appointment(db_session, market)
    out_of_range = await client.post(
        "/api/v1/reviews",
        json={"appointment_id": done.appointment_id, "rating": 0},
        headers=_auth(market.client),
    )
    assert out_of_range.status_code == 422


@pytest.mark.asyncio
async def test_rating_recalculation_requires_admin(api_client, db_session):
    client: AsyncClient = api_client
    market = await seed_marketplace(db_session)

    forbidden = await client.post("/api/v1/admin/reviews/recalculate", headers=_auth(market.client))
    assert forbidden.status_code == 403

    response = await client.post("/api/v1/admin/reviews/recalculate", headers=_auth(market.admin))
    assert response.status_code == 200
    assert response.json() == {"users_recomputed": 4}


@pytest.mark.asyncio
async def test_current_user_profile_carries_client_rating(api_client, db_session):
    client: AsyncClient = api_client
    market = await seed_marketplace(db_session)

    response = await client.get("/api/v1/users/me", headers=_auth(market.client))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == market.client.user_id
    assert body["email"] == market.client.email
    assert body["client_review_count"] == 0
    assert float(body["client_rating_avg"]) == 0


@pytest.mark.asyncio
async def test_address_book_and_catalog(api_client, db_session):
    client: AsyncClient = api_client
    market = await seed_marketplace(db_session)
    headers = _auth(market.client)
    subcategory_id = market.subcategory.subcategory_id
    professional_id = market.professional.user_id

    created = await client.post(
        "/api/v1/users/addresses",
        json={
            "label": "Trabalho",
            "street": "Av. Paulista",
            "number": "1000",
            "neighborhood": "Bela Vista",
            "city": "Sao Paulo",
            "state": "SP",
            "zipCode": "01310-100",
            "is_default": True,
        },
        headers=headers,
    )
    assert created.status_code == 201, created.text
    office = created.json()
    assert office["zip_code"] == "01310-100"

    addresses = (await client.get("/api/v1/users/addresses", headers=headers)).json()
    assert [item["id"] for item in addresses] == [office["id"], market.address.address_id]
    assert [item["is_default"] for item in addresses] == [True, False]

    removed = await client.delete(f"/api/v1/users/addresses/{office['id']}", headers=headers)
    assert removed.status_code == 204

    await book(db_session, market)
    in_use = await client.delete(f"/api/v1/users/addresses/{market.address.address_id}", headers=headers)
    assert in_use.status_code == 409

    categories = (await client.get("/api/v1/catalog/categories")).json()
    assert [sub["id"] for sub in categories[0]["subcategories"]] == [subcategory_id]

    services = (await client.get(f"/api/v1/catalog/professionals/{professional_id}/services")).json()
    assert services[0]["price"] == "150.00"
    assert services[0]["subcategory"]["name"] == "Faxina completa"
