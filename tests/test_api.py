"""Test API / API tests."""

from conftest import PHOTO, auth

API = "/api/v1"


async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "running"


async def test_register_login_me(client):
    resp = await client.post(f"{API}/auth/register", json={
        "username": "giulia", "email": "giulia@example.com", "password": "supersecret", "fullName": "Giulia",
    })
    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["role"] == "user"

    resp = await client.post(f"{API}/auth/login", json={"username": "giulia", "password": "supersecret"})
    assert resp.status_code == 200
    token = resp.json()["data"]["accessToken"]

    resp = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.json()["data"]["user"]["fullName"] == "Giulia"


async def test_login_wrong_password(client, user):
    resp = await client.post(f"{API}/auth/login", json={"username": "mario", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {
        "success": False,
        "error": {"message": "Invalid credentials", "code": "UnauthorizedError", "statusCode": 401},
    }


async def test_missing_token_uses_envelope(client):
    resp = await client.get(f"{API}/deposits/active")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UnauthorizedError"


async def test_list_and_inspect_lockers(client, locker):
    resp = await client.get(f"{API}/lockers")
    lockers = resp.json()["data"]["lockers"]
    assert [item["lockerId"] for item in lockers] == ["LCK-001"]
    assert lockers[0]["availability"] == {"totalCells": 8, "availableCells": 8, "availabilityPercentage": 100.0}

    resp = await client.get(f"{API}/lockers/LCK-001/cells", params={"type": "borrow"})
    cells = resp.json()["data"]["cells"]
    assert [c["cellId"] for c in cells] == ["CEL-001-4", "CEL-001-5", "CEL-001-6"]
    assert cells[0]["label"] == "Cella 4"

    resp = await client.get(f"{API}/lockers/LCK-001/cells/stats")
    assert resp.json()["data"]["byType"]["deposit"] == {"total": 3, "available": 3}

    resp = await client.get(f"{API}/lockers/LCK-404")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NotFoundError"


async def test_nearby_lockers(client, locker):
    resp = await client.get(f"{API}/lockers/nearby", params={"lat": 45.4650, "lng": 9.1890, "radius": 1000})
    data = resp.json()["data"]
    assert data["total"] == 1
    assert data["lockers"][0]["distanceM"] < 1000
    assert data["lockers"][0]["distanceKm"] < 1

    resp = await client.get(f"{API}/lockers/nearby", params={"lat": 41.9, "lng": 12.5, "radius": 1000})
    assert resp.json()["data"]["total"] == 0

    resp = await client.get(f"{API}/lockers/nearby", params={"lat": 95, "lng": 9.1})
    assert resp.status_code == 400


async def test_deposit_lifecycle(client, user, locker):
    headers = auth(user)

    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001", "duration": "2h"}, headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    deposit = data["deposit"]
    assert deposit["cost"] == 2.0
    assert deposit["endTime"] is None
    assert deposit["state"] == "active"
    assert data["qrCodeImage"].startswith("data:image/png;base64,")
    rental_id = deposit["rentalId"]

    resp = await client.get(f"{API}/deposits/active", headers=headers)
    assert resp.json()["data"]["total"] == 1
    assert 0 < resp.json()["data"]["deposits"][0]["remainingTime"] <= 2 * 3600 * 1000

    resp = await client.put(f"{API}/deposits/{rental_id}/extend", json={"duration": "1h"}, headers=headers)
    assert resp.json()["data"]["deposit"]["cost"] == 3.0
    assert resp.json()["data"]["additionalCost"] == 1.0

    resp = await client.post(
        f"{API}/cells/open", json={"cellId": deposit["cellId"], "qrCode": "forged"}, headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid QR code"

    resp = await client.post(
        f"{API}/cells/open", json={"cellId": deposit["cellId"], "qrCode": deposit["qrPayload"]}, headers=headers,
    )
    assert resp.status_code == 200

    resp = await client.post(f"{API}/cells/close", json={"cellId": deposit["cellId"], "doorClosed": "yes"}, headers=headers)
    assert resp.status_code == 400
    resp = await client.post(f"{API}/cells/close", json={"cellId": deposit["cellId"], "doorClosed": True}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["rental"]["state"] == "active"

    resp = await client.put(f"{API}/deposits/{rental_id}/end", headers=headers)
    assert resp.status_code == 200
    ended = resp.json()["data"]
    assert ended["finalCost"] == 1.0
    assert ended["deposit"]["endTime"] is not None

    resp = await client.put(f"{API}/deposits/{rental_id}/end", headers=headers)
    assert resp.status_code == 400
    assert "not active" in resp.json()["error"]["message"]

    resp = await client.post(f"{API}/deposits/payments", json={"rentalId": rental_id, "amount": 0.5}, headers=headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/deposits/payments", json={"rentalId": rental_id}, headers=headers)
    assert resp.status_code == 200
    payment = resp.json()["data"]
    assert payment["status"] == "success"
    assert payment["amount"] == 1.0
    assert payment["paymentId"].startswith("PAY-")


async def test_deposit_invalid_duration(client, user, locker):
    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001", "duration": "45d"}, headers=auth(user))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ValidationError"


async def test_foreign_deposit_is_unauthorized(client, user, other_user, locker):
    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=auth(user))
    rental_id = resp.json()["data"]["deposit"]["rentalId"]

    resp = await client.put(f"{API}/deposits/{rental_id}/end", headers=auth(other_user))
    assert resp.status_code == 401
    resp = await client.post(f"{API}/deposits/payments", json={"rentalId": rental_id}, headers=auth(other_user))
    assert resp.status_code == 401


async def test_borrow_lifecycle(client, user, locker):
    headers = auth(user)

    resp = await client.post(f"{API}/borrows", json={"lockerId": "LCK-001", "duration": "31d"}, headers=headers)
    assert resp.status_code == 400
    assert "1 and 30 days" in resp.json()["error"]["message"]

    resp = await client.get(f"{API}/borrows/available", params={"lockerId": "LCK-001"})
    assert resp.json()["data"]["total"] == 3

    resp = await client.post(
        f"{API}/borrows",
        json={"lockerId": "LCK-001", "duration": "10d", "cellId": "CEL-001-6", "itemType": "racchetta"},
        headers=headers,
    )
    assert resp.status_code == 201
    borrow = resp.json()["data"]["borrow"]
    assert borrow["cost"] == 0
    assert borrow["itemType"] == "racchetta"

    resp = await client.post(f"{API}/borrows/{borrow['rentalId']}/return", headers=headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/borrows/{borrow['rentalId']}/return", json={"photo": PHOTO}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["borrow"]["state"] == "ended"
    assert resp.json()["data"]["borrow"]["cost"] == 0


async def test_generic_cell_request_and_return(client, user, locker):
    headers = auth(user)

    resp = await client.post(f"{API}/cells/request", json={"lockerId": "LCK-001", "type": "donation"}, headers=headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/cells/request", json={"lockerId": "LCK-001", "type": "deposited"}, headers=headers)
    assert resp.status_code == 201
    deposit = resp.json()["data"]["rental"]
    assert deposit["type"] == "deposit"

    # I depositi si chiudono da /deposits/{id}/end / Deposits end through /deposits/{id}/end
    resp = await client.post(f"{API}/cells/return", json={"rentalId": deposit["rentalId"]}, headers=headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/cells/request", json={"lockerId": "LCK-001", "type": "pickup"}, headers=headers)
    pickup = resp.json()["data"]["rental"]
    assert pickup["cost"] == 0

    resp = await client.post(f"{API}/cells/return", json={"cellId": pickup["cellId"]}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["rental"]["state"] == "ended"

    resp = await client.get(f"{API}/cells/active", headers=headers)
    assert [r["rentalId"] for r in resp.json()["data"]["rentals"]] == [deposit["rentalId"]]


async def test_history_pagination(client, user, locker):
    headers = auth(user)
    for _ in range(3):
        await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=headers)

    resp = await client.get(f"{API}/cells/history", params={"page": 2, "limit": 2}, headers=headers)
    data = resp.json()["data"]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(data["rentals"]) == 1

    resp = await client.get(f"{API}/cells/history", params={"limit": 101}, headers=headers)
    assert resp.status_code == 400
    resp = await client.get(f"{API}/cells/history", params={"type": "donation"}, headers=headers)
    assert resp.status_code == 400
    resp = await client.get(
        f"{API}/cells/history",
        params={"fromDate": "2026-02-01T00:00:00", "toDate": "2026-01-01T00:00:00"},
        headers=headers,
    )
    assert resp.status_code == 400


async def test_notifications_listing_and_read(client, user, locker):
    headers = auth(user)
    await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=headers)

    resp = await client.get(f"{API}/notifications", headers=headers)
    notes = resp.json()["data"]["notifications"]
    assert notes[0]["title"] == "Cella prenotata"
    assert notes[0]["kind"] == "cell_access"
    assert notes[0]["isRead"] is False

    resp = await client.put(f"{API}/notifications/{notes[0]['id']}/read", headers=headers)
    assert resp.json()["data"]["notification"]["isRead"] is True

    resp = await client.get(f"{API}/notifications", params={"unread": True}, headers=headers)
    assert resp.json()["data"]["total"] == 0


async def test_payment_with_non_finite_amount_is_rejected(client, user, locker):
    headers = auth(user)
    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=headers)
    rental_id = resp.json()["data"]["deposit"]["rentalId"]

    for raw in ("NaN", "Infinity"):
        resp = await client.post(
            f"{API}/deposits/payments",
            content=f'{{"rentalId": "{rental_id}", "amount": {raw}}}',
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "ValidationError"
