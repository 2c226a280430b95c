"""Test amministrazione / Administration tests."""

from sqlalchemy import select

from null_backend.models.notification import Notification, NotificationKind

from conftest import auth

API = "/api/v1"


async def test_admin_requires_operator(client, user):
    resp = await client.get(f"{API}/admin/lockers", headers=auth(user))
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "operator or admin role required"


async def test_create_locker_with_cells(client, operator):
    resp = await client.post(f"{API}/admin/lockers", headers=auth(operator), json={
        "name": "Stazione Centrale",
        "latitude": 45.4852,
        "longitude": 9.2047,
        "category": "sportivi",
        "cells": [{"type": "deposit", "size": "large", "count": 2}, {"type": "borrow"}],
    })
    assert resp.status_code == 201
    locker = resp.json()["data"]["locker"]
    assert locker["lockerId"] == "LCK-001"
    assert locker["availability"]["totalCells"] == 3

    resp = await client.post(
        f"{API}/admin/lockers/LCK-001/cells", headers=auth(operator),
        json={"type": "pickup", "size": "extra-large", "photoRequired": True},
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["cells"][0]["cellId"] == "CEL-001-4"

    resp = await client.get(f"{API}/admin/audit", headers=auth(operator))
    actions = [item["action"] for item in resp.json()["data"]["items"]]
    assert actions == ["ADD_CELLS", "CREATE"]


async def test_offline_locker_refuses_sessions(client, operator, user, locker):
    resp = await client.put(f"{API}/admin/lockers/LCK-001/status", json={"status": "offline"}, headers=auth(operator))
    assert resp.json()["data"]["locker"]["online"] is False

    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=auth(user))
    assert resp.status_code == 404

    resp = await client.put(f"{API}/admin/lockers/LCK-001/status", json={"status": "sideways"}, headers=auth(operator))
    assert resp.status_code == 400


async def test_maintenance_notifies_active_users_and_restore(client, db, operator, user, locker):
    await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=auth(user))

    resp = await client.put(
        f"{API}/admin/lockers/LCK-001/maintenance",
        json={"inMaintenance": True, "reason": "Sostituzione serratura", "expectedEnd": "2026-12-01T10:00:00Z"},
        headers=auth(operator),
    )
    data = resp.json()["data"]
    assert data["locker"]["state"] == "maintenance"
    assert data["notifiedUsers"] == 1

    closures = (await db.execute(
        select(Notification).where(Notification.kind == NotificationKind.TEMPORARY_CLOSURE)
    )).scalars().all()
    assert [n.user_id for n in closures] == [user.id]

    resp = await client.post(f"{API}/deposits", json={"lockerId": "LCK-001"}, headers=auth(user))
    assert resp.status_code == 404

    resp = await client.put(f"{API}/admin/lockers/LCK-001/restore", headers=auth(operator))
    restored = resp.json()["data"]["locker"]
    assert restored["state"] == "active"
    assert restored["online"] is True
    assert restored["inMaintenance"] is False
    assert restored["maintenanceReason"] is None


async def test_maintenance_off_returns_to_active(client, operator, locker):
    await client.put(f"{API}/admin/lockers/LCK-001/maintenance", json={"inMaintenance": True}, headers=auth(operator))
    resp = await client.put(f"{API}/admin/lockers/LCK-001/maintenance", json={"inMaintenance": False}, headers=auth(operator))
    assert resp.json()["data"]["locker"]["state"] == "active"


async def test_commercial_assignment(client, operator, other_user, locker):
    headers = auth(operator)
    body = {"cellId": "CEL-001-8", "lockerId": "LCK-001", "shopId": other_user.id}

    resp = await client.post(f"{API}/admin/commercial-cells/assign", json=body, headers=headers)
    assert resp.status_code == 200
    cell = resp.json()["data"]["cell"]
    assert cell["shopId"] == other_user.id
    assert cell["assignedFrom"] is not None

    resp = await client.post(f"{API}/admin/commercial-cells/assign", json=body, headers=headers)
    assert resp.status_code == 400

    resp = await client.post(
        f"{API}/admin/commercial-cells/assign", json={**body, "cellId": "CEL-001-1"}, headers=headers,
    )
    assert resp.status_code == 400

    resp = await client.post(f"{API}/admin/commercial-cells/assign", json={**body, "shopId": 999}, headers=headers)
    assert resp.status_code == 404

    resp = await client.get(f"{API}/admin/commercial-cells", params={"assigned": True}, headers=headers)
    assert [c["cellId"] for c in resp.json()["data"]["cells"]] == ["CEL-001-8"]

    resp = await client.put(f"{API}/admin/commercial-cells/CEL-001-8", json={"shopId": None}, headers=headers)
    assert resp.json()["data"]["cell"]["shopId"] is None

    resp = await client.get(f"{API}/admin/commercial-cells", params={"assigned": False}, headers=headers)
    assert [c["cellId"] for c in resp.json()["data"]["cells"]] == ["CEL-001-7", "CEL-001-8"]


async def test_rental_export(client, operator, user, locker):
    await client.post(f"{API}/deposits", json={"lockerId": "LCK-001", "duration": "3h"}, headers=auth(user))

    resp = await client.get(f"{API}/admin/rentals/export", params={"format": "csv"}, headers=auth(operator))
    assert resp.status_code == 200
    text = resp.content.decode("utf-8-sig")
    header, row = text.strip().splitlines()
    assert header.startswith("rental_code;rental_type;state")
    assert row.startswith("NOL-001;deposit;active")

    resp = await client.get(f"{API}/admin/rentals/export", params={"format": "xlsx"}, headers=auth(operator))
    assert resp.content[:2] == b"PK"

    resp = await client.get(f"{API}/admin/rentals/export", params={"format": "pdf"}, headers=auth(operator))
    assert resp.status_code == 400
