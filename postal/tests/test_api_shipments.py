"""
Integration tests for the shipment, shipping method and dashboard routes.
"""

import pytest

from postal.tests.helpers import bearer, sign_up


async def create(client, headers, method_id, **extra):
    payload = {"to_address": "9 Elm St", "weight": 2.5, "method_id": method_id, **extra}
    response = await client.post("/v1/shipments", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ---------- Shipments ----------

@pytest.mark.asyncio
async def test_user_ships_as_themselves(client, user_auth, admin_auth, methods):
    data, headers = user_auth
    admin_data, _ = admin_auth
    standard, _ = methods

    shipment = await create(client, headers, standard.id, sender_id=admin_data["user_id"])

    assert shipment["sender_id"] == data["user_id"]
    assert shipment["status"] == "pending"
    assert shipment["status_label"] == "Pending"


@pytest.mark.asyncio
async def test_admin_may_ship_for_someone_else(client, user_auth, admin_auth, methods):
    data, _ = user_auth
    _, admin_headers = admin_auth
    standard, _ = methods

    shipment = await create(client, admin_headers, standard.id, sender_id=data["user_id"])
    assert shipment["sender_id"] == data["user_id"]


@pytest.mark.asyncio
async def test_create_rejects_zero_weight(client, user_auth, methods):
    _, headers = user_auth
    standard, _ = methods
    response = await client.post(
        "/v1/shipments", json={"to_address": "9 Elm St", "weight": 0, "method_id": standard.id}, headers=headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_my_shipments_are_joined_and_newest_first(client, user_auth, methods):
    _, headers = user_auth
    standard, express = methods
    first = await create(client, headers, standard.id)
    second = await create(client, headers, express.id)

    response = await client.get("/v1/shipments/mine", headers=headers)
    rows = response.json()

    assert [r["id"] for r in rows] == [second["id"], first["id"]]
    assert rows[0]["method"] == {"name": "Express", "cost": 12.5}
    assert rows[0]["sender"]["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_listing_other_users_shipments_needs_admin(client, user_auth, admin_auth):
    _, headers = user_auth
    admin_data, admin_headers = admin_auth

    denied = await client.get(f"/v1/shipments/user/{admin_data['user_id']}", headers=headers)
    allowed = await client.get(f"/v1/shipments/user/{admin_data['user_id']}", headers=admin_headers)

    assert denied.status_code == 403
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_admin_status_update_and_filter(client, user_auth, admin_auth, methods, feed):
    data, headers = user_auth
    _, admin_headers = admin_auth
    standard, _ = methods
    shipment = await create(client, headers, standard.id)
    await create(client, headers, standard.id)
    subscription = feed.subscribe("shipments", sender_id=data["user_id"])

    response = await client.patch(
        f"/v1/shipments/{shipment['id']}/status", json={"status": "in_transit"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status_label"] == "In Transit"

    change = subscription.queue.get_nowait()
    assert change.row["id"] == shipment["id"]
    assert change.row["status"] == "in_transit"

    in_transit = await client.get("/v1/shipments", params={"status": "in_transit"}, headers=admin_headers)
    assert [r["id"] for r in in_transit.json()] == [shipment["id"]]
    everything = await client.get("/v1/shipments", headers=admin_headers)
    assert len(everything.json()) == 2


@pytest.mark.asyncio
async def test_status_update_rejects_unknown_status(client, user_auth, admin_auth, methods):
    _, headers = user_auth
    _, admin_headers = admin_auth
    standard, _ = methods
    shipment = await create(client, headers, standard.id)

    response = await client.patch(
        f"/v1/shipments/{shipment['id']}/status", json={"status": "lost"}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_regular_user_cannot_set_status(client, user_auth, methods):
    _, headers = user_auth
    standard, _ = methods
    shipment = await create(client, headers, standard.id)

    response = await client.patch(
        f"/v1/shipments/{shipment['id']}/status", json={"status": "delivered"}, headers=headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_own_shipment_only(client, user_auth, methods):
    _, headers = user_auth
    standard, _ = methods
    mine = await create(client, headers, standard.id)

    other = await sign_up(client, "mallory@example.com")
    other_headers = bearer(other["access_token"])

    denied = await client.patch(f"/v1/shipments/{mine['id']}/cancel", headers=other_headers)
    assert denied.status_code == 403

    response = await client.patch(f"/v1/shipments/{mine['id']}/cancel", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_tracking_is_open_to_any_session(client, user_auth, methods):
    _, headers = user_auth
    standard, _ = methods
    mine = await create(client, headers, standard.id)

    other = await sign_up(client, "mallory@example.com")
    found = await client.get(f"/v1/shipments/{mine['id']}", headers=bearer(other["access_token"]))
    missing = await client.get("/v1/shipments/99999", headers=headers)

    assert found.status_code == 200
    assert found.json()["to_address"] == "9 Elm St"
    assert missing.status_code == 404
    assert missing.json()["message"] == "Shipment not found"


# ---------- Shipping methods ----------

@pytest.mark.asyncio
async def test_method_catalogue_is_admin_managed(client, user_auth, admin_auth):
    _, headers = user_auth
    _, admin_headers = admin_auth

    denied = await client.post("/v1/methods", json={"name": "Drone", "cost": 30}, headers=headers)
    assert denied.status_code == 403

    created = await client.post("/v1/methods", json={"name": "Drone", "cost": 30}, headers=admin_headers)
    assert created.status_code == 201
    method_id = created.json()["id"]

    renamed = await client.patch(f"/v1/methods/{method_id}", json={"name": "Air"}, headers=admin_headers)
    assert renamed.json()["name"] == "Air"
    assert renamed.json()["cost"] == 30

    listed = await client.get("/v1/methods", headers=headers)
    assert [m["name"] for m in listed.json()] == ["Air"]


@pytest.mark.asyncio
async def test_method_cost_range(client, user_auth, methods):
    _, headers = user_auth

    response = await client.get("/v1/methods/cost-range", params={"min_cost": 0, "max_cost": 5}, headers=headers)
    assert [m["name"] for m in response.json()] == ["Standard"]

    inverted = await client.get("/v1/methods/cost-range", params={"min_cost": 10, "max_cost": 5}, headers=headers)
    assert inverted.status_code == 422


@pytest.mark.asyncio
async def test_deleting_method_orphans_shipments(client, user_auth, admin_auth, methods):
    _, headers = user_auth
    _, admin_headers = admin_auth
    standard, _ = methods
    shipment = await create(client, headers, standard.id)

    response = await client.delete(f"/v1/methods/{standard.id}", headers=admin_headers)
    assert response.status_code == 204

    rows = (await client.get("/v1/shipments/mine", headers=headers)).json()
    assert rows[0]["id"] == shipment["id"]
    assert rows[0]["method_id"] is None
    assert rows[0]["method"] is None


# ---------- Users ----------

@pytest.mark.asyncio
async def test_admin_user_management(client, user_auth, admin_auth):
    data, _ = user_auth
    _, admin_headers = admin_auth

    admins = await client.get("/v1/users", params={"priv": True}, headers=admin_headers)
    assert [u["email"] for u in admins.json()] == ["root@example.com"]

    promoted = await client.patch(f"/v1/users/{data['user_id']}", json={"priv": True}, headers=admin_headers)
    assert promoted.json()["priv"] is True

    login = await client.post("/v1/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert login.json()["redirect"] == "/admin"


# ---------- Dashboards ----------

@pytest.mark.asyncio
async def test_admin_dashboard_snapshot(client, user_auth, admin_auth, methods):
    _, headers = user_auth
    _, admin_headers = admin_auth
    standard, express = methods
    await create(client, headers, standard.id)
    await create(client, headers, express.id)

    response = await client.get(
        "/v1/admin/dashboard", params={"tab": "shipments", "search": "ALICE"}, headers=admin_headers
    )
    view = response.json()

    assert response.status_code == 200
    assert view["state"] == "ready"
    assert view["active_tab"] == "shipments"
    assert view["stats"]["total_shipments"] == 2
    assert view["stats"]["total_users"] == 2
    assert view["stats"]["total_revenue"] == pytest.approx(17.5)
    assert len(view["shipments"]) == 2


@pytest.mark.asyncio
async def test_admin_dashboard_create_validation(client, user_auth, admin_auth, methods):
    data, _ = user_auth
    _, admin_headers = admin_auth
    standard, _ = methods

    rejected = await client.post(
        "/v1/admin/dashboard/shipments",
        json={"sender_id": data["user_id"], "to_address": "9 Elm St", "weight": 0, "method_id": standard.id},
        headers=admin_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["state"] == "error"
    assert rejected.json()["error"] == "Please enter a valid weight"
    assert rejected.json()["stats"]["total_shipments"] == 0

    accepted = await client.post(
        "/v1/admin/dashboard/shipments",
        json={"sender_id": data["user_id"], "to_address": "9 Elm St", "weight": 5.5, "method_id": standard.id},
        headers=admin_headers,
    )
    view = accepted.json()
    assert view["state"] == "ready"
    assert view["shipments"][0]["weight"] == 5.5
    assert view["shipments"][0]["status"] == "pending"


@pytest.mark.asyncio
async def test_user_dashboard_cancel_needs_confirmation(client, user_auth, methods):
    _, headers = user_auth
    standard, _ = methods
    shipment = await create(client, headers, standard.id)
    url = f"/v1/user/dashboard/shipments/{shipment['id']}/cancel"

    staged = (await client.post(url, headers=headers)).json()
    assert staged["pending_cancel"]["id"] == shipment["id"]
    assert staged["shipments"][0]["status"] == "pending"

    confirmed = (await client.post(url, params={"confirm": True}, headers=headers)).json()
    assert confirmed["notifications"] == [f"Shipment #{shipment['id']} has been cancelled"]
    # The active tab no longer lists it
    assert confirmed["shipments"] == []

    cancelled_tab = (await client.get("/v1/user/dashboard", params={"tab": "canceled"}, headers=headers)).json()
    assert [r["id"] for r in cancelled_tab["shipments"]] == [shipment["id"]]


@pytest.mark.asyncio
async def test_user_dashboard_track_miss(client, user_auth):
    _, headers = user_auth
    response = await client.get("/v1/user/dashboard/track/31337", headers=headers)

    assert response.status_code == 200
    assert response.json()["error"] == "Shipment not found"


@pytest.mark.asyncio
async def test_user_settings_password_mismatch(client, user_auth):
    _, headers = user_auth
    response = await client.patch(
        "/v1/user/settings/password",
        json={"new_password": "abcdef1", "confirm_password": "abcdef2"},
        headers=headers,
    )
    assert response.json()["error"] == "New passwords don't match"


@pytest.mark.asyncio
async def test_admin_settings_add_method(client, admin_auth):
    _, admin_headers = admin_auth

    missing = await client.post("/v1/admin/settings/methods", json={"name": "Drone"}, headers=admin_headers)
    assert missing.json()["error"] == "Please fill in all required fields for the new shipping method."

    added = await client.post("/v1/admin/settings/methods", json={"name": "Drone", "cost": 30}, headers=admin_headers)
    assert [m["name"] for m in added.json()["methods"]] == ["Drone"]


@pytest.mark.asyncio
async def test_profile_email_of_deleted_user_stays_reserved(client, user_auth, admin_auth):
    data, headers = user_auth
    _, admin_headers = admin_auth
    gone = await sign_up(client, "gone@example.com", password="gonepass1")
    await client.delete(f"/v1/users/{gone['user_id']}", headers=admin_headers)

    response = await client.patch("/v1/user/settings/profile", json={"email": "gone@example.com"}, headers=headers)
    assert response.json()["error"] == "Email already registered"
    assert response.json()["access_token"] is None

    me = await client.get("/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "alice@example.com"

    old_login = await client.post("/v1/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert old_login.json()["user_id"] == data["user_id"]
    gone_login = await client.post("/v1/auth/login", json={"email": "gone@example.com", "password": "gonepass1"})
    assert gone_login.status_code == 404


@pytest.mark.asyncio
async def test_dashboard_method_edits_reject_bad_values(client, admin_auth, methods):
    _, admin_headers = admin_auth
    standard, _ = methods

    negative = await client.patch(f"/v1/admin/dashboard/methods/{standard.id}", json={"cost": -50}, headers=admin_headers)
    assert negative.json()["error"] == "Shipping cost cannot be negative"

    blank = await client.patch(
        f"/v1/admin/settings/methods/{standard.id}", json={"cost": -7, "name": ""}, headers=admin_headers
    )
    assert blank.json()["error"] == "Shipping method name cannot be empty"
    assert [(m["name"], m["cost"]) for m in blank.json()["methods"]] == [("Express", 12.5), ("Standard", 5.0)]
