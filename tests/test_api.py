"""
API endpoint tests. Starlette is an ASGI app, so requests go through
httpx.AsyncClient with an ASGITransport; nothing is served over a socket.
"""
import pytest
from httpx import AsyncClient, ASGITransport

import notifications
from db import get_session
from factories import make_user, make_ride, auth_header
from models import Ride


async def _async_client():
    from main import app
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


RIDE_BODY = {
    "from": {"type": "Point", "coordinates": [78.47, 17.40], "address": "Main Gate"},
    "to": {"type": "Point", "coordinates": [78.50, 17.45], "address": "Tech Park"},
    "departureTime": "2031-05-01T08:00:00Z",
    "availableSeats": 2,
}


# ────────────────────────── auth / meta ─────────────────────────────────────

@pytest.mark.asyncio
async def test_root_is_public():
    async with await _async_client() as client:
        resp = await client.get("/")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_schema_exposes_contract():
    async with await _async_client() as client:
        resp = await client.get("/schema")
    assert resp.status_code == 200
    body = resp.json()
    assert {"ride", "ride_in", "notification", "search"} <= set(body)
    assert "availableSeats" in body["ride_in"]["properties"]


@pytest.mark.asyncio
async def test_missing_token_is_401():
    async with await _async_client() as client:
        resp = await client.get("/rides")
    assert resp.status_code == 401
    assert resp.json() == {"msg": "No token, authorization denied"}


@pytest.mark.asyncio
async def test_unknown_token_is_401():
    async with await _async_client() as client:
        resp = await client.get("/rides", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


# ────────────────────────── rides ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_and_fetch_ride():
    creator = make_user("Creator")
    async with await _async_client() as client:
        resp = await client.post("/rides", json=RIDE_BODY, headers=auth_header(creator))
        assert resp.status_code == 200
        ride = resp.json()
        assert ride["status"] == "active"
        assert ride["availableSeats"] == 2
        assert ride["from"] == {"type": "Point", "coordinates": [78.47, 17.40], "address": "Main Gate"}
        assert ride["departureTime"] == "2031-05-01T08:00:00Z"
        assert ride["createdAt"].endswith("Z")
        assert ride["creator"]["name"] == "Creator"
        assert ride["creator"]["email"] == "creator@college.edu"
        assert ride["participants"] == []

        other = make_user("Other")
        got = await client.get(f"/rides/{ride['id']}", headers=auth_header(other))
    assert got.status_code == 200
    assert got.json()["id"] == ride["id"]


@pytest.mark.asyncio
async def test_create_ride_validation_error():
    creator = make_user("Creator")
    body = dict(RIDE_BODY, availableSeats=0)
    async with await _async_client() as client:
        resp = await client.post("/rides", json=body, headers=auth_header(creator))
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Validation Error"
    assert resp.json()["error"] is True
    assert "availableSeats" in resp.json()["details"]


@pytest.mark.asyncio
async def test_create_ride_malformed_json():
    creator = make_user("Creator")
    headers = dict(auth_header(creator), **{"Content-Type": "application/json"})
    async with await _async_client() as client:
        resp = await client.post("/rides", content=b"{not json", headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_get_ride_not_found():
    u = make_user("U")
    async with await _async_client() as client:
        resp = await client.get("/rides/99999", headers=auth_header(u))
    assert resp.status_code == 404
    assert resp.json() == {"msg": "Ride not found"}


@pytest.mark.asyncio
async def test_browse_and_created_lists():
    a = make_user("A")
    b = make_user("B")
    mine = make_ride(a.id)
    theirs = make_ride(b.id)
    make_ride(b.id, seats=0, status="full")
    async with await _async_client() as client:
        browse = await client.get("/rides", headers=auth_header(a))
        created = await client.get("/rides/created", headers=auth_header(a))
    assert sorted(r["id"] for r in browse.json()) == sorted([mine.id, theirs.id])
    assert [r["id"] for r in created.json()] == [mine.id]


@pytest.mark.asyncio
async def test_join_flow_until_full():
    creator = make_user("Creator")
    a = make_user("A")
    b = make_user("B")
    c = make_user("C")
    ride = make_ride(creator.id, seats=2)
    async with await _async_client() as client:
        r1 = await client.post(f"/rides/{ride.id}/join", headers=auth_header(a))
        assert r1.status_code == 200
        assert r1.json()["message"] == "Ride join request sent successfully"
        assert r1.json()["availableSeats"] == 1
        assert r1.json()["ride"]["status"] == "active"
        assert r1.json()["ride"]["participants"][0]["userId"] == a.id

        r2 = await client.post(f"/rides/{ride.id}/join", headers=auth_header(b))
        assert r2.json()["availableSeats"] == 0
        assert r2.json()["ride"]["status"] == "full"

        r3 = await client.post(f"/rides/{ride.id}/join", headers=auth_header(c))
    assert r3.status_code == 400
    assert r3.json() == {"msg": "No seats available", "details": "This ride is already full"}


@pytest.mark.asyncio
async def test_accept_and_reject_endpoints():
    creator = make_user("Creator")
    a = make_user("A")
    b = make_user("B")
    ride = make_ride(creator.id, seats=4)
    async with await _async_client() as client:
        pa = (await client.post(f"/rides/{ride.id}/join", headers=auth_header(a))).json()["ride"]["participants"][0]["id"]
        joined = (await client.post(f"/rides/{ride.id}/join", headers=auth_header(b))).json()
        pb = joined["ride"]["participants"][1]["id"]
        assert joined["availableSeats"] == 2

        denied = await client.post(f"/rides/{ride.id}/accept/{pa}", headers=auth_header(a))
        assert denied.status_code == 403
        assert denied.json()["msg"] == "Unauthorized"

        acc = await client.post(f"/rides/{ride.id}/accept/{pa}", headers=auth_header(creator))
        assert acc.status_code == 200
        assert acc.json()["message"] == "Ride request accepted successfully"
        assert acc.json()["participantId"] == pa
        assert acc.json()["ride"]["availableSeats"] == 1

        again = await client.post(f"/rides/{ride.id}/accept/{pa}", headers=auth_header(creator))
        assert again.status_code == 400
        assert again.json()["msg"] == "Request already accepted"

        rej = await client.post(f"/rides/{ride.id}/reject-participant/{pb}", headers=auth_header(creator))
        assert rej.status_code == 200
        assert rej.json()["message"] == "Ride request rejected successfully"
        assert [p["id"] for p in rej.json()["ride"]["participants"]] == [pa]

        missing = await client.post(f"/rides/{ride.id}/reject-participant/{pb}", headers=auth_header(creator))
        assert missing.status_code == 404
        assert missing.json()["msg"] == "Participant not found"

        inbox_a = (await client.get("/notifications", headers=auth_header(a))).json()
        inbox_b = (await client.get("/notifications", headers=auth_header(b))).json()
    assert [n["type"] for n in inbox_a] == ["RIDE_CONFIRMATION"]
    assert inbox_a[0]["ride"]["id"] == ride.id
    assert inbox_a[0]["user"]["name"] == "Creator"
    assert [n["type"] for n in inbox_b] == ["RIDE_CANCEL"]


@pytest.mark.asyncio
async def test_update_ride_endpoint():
    creator = make_user("Creator")
    other = make_user("Other")
    ride = make_ride(creator.id, seats=3)
    async with await _async_client() as client:
        await client.post(f"/rides/{ride.id}/join", headers=auth_header(other))

        denied = await client.put(f"/rides/{ride.id}", json={"availableSeats": 9}, headers=auth_header(other))
        assert denied.status_code == 401
        assert denied.json() == {"msg": "User not authorized"}

        bad = await client.put(f"/rides/{ride.id}", json={"availableSeats": 0}, headers=auth_header(creator))
        assert bad.status_code == 400

        ok = await client.put(
            f"/rides/{ride.id}",
            json={"departureTime": "2032-01-01T10:00:00", "availableSeats": 5},
            headers=auth_header(creator),
        )
        assert ok.status_code == 200
        assert ok.json()["availableSeats"] == 5
        assert ok.json()["departureTime"] == "2032-01-01T10:00:00Z"

        inbox = (await client.get("/notifications", headers=auth_header(other))).json()
    assert [n["type"] for n in inbox] == ["RIDE_UPDATE"]


@pytest.mark.asyncio
async def test_delete_ride_endpoint():
    creator = make_user("Creator")
    other = make_user("Other")
    ride = make_ride(creator.id)
    async with await _async_client() as client:
        denied = await client.delete(f"/rides/{ride.id}", headers=auth_header(other))
        assert denied.status_code == 401
        assert denied.json() == {"message": "Not authorized to delete this ride"}

        ok = await client.delete(f"/rides/{ride.id}", headers=auth_header(creator))
        assert ok.json() == {"message": "Ride removed"}

        gone = await client.delete(f"/rides/{ride.id}", headers=auth_header(creator))
    assert gone.status_code == 404
    assert gone.json() == {"message": "Ride not found"}
    assert get_session().get(Ride, ride.id) is None


# ────────────────────────── search ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_search_requires_both_coordinates():
    u = make_user("U")
    async with await _async_client() as client:
        resp = await client.post("/rides/search", json={"fromCoordinates": [78.47, 17.40]}, headers=auth_header(u))
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Invalid search"
    assert resp.json()["details"] == "Both source and destination coordinates are required"


@pytest.mark.asyncio
async def test_search_rejects_malformed_coordinates():
    u = make_user("U")
    async with await _async_client() as client:
        resp = await client.post(
            "/rides/search",
            json={"fromCoordinates": [78.47], "toCoordinates": [78.50, 17.45]},
            headers=auth_header(u),
        )
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Validation Error"


@pytest.mark.asyncio
async def test_search_empty_coordinates_fail_shape_validation():
    u = make_user("U")
    async with await _async_client() as client:
        resp = await client.post(
            "/rides/search",
            json={"fromCoordinates": [], "toCoordinates": [78.50, 17.45]},
            headers=auth_header(u),
        )
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Validation Error"
    assert "fromCoordinates" in resp.json()["details"]


@pytest.mark.asyncio
async def test_search_matches_and_defaults_creator_fields():
    creator = make_user("Creator", phone=None)
    searcher = make_user("Searcher")
    near = make_ride(creator.id, frm=(78.471, 17.401), to=(78.502, 17.448))
    make_ride(creator.id, frm=(78.47, 17.535), to=(78.50, 17.45))  # ~15 km off on pickup
    async with await _async_client() as client:
        resp = await client.post(
            "/rides/search",
            json={"fromCoordinates": [78.47, 17.40], "toCoordinates": [78.50, 17.45]},
            headers=auth_header(searcher),
        )
    assert resp.status_code == 200
    body = resp.json()
    assert [r["id"] for r in body] == [near.id]
    assert body[0]["creator"]["name"] == "Creator"
    assert body[0]["creator"]["phone"] == ""


# ────────────────────────── notifications ───────────────────────────────────

@pytest.mark.asyncio
async def test_mark_notification_read():
    a = make_user("A")
    b = make_user("B")
    n = notifications.create_notification(get_session(), a.id, "SYSTEM_UPDATE", "new version")
    n_id = n.id
    async with await _async_client() as client:
        not_mine = await client.patch(f"/notifications/{n_id}/read", headers=auth_header(b))
        assert not_mine.status_code == 404
        assert not_mine.json() == {"message": "Notification not found"}

        resp = await client.patch(f"/notifications/{n_id}/read", headers=auth_header(a))
    assert resp.status_code == 200
    assert resp.json()["status"] == "READ"
    assert resp.json()["read"] is True
    assert resp.json()["createdAt"].endswith("Z")
    assert resp.json()["expiresAt"] is None


@pytest.mark.asyncio
async def test_notifications_require_auth():
    async with await _async_client() as client:
        resp = await client.get("/notifications")
    assert resp.status_code == 401


# ────────────────────────── users ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_user_profile_requires_token():
    u = make_user("Dana")
    async with await _async_client() as client:
        resp = await client.get(f"/users/{u.id}")
    assert resp.status_code == 401
    assert resp.json() == {"msg": "No token, authorization denied"}
    assert "email" not in resp.json()


@pytest.mark.asyncio
async def test_get_user_and_update_profile():
    u = make_user("Dana")
    async with await _async_client() as client:
        got = await client.get(f"/users/{u.id}", headers=auth_header(u))
        assert got.status_code == 200
        assert got.json()["name"] == "Dana"
        assert got.json()["college"] == "Campus College"

        missing = await client.get("/users/424242", headers=auth_header(u))
        assert missing.status_code == 404
        assert missing.json() == {"msg": "User not found"}

        upd = await client.put(
            "/users/profile",
            json={"phone": "9123456789", "department": "EEE", "name": ""},
            headers=auth_header(u),
        )
    assert upd.status_code == 200
    assert upd.json()["phone"] == "9123456789"
    assert upd.json()["department"] == "EEE"
    assert upd.json()["name"] == "Dana"
