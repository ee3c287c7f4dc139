import pytest


@pytest.fixture
async def note_id(async_client, auth_headers, alice, bob):
    r = await async_client.post(
        "/api/notes/",
        json={
            "title": "Shared doc",
            "access_level": "shared",
            "view_access_list": [str(bob.user_id)],
        },
        headers=auth_headers(alice),
    )
    assert r.status_code == 201, r.text
    return r.json()["id"]


@pytest.mark.asyncio
async def test_lock_lifecycle(async_client, auth_headers, note_id, alice, bob):
    url = f"/api/notes/{note_id}/lock"

    r = await async_client.get(url, headers=auth_headers(alice))
    assert r.status_code == 200
    assert r.json()["locked"] is False

    r = await async_client.post(url, headers=auth_headers(bob))
    assert r.status_code == 200
    held = r.json()
    assert held["locked"] is True
    assert held["holder_id"] == str(bob.user_id)
    assert held["held_by_me"] is True

    r = await async_client.get(url, headers=auth_headers(alice))
    assert r.json()["holder_id"] == str(bob.user_id)
    assert r.json()["held_by_me"] is False

    r = await async_client.post(f"{url}/renew", headers=auth_headers(bob))
    assert r.status_code == 200
    assert r.json()["holder_id"] == str(bob.user_id)
    assert r.json()["expires_at"] is not None

    r = await async_client.delete(url, headers=auth_headers(bob))
    assert r.status_code == 200
    assert r.json()["locked"] is False


@pytest.mark.asyncio
async def test_conflict_maps_to_409(async_client, auth_headers, note_id, alice, bob):
    url = f"/api/notes/{note_id}/lock"
    await async_client.post(url, headers=auth_headers(bob))

    r = await async_client.post(url, headers=auth_headers(alice))
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "LockConflict"
    assert body["details"]["holder_id"] == str(bob.user_id)
    assert body["details"]["expires_at"] is not None

    r = await async_client.put(
        f"/api/notes/{note_id}", json={"content": "x"}, headers=auth_headers(alice)
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_release_by_non_holder_maps_to_409(async_client, auth_headers, note_id, alice, bob):
    url = f"/api/notes/{note_id}/lock"
    await async_client.post(url, headers=auth_headers(bob))

    r = await async_client.delete(url, headers=auth_headers(alice))
    assert r.status_code == 409
    assert r.json()["error"] == "LockRejected"


@pytest.mark.asyncio
async def test_renew_without_lease_maps_to_409(async_client, auth_headers, note_id, alice):
    r = await async_client.post(f"/api/notes/{note_id}/lock/renew", headers=auth_headers(alice))
    assert r.status_code == 409
    assert r.json()["error"] == "LeaseLost"


@pytest.mark.asyncio
async def test_admin_can_release_any_lease(async_client, auth_headers, note_id, bob, admin):
    url = f"/api/notes/{note_id}/lock"
    await async_client.post(url, headers=auth_headers(bob))

    r = await async_client.delete(url, headers=auth_headers(admin))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_non_viewer_gets_403(async_client, auth_headers, note_id, carol):
    r = await async_client.get(f"/api/notes/{note_id}/lock", headers=auth_headers(carol))
    assert r.status_code == 403
