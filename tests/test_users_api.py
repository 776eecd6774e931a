"""User API tests — profiles, self-service edits, and account deletion."""

import uuid
from pathlib import Path

import pytest

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.mark.asyncio
async def test_list_users_hides_secrets(client, signup):
    await signup(username="ana")
    await signup(username="ben")
    r = await client.get("/user")
    assert r.status_code == 200
    users = r.json()
    assert {u["username"] for u in users} == {"ana", "ben"}
    for u in users:
        assert "passwordHash" not in u
        assert "refreshTokens" not in u


@pytest.mark.asyncio
async def test_list_users_filters(client, signup):
    ana = await signup(username="ana")
    await signup(username="ben")

    r = await client.get("/user", params={"username": "ben"})
    assert [u["username"] for u in r.json()] == ["ben"]

    r = await client.get("/user", params={"email": ana["email"].upper()})
    assert [u["id"] for u in r.json()] == [ana["id"]]


@pytest.mark.asyncio
async def test_get_user(client, signup):
    user = await signup(username="cleo")
    r = await client.get(f"/user/{user['id']}")
    assert r.status_code == 200
    assert r.json()["username"] == "cleo"


@pytest.mark.asyncio
async def test_get_unknown_user(client):
    r = await client.get(f"/user/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_update_own_profile(client, signup):
    user = await signup(username="old-name")
    r = await client.put(
        f"/user/{user['id']}", json={"username": "new-name"}, headers=user["headers"]
    )
    assert r.status_code == 200
    assert r.json()["username"] == "new-name"
    assert r.json()["email"] == user["email"]


@pytest.mark.asyncio
async def test_update_other_profile_forbidden(client, signup):
    me = await signup()
    them = await signup(username="them")
    r = await client.put(
        f"/user/{them['id']}", json={"username": "pwned"}, headers=me["headers"]
    )
    assert r.status_code == 403
    assert (await client.get(f"/user/{them['id']}")).json()["username"] == "them"


@pytest.mark.asyncio
async def test_update_unknown_user(client, signup):
    me = await signup()
    r = await client.put(
        f"/user/{uuid.uuid4()}", json={"username": "x"}, headers=me["headers"]
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_email_already_taken(client, signup):
    me = await signup()
    them = await signup()
    r = await client.put(
        f"/user/{me['id']}", json={"email": them["email"]}, headers=me["headers"]
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Email already in use"}


@pytest.mark.asyncio
async def test_update_password(client, signup):
    user = await signup(password="first-password")
    r = await client.put(
        f"/user/{user['id']}", json={"password": "second-password"},
        headers=user["headers"],
    )
    assert r.status_code == 200

    old = await client.post(
        "/auth/login", json={"email": user["email"], "password": "first-password"}
    )
    new = await client.post(
        "/auth/login", json={"email": user["email"], "password": "second-password"}
    )
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_profile_picture_replaces_old_file(client, test_settings):
    reg = await client.post(
        "/auth/register",
        data={"email": "pics@example.com", "password": "pw", "username": "pics"},
        files={"profilePicture": ("one.png", PNG, "image/png")},
    )
    headers = {"Authorization": f"Bearer {reg.json()['token']}"}
    me = (await client.get("/auth/me", headers=headers)).json()
    old_ref = me["profilePicture"]

    r = await client.put(
        f"/user/{me['id']}",
        files={"profilePicture": ("two.png", PNG, "image/png")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    new_ref = r.json()["profilePicture"]
    assert new_ref != old_ref

    root = Path(test_settings.upload_dir)
    assert (root / new_ref).exists()
    assert not (root / old_ref).exists()


@pytest.mark.asyncio
async def test_delete_account_removes_everything_it_owns(client, signup, make_post):
    leaving = await signup()
    staying = await signup()

    own_post = await make_post(leaving)
    other_post = await make_post(staying)
    on_own = await client.post(
        "/comment", json={"post": own_post["id"], "text": "staying says hi"},
        headers=staying["headers"],
    )
    on_other = await client.post(
        "/comment", json={"post": other_post["id"], "text": "leaving says bye"},
        headers=leaving["headers"],
    )
    kept = await client.post(
        "/comment", json={"post": other_post["id"], "text": "still here"},
        headers=staying["headers"],
    )

    r = await client.delete(f"/user/{leaving['id']}", headers=leaving["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == leaving["id"]

    assert (await client.get(f"/user/{leaving['id']}")).status_code == 404
    assert (await client.get(f"/post/{own_post['id']}")).status_code == 404
    assert (await client.get(f"/comment/{on_own.json()['id']}")).status_code == 404
    assert (await client.get(f"/comment/{on_other.json()['id']}")).status_code == 404
    assert (await client.get(f"/comment/{kept.json()['id']}")).status_code == 200
    assert (await client.get(f"/post/{other_post['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_other_account_forbidden(client, signup):
    me = await signup()
    them = await signup()
    r = await client.delete(f"/user/{them['id']}", headers=me["headers"])
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_deleted_account_token_cannot_create(client, signup, make_post, test_settings):
    gone = await signup()
    other = await signup()
    post = await make_post(other)
    assert (await client.delete(f"/user/{gone['id']}", headers=gone["headers"])).status_code == 200

    r = await client.post(
        "/post",
        data={
            "title": "Ghost trip",
            "mapLink": "https://maps.example.com/nowhere",
            "price": "10",
            "numberOfDays": "1",
            "location[country]": "Nowhere",
            "description": "Should not be stored.",
        },
        files=[("photos", ("ghost.png", PNG, "image/png"))],
        headers=gone["headers"],
    )
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}
    assert list((Path(test_settings.upload_dir) / "posts").iterdir()) == []

    r = await client.post(
        "/comment", json={"post": post["id"], "text": "boo"}, headers=gone["headers"]
    )
    assert r.status_code == 401
    assert (await client.get("/comment", params={"post": post["id"]})).json() == []
    assert [p["id"] for p in (await client.get("/post")).json()] == [post["id"]]
