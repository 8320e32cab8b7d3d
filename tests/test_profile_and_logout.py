from __future__ import annotations

from conftest import set_cookie_headers
from hr_admin_bff.auth_utils import UPSTREAM_LOGIN_PATH, encode_user_info
from hr_admin_bff.session_data import UserInfo

USER = UserInfo(email="a@b.com", first_name="Nguyen", last_name="Van An", full_name="Nguyen Van An", user_id=7)


def test_profile_without_session_is_401(client) -> None:
    r = client.get("/api/profile")
    assert r.status_code == 401
    assert r.json() == {"error": "Not authenticated"}


def test_profile_with_corrupt_cookie_is_401(client) -> None:
    client.cookies.set("user_info", "%7Bbroken")
    r = client.get("/api/profile")
    assert r.status_code == 401


def test_profile_returns_user_from_cookie(client) -> None:
    client.cookies.set("user_info", encode_user_info(USER))
    r = client.get("/api/profile")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": USER.to_public()}


def test_profile_after_login(client, upstream) -> None:
    upstream.respond(
        "POST",
        UPSTREAM_LOGIN_PATH,
        json={"data": {"token": "T1", "refreshToken": "R1", "email": "a@b.com",
                       "fullName": "A B", "employeeId": 42}},
    )
    client.post("/api/auth/login", json={"email": "a@b.com", "password": "x"})

    r = client.get("/api/profile")
    assert r.status_code == 200
    assert r.json()["data"]["userId"] == 42
    assert r.json()["data"]["email"] == "a@b.com"


def test_logout_clears_all_session_cookies(client) -> None:
    client.cookies.set("auth_token", "T1")
    client.cookies.set("user_info", encode_user_info(USER))

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"success": True}

    cookies = set_cookie_headers(r)
    assert set(cookies) == {"auth_token", "refresh_token", "user_info"}
    for header in cookies.values():
        assert "max-age=0" in header.lower()
        assert "path=/" in header.lower()


def test_logout_without_session_still_succeeds(client) -> None:
    r = client.post("/api/auth/logout")
    assert r.status_code == 200


def test_home_page_shows_signed_in_user(client) -> None:
    client.cookies.set("auth_token", "T1")
    client.cookies.set("user_info", encode_user_info(USER))
    r = client.get("/")
    assert r.status_code == 200
    assert "Nguyen Van An" in r.text
