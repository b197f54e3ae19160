"""Tests for access token extraction."""

import base64
import json

import pytest

from nutrition_analyzer.services.auth import extract_access_token


def _b64(value: str) -> str:
    return base64.urlsafe_b64encode(value.encode()).decode().rstrip("=")


def test_bearer_header_wins_over_cookie() -> None:
    token = extract_access_token("Bearer header-jwt", {"sb-access-token": "cookie"})

    assert token == "header-jwt"


@pytest.mark.parametrize(
    "cookie",
    [
        "plain-jwt",
        json.dumps(["plain-jwt", "refresh"]),
        json.dumps({"access_token": "plain-jwt", "refresh_token": "r"}),
        "base64-" + _b64(json.dumps({"access_token": "plain-jwt"})),
    ],
)
def test_cookie_formats(cookie: str) -> None:
    assert extract_access_token(None, {"sb-access-token": cookie}) == "plain-jwt"


def test_custom_cookie_name() -> None:
    cookies = {"app-session": "jwt"}

    assert extract_access_token(None, cookies, "app-session") == "jwt"
    assert extract_access_token(None, cookies) is None


@pytest.mark.parametrize(
    ("authorization", "cookies"),
    [
        (None, {}),
        ("Basic dXNlcjpwYXNz", {}),
        ("Bearer ", {}),
        (None, {"sb-access-token": "base64-!!!"}),
        (None, {"sb-access-token": "{not json"}),
        (None, {"sb-access-token": json.dumps({"user": "x"})}),
    ],
)
def test_missing_or_malformed_credentials(
    authorization: str | None, cookies: dict[str, str]
) -> None:
    assert extract_access_token(authorization, cookies) is None
