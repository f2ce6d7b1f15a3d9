from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from slinker.core.config import Settings
from slinker.services import github


def _settings() -> Settings:
    return Settings(database_url=None, github_client_id="gh-client", github_client_secret="gh-secret")


def _transport(token_body, emails_body, emails_status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == httpx.URL(github.GITHUB_TOKEN_URL):
            assert request.headers["accept"] == "application/json"
            return httpx.Response(200, json=token_body)
        if request.url == httpx.URL(github.GITHUB_EMAILS_URL):
            assert request.headers["authorization"] == "Bearer tok"
            return httpx.Response(emails_status, json=emails_body)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def test_authorize_url_carries_client_and_state():
    url = github.authorize_url(_settings(), "http://localhost/auth/callback", "st4te")
    params = parse_qs(urlsplit(url).query)

    assert url.startswith(github.GITHUB_AUTHORIZE_URL + "?")
    assert params["client_id"] == ["gh-client"]
    assert params["state"] == ["st4te"]
    assert params["redirect_uri"] == ["http://localhost/auth/callback"]


def test_exchange_returns_primary_verified_email():
    emails = [
        {"email": "old@example.com", "verified": True, "primary": False},
        {"email": "me@example.com", "verified": True, "primary": True},
    ]
    email = github.exchange_code_for_email(
        _settings(), "code", "http://cb", transport=_transport({"access_token": "tok"}, emails)
    )
    assert email == "me@example.com"


def test_exchange_falls_back_to_any_verified_email():
    emails = [
        {"email": "unverified@example.com", "verified": False, "primary": True},
        {"email": "ok@example.com", "verified": True, "primary": False},
    ]
    email = github.exchange_code_for_email(
        _settings(), "code", "http://cb", transport=_transport({"access_token": "tok"}, emails)
    )
    assert email == "ok@example.com"


def test_exchange_without_access_token_fails():
    with pytest.raises(github.GitHubAuthError):
        github.exchange_code_for_email(
            _settings(), "code", "http://cb", transport=_transport({"error": "bad_verification_code"}, [])
        )


def test_exchange_without_verified_email_fails():
    emails = [{"email": "x@example.com", "verified": False, "primary": True}]
    with pytest.raises(github.GitHubAuthError):
        github.exchange_code_for_email(
            _settings(), "code", "http://cb", transport=_transport({"access_token": "tok"}, emails)
        )


def test_exchange_http_error_is_wrapped():
    with pytest.raises(github.GitHubAuthError):
        github.exchange_code_for_email(
            _settings(), "code", "http://cb", transport=_transport({"access_token": "tok"}, {}, emails_status=500)
        )
