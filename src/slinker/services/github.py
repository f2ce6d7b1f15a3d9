"""
GitHub OAuth helpers.

Sign-in is delegated to GitHub: the user is sent to the authorize URL, GitHub
redirects back with a one-time code, and the code is exchanged for an access
token that can read the user's primary verified email. That email is the
only identity slinker keeps.
"""
from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from slinker.core.config import Settings

logger = logging.getLogger(__name__)

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"
GITHUB_SCOPE = "read:user user:email"


class GitHubAuthError(Exception):
    pass


def authorize_url(settings: Settings, redirect_uri: str, state: str) -> str:
    params = {
        "client_id": settings.github_client_id,
        "redirect_uri": redirect_uri,
        "scope": GITHUB_SCOPE,
        "state": state,
        "allow_signup": "true",
    }
    return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"


def _pick_email(emails: list[dict]) -> Optional[str]:
    verified = [e for e in emails if e.get("verified") and e.get("email")]
    for entry in verified:
        if entry.get("primary"):
            return entry["email"]
    return verified[0]["email"] if verified else None


def exchange_code_for_email(
    settings: Settings,
    code: str,
    redirect_uri: str,
    transport: httpx.BaseTransport | None = None,
) -> str:
    with httpx.Client(timeout=10.0, transport=transport) as http:
        try:
            token_resp = http.post(
                GITHUB_TOKEN_URL,
                data={
                    "client_id": settings.github_client_id,
                    "client_secret": settings.github_client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
                headers={"Accept": "application/json"},
            )
            token_resp.raise_for_status()
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise GitHubAuthError("GitHub did not return an access token")

            emails_resp = http.get(
                GITHUB_EMAILS_URL,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            emails_resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("GitHub OAuth exchange failed: %s", exc)
            raise GitHubAuthError("GitHub sign-in failed") from exc

    email = _pick_email(emails_resp.json())
    if email is None:
        raise GitHubAuthError("GitHub account has no verified email")
    return email
