import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from slinker.api.deps import get_current_owner, get_settings
from slinker.core.config import Settings
from slinker.core.security import issue_session_token, new_oauth_state, states_match
from slinker.services import github

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")

STATE_COOKIE = "slinker_oauth_state"
STATE_MAX_AGE = 600


def _callback_url(request: Request, settings: Settings) -> str:
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/") + "/auth/callback"
    return str(request.url_for("auth_callback"))


def _secure_cookies(settings: Settings) -> bool:
    return (settings.public_base_url or "").startswith("https://")


@router.get("/signin")
def signin(request: Request, settings: Settings = Depends(get_settings)):
    if not settings.github_enabled:
        raise HTTPException(status_code=503, detail="GitHub sign-in is not configured")

    state = new_oauth_state()
    response = RedirectResponse(
        url=github.authorize_url(settings, _callback_url(request, settings), state),
        status_code=302,
    )
    response.set_cookie(
        key=STATE_COOKIE, value=state,
        httponly=True, samesite="lax", secure=_secure_cookies(settings), path="/auth", max_age=STATE_MAX_AGE,
    )
    return response


@router.get("/callback", name="auth_callback")
def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    if not settings.github_enabled:
        raise HTTPException(status_code=503, detail="GitHub sign-in is not configured")
    if not code or not states_match(request.cookies.get(STATE_COOKIE), state):
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    try:
        email = github.exchange_code_for_email(settings, code, _callback_url(request, settings))
    except github.GitHubAuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc))

    logger.info("Signed in: %s", email)
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/auth")
    response.set_cookie(
        key=settings.session_cookie_name, value=issue_session_token(settings, email),
        httponly=True, samesite="lax", secure=_secure_cookies(settings), path="/",
        max_age=settings.session_ttl_minutes * 60,
    )
    return response


@router.post("/signout")
def signout(settings: Settings = Depends(get_settings)):
    response = JSONResponse({"ok": True})
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/session")
def session(owner: Optional[str] = Depends(get_current_owner)):
    return {"user": {"email": owner} if owner else None}
