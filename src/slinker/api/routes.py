from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from fastapi.responses import RedirectResponse
from redis import Redis

from slinker.api.deps import (
    enforce_create_quota,
    get_current_owner,
    get_redis,
    get_settings,
    get_store,
    require_owner,
)
from slinker.core.config import Settings
from slinker.core.errors import AuthenticationRequired, NotFoundOrUnauthorized
from slinker.core.link_rules import normalize_url
from slinker.schemas.links import CreateLinkRequest, DeleteLinkRequest, DeleteLinkResponse, LinkResponse
from slinker.services.link_store import LinkStore
from slinker.services.links import delete_link, list_links, record_click, shorten

router = APIRouter()


@router.post("/shorten", response_model=LinkResponse)
def create_link(
    req: CreateLinkRequest,
    response: Response,
    owner: Optional[str] = Depends(get_current_owner),
    store: LinkStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    r: Optional[Redis] = Depends(get_redis),
):
    # URL validation happens on the body first; only then is a session required.
    if owner is None:
        raise AuthenticationRequired()

    quota = enforce_create_quota(r, owner, settings)

    link = shorten(
        store,
        req.url,
        owner,
        length=settings.code_length,
        max_attempts=settings.max_code_attempts,
    )

    if quota is not None:
        response.headers["X-RateLimit-Limit"] = str(quota.limit)
        response.headers["X-RateLimit-Remaining"] = str(quota.remaining)

    return LinkResponse.from_link(link)


@router.get("/shorten", response_model=list[LinkResponse])
def get_links(
    owner: str = Depends(require_owner),
    store: LinkStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return [LinkResponse.from_link(link) for link in list_links(store, owner, settings.list_limit)]


@router.delete("/shorten", response_model=DeleteLinkResponse)
def remove_link(
    req: DeleteLinkRequest,
    owner: str = Depends(require_owner),
    store: LinkStore = Depends(get_store),
):
    delete_link(store, owner, req.short_code)
    return DeleteLinkResponse(success=True)


@router.get("/api/redirect/{short_code}")
def api_redirect(
    short_code: str,
    background_tasks: BackgroundTasks,
    store: LinkStore = Depends(get_store),
):
    link = store.find_by_code(short_code)
    if link is None:
        raise NotFoundOrUnauthorized("Short URL not found")

    background_tasks.add_task(record_click, store, short_code)
    return RedirectResponse(url=normalize_url(link.original_url), status_code=302)
