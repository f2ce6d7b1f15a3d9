import logging
import re

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import RedirectResponse

from slinker.api.deps import get_settings, get_store
from slinker.core.config import Settings
from slinker.core.errors import PersistenceError
from slinker.services.link_store import LinkStore
from slinker.services.links import record_click, resolve_redirect

logger = logging.getLogger(__name__)

router = APIRouter()

HOME_URL = "/"
HOME_ERROR_URL = "/?error"

_SHORT_CODE_RE = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


def _resolve(store: LinkStore, short_code: str, settings: Settings) -> str | None:
    if not _SHORT_CODE_RE.fullmatch(short_code):
        return None
    return resolve_redirect(store, short_code, settings.referrer_tag)


@router.head("/{short_code}", include_in_schema=False)
def redirect_head(
    short_code: str,
    store: LinkStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        target = _resolve(store, short_code, settings)
    except PersistenceError:
        return RedirectResponse(url=HOME_ERROR_URL, status_code=302)
    return RedirectResponse(url=target or HOME_URL, status_code=302)


@router.get("/{short_code}", include_in_schema=False)
def redirect(
    short_code: str,
    background_tasks: BackgroundTasks,
    store: LinkStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        target = _resolve(store, short_code, settings)
    except PersistenceError:
        return RedirectResponse(url=HOME_ERROR_URL, status_code=302)

    if target is None:
        logger.info("Short code not found, sending home: %s", short_code)
        return RedirectResponse(url=HOME_URL, status_code=302)

    # Runs after the response is sent; the redirect never waits on it.
    background_tasks.add_task(record_click, store, short_code)
    return RedirectResponse(url=target, status_code=302)
