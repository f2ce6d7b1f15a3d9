"""
Link persistence.

`LinkStore` is the single interface the request handlers see. Two backends
implement it:

- `InMemoryLinkStore`: an ordered list kept newest-first. Nothing survives a
  restart; useful for local development and tests.
- `SqlLinkStore`: the `shortened_urls` table through SQLAlchemy. The unique
  index on `short_code` is the final word on uniqueness, and clicks are
  bumped with an in-place UPDATE so concurrent redirects never lose counts.

`build_store` picks one from settings, once, at startup.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
import itertools
import logging
import threading
from typing import Iterator, Optional

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from slinker.core.config import Settings
from slinker.core.errors import PersistenceError, ShortCodeConflict
from slinker.core.link_rules import normalize_url
from slinker.db.base import Base
from slinker.db.models import ShortenedUrl
from slinker.db.session import make_engine, make_session_factory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShortenedLink:
    id: int
    original_url: str
    short_code: str
    created_at: datetime
    clicks: int
    owner_email: str


class LinkStore(ABC):
    backend: str

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def ping(self) -> bool:
        return True

    @abstractmethod
    def create(self, url: str, code: str, owner: str) -> ShortenedLink: ...

    @abstractmethod
    def find_by_code(self, code: str) -> Optional[ShortenedLink]: ...

    @abstractmethod
    def exists(self, code: str) -> bool: ...

    @abstractmethod
    def list_by_owner(self, owner: str, limit: int) -> list[ShortenedLink]: ...

    @abstractmethod
    def increment_clicks(self, code: str) -> None: ...

    @abstractmethod
    def delete_by_owner_and_code(self, owner: str, code: str) -> bool: ...


class InMemoryLinkStore(LinkStore):
    backend = "memory"

    def __init__(self) -> None:
        self._links: list[ShortenedLink] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._links.clear()

    def _index_of(self, code: str) -> Optional[int]:
        for i, link in enumerate(self._links):
            if link.short_code == code:
                return i
        return None

    def create(self, url: str, code: str, owner: str) -> ShortenedLink:
        with self._lock:
            if self._index_of(code) is not None:
                raise ShortCodeConflict(code)
            link = ShortenedLink(
                id=next(self._ids),
                original_url=normalize_url(url),
                short_code=code,
                created_at=datetime.now(timezone.utc),
                clicks=0,
                owner_email=owner,
            )
            self._links.insert(0, link)
        logger.info("Created short URL in memory: code=%s id=%s", code, link.id)
        return link

    def find_by_code(self, code: str) -> Optional[ShortenedLink]:
        with self._lock:
            i = self._index_of(code)
            found = self._links[i] if i is not None else None
        logger.debug("Lookup in memory: code=%s found=%s", code, found is not None)
        return found

    def exists(self, code: str) -> bool:
        with self._lock:
            return self._index_of(code) is not None

    def list_by_owner(self, owner: str, limit: int) -> list[ShortenedLink]:
        with self._lock:
            return [link for link in self._links if link.owner_email == owner][:limit]

    def increment_clicks(self, code: str) -> None:
        with self._lock:
            i = self._index_of(code)
            if i is None:
                return
            self._links[i] = replace(self._links[i], clicks=self._links[i].clicks + 1)
            clicks = self._links[i].clicks
        logger.debug("Incremented clicks in memory: code=%s clicks=%s", code, clicks)

    def delete_by_owner_and_code(self, owner: str, code: str) -> bool:
        with self._lock:
            i = self._index_of(code)
            if i is None or self._links[i].owner_email != owner:
                return False
            del self._links[i]
        return True


def _to_link(row: ShortenedUrl) -> ShortenedLink:
    created_at = row.created_at
    # SQLite hands back naive datetimes; the stored value is UTC.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ShortenedLink(
        id=row.id,
        original_url=row.original_url,
        short_code=row.short_code,
        created_at=created_at,
        clicks=row.clicks,
        owner_email=row.owner_email,
    )


class SqlLinkStore(LinkStore):
    backend = "sql"

    def __init__(self, database_url: str):
        self._engine = make_engine(database_url)
        self._sessions = make_session_factory(self._engine)

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with self._sessions() as db:
                yield db
        except SQLAlchemyError as exc:
            logger.exception("Database error while trying to %s", action)
            raise PersistenceError() from exc

    def open(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as exc:
            logger.exception("Database initialization failed")
            raise PersistenceError() from exc

    def close(self) -> None:
        self._engine.dispose()

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database connection check failed")
            return False
        return True

    def create(self, url: str, code: str, owner: str) -> ShortenedLink:
        with self._session("create a link") as db:
            row = ShortenedUrl(
                original_url=normalize_url(url),
                short_code=code,
                owner_email=owner,
                clicks=0,
                created_at=datetime.now(timezone.utc),
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise ShortCodeConflict(code)
            db.refresh(row)
            link = _to_link(row)
        logger.info("Created short URL in database: code=%s id=%s", code, link.id)
        return link

    def find_by_code(self, code: str) -> Optional[ShortenedLink]:
        with self._session("look up a link") as db:
            row = db.scalars(
                select(ShortenedUrl).where(ShortenedUrl.short_code == code).limit(1)
            ).first()
            found = _to_link(row) if row is not None else None
        logger.debug("Lookup in database: code=%s found=%s", code, found is not None)
        return found

    def exists(self, code: str) -> bool:
        with self._session("check a short code") as db:
            hit = db.scalar(
                select(ShortenedUrl.id).where(ShortenedUrl.short_code == code).limit(1)
            )
        return hit is not None

    def list_by_owner(self, owner: str, limit: int) -> list[ShortenedLink]:
        with self._session("list links") as db:
            rows = db.scalars(
                select(ShortenedUrl)
                .where(ShortenedUrl.owner_email == owner)
                .order_by(ShortenedUrl.created_at.desc(), ShortenedUrl.id.desc())
                .limit(limit)
            ).all()
            return [_to_link(row) for row in rows]

    def increment_clicks(self, code: str) -> None:
        with self._session("increment clicks") as db:
            db.execute(
                update(ShortenedUrl)
                .where(ShortenedUrl.short_code == code)
                .values(clicks=ShortenedUrl.clicks + 1)
            )
            db.commit()
        logger.debug("Incremented clicks in database: code=%s", code)

    def delete_by_owner_and_code(self, owner: str, code: str) -> bool:
        with self._session("delete a link") as db:
            result = db.execute(
                delete(ShortenedUrl).where(
                    ShortenedUrl.short_code == code,
                    ShortenedUrl.owner_email == owner,
                )
            )
            db.commit()
            return result.rowcount > 0


def build_store(settings: Settings) -> LinkStore:
    if settings.database_url:
        logger.info("Using SQL storage")
        return SqlLinkStore(settings.database_url)
    logger.info("Using in-memory storage; links are lost on restart")
    return InMemoryLinkStore()
