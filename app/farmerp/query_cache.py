"""
Query cache shared by the view modules.

Entries are keyed by a tuple whose first element is the resource name, e.g.
("flocks",) or ("inventory_items", "active"). A stale window bounds how long a
result is served; concurrent fetches of the same key wait on one another so a
burst of identical requests issues one query.

Values live in process memory, but invalidation does not: with a
`CacheVersions` store each resource carries a version row in the database,
`invalidate` bumps it, and an entry recorded under an older version is treated
as a miss by every worker.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Hashable
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.farmerp.errors import DataServiceError
from app.farmerp.models import CacheVersion

logger = logging.getLogger(__name__)

DEFAULT_STALE_SECONDS = 300  # 5 minutes

T = TypeVar("T")


def _norm_key(key: Hashable) -> tuple:
    return key if isinstance(key, tuple) else (key,)


class CacheVersions:
    """Per-resource invalidation counters in the `cache_versions` table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def current(self, resource: str) -> int:
        s: Session = self._session_factory()
        try:
            version = s.scalar(select(CacheVersion.version).where(CacheVersion.resource == resource))
        except SQLAlchemyError as e:
            raise DataServiceError("cache_versions", "select", str(e)) from e
        finally:
            s.close()
        return version or 0

    def bump(self, resource: str) -> None:
        s: Session = self._session_factory()
        try:
            if not self._increment(s, resource):
                s.add(CacheVersion(resource=resource, version=1, updated_at=datetime.utcnow()))
                try:
                    s.commit()
                except IntegrityError:
                    # Another worker created the row first.
                    s.rollback()
                    self._increment(s, resource)
                    s.commit()
            else:
                s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            raise DataServiceError("cache_versions", "update", str(e)) from e
        finally:
            s.close()

    @staticmethod
    def _increment(s: Session, resource: str) -> bool:
        res = s.execute(
            update(CacheVersion)
            .where(CacheVersion.resource == resource)
            .values(version=CacheVersion.version + 1, updated_at=datetime.utcnow())
        )
        return bool(res.rowcount)


class QueryCache:
    def __init__(
        self,
        stale_after: float = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        versions: CacheVersions | None = None,
    ) -> None:
        self.stale_after = stale_after
        self._clock = clock
        self._versions = versions
        self._entries: dict[tuple, tuple[float, int, Any]] = {}
        self._key_locks: dict[tuple, threading.Lock] = {}
        self._lock = threading.Lock()

    def _lock_for(self, key: tuple) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _version(self, key: tuple) -> int:
        if self._versions is None:
            return 0
        return self._versions.current(key[0])

    def _fresh(self, key: tuple, version: int) -> tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return False, None
        fetched_at, entry_version, value = entry
        if entry_version != version:
            return False, None
        if self._clock() - fetched_at >= self.stale_after:
            return False, None
        return True, value

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], T]) -> T:
        k = _norm_key(key)
        # Read the version before fetching so a concurrent bump leaves the new entry already outdated.
        version = self._version(k)
        hit, value = self._fresh(k, version)
        if hit:
            logger.debug("Cache HIT %s", k)
            return value
        with self._lock_for(k):
            # Another thread may have filled the entry while we waited.
            hit, value = self._fresh(k, version)
            if hit:
                return value
            logger.debug("Cache MISS %s (version=%s)", k, version)
            value = fetch()
            with self._lock:
                self._entries[k] = (self._clock(), version, value)
            return value

    def invalidate(self, resource: str) -> int:
        """Drop every entry whose key starts with `resource`. Returns the number dropped locally."""
        if self._versions is not None:
            self._versions.bump(resource)
        with self._lock:
            doomed = [k for k in self._entries if k and k[0] == resource]
            for k in doomed:
                del self._entries[k]
            for k in [k for k in self._key_locks if k and k[0] == resource]:
                del self._key_locks[k]
        if doomed:
            logger.debug("Cache invalidated %s (%s entries)", resource, len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()
