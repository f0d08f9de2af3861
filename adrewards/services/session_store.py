"""Watch session storage.

Two backends share one contract:
 - ``InMemorySessionStore``: dict guarded by a ``threading.Lock``.
 - ``RedisSessionStore``: one key per session (``SET ... EX ttl``) plus a
   sorted set ``<prefix>expiry`` scored by expiry time so the reaper can find
   sessions Redis has already evicted. Consume is an optimistic
   ``WATCH``/``MULTI`` transaction; losing the race surfaces as
   ``SessionNotFound``.

``consume`` is the only way a session leaves the store on the happy path: it
pops the session if and only if the caller owns it. A non-owner gets
``Forbidden`` and the session stays put for its rightful owner. Expired
sessions are left in place for ``sweep_expired`` so their quota reservation can
be released by whoever sweeps.

Redis health is checked before operations with fallback to the in-memory store.
"""
from __future__ import annotations

import json
import math
import threading
from typing import Dict, List, Optional, Protocol

import redis

from adrewards.config import SESSION_SETTINGS
from adrewards.errors import Forbidden, SessionNotFound
from adrewards.models.entities import WatchSession
from adrewards.utils import get_logger

logger = get_logger(__name__)


class SessionStore(Protocol):
    def put(self, session: WatchSession) -> None: ...
    def consume(self, session_id: str, owner_ids: tuple[str, ...], now_epoch_millis: int) -> WatchSession: ...
    def sweep_expired(self, now_epoch_millis: int) -> List[WatchSession]: ...
    def __len__(self) -> int: ...


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, WatchSession] = {}
        self._lock = threading.Lock()

    def put(self, session: WatchSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def consume(self, session_id: str, owner_ids: tuple[str, ...], now_epoch_millis: int) -> WatchSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.is_expired(now_epoch_millis):
                raise SessionNotFound(session_id=session_id)
            if not session.owned_by(*owner_ids):
                raise Forbidden(session_id=session_id)
            del self._sessions[session_id]
            return session

    def sweep_expired(self, now_epoch_millis: int) -> List[WatchSession]:
        with self._lock:
            expired = [s for s in self._sessions.values() if s.is_expired(now_epoch_millis)]
            for s in expired:
                del self._sessions[s.session_id]
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _serialize(session: WatchSession) -> str:
    # sort_keys keeps the payload byte-stable; it doubles as the expiry-index member.
    return json.dumps(session.to_dict(), sort_keys=True)


def _deserialize(raw: bytes | str) -> WatchSession:
    text = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
    return WatchSession.from_dict(json.loads(text))


class RedisSessionStore:
    def __init__(self, *, redis_url: str | None = None, ttl_seconds: int | None = None) -> None:
        self._redis_url: str = str(redis_url or SESSION_SETTINGS.get("redis_url", "redis://localhost:6379/0"))
        self._prefix: str = str(SESSION_SETTINGS.get("redis_key_prefix", "adrewards:watch_session:"))
        self._expiry_key: str = f"{self._prefix}expiry"
        self._ttl_seconds = int(ttl_seconds if ttl_seconds is not None else SESSION_SETTINGS["ttl_seconds"])
        self._health_check_timeout = float(SESSION_SETTINGS.get("redis_health_check_timeout", 2.0))  # type: ignore[arg-type]

        self._fallback = InMemorySessionStore()
        self._redis_client: Optional[redis.Redis] = None
        self._lock = threading.RLock()
        self._is_redis_active = False
        self._init_redis_client()

    def _init_redis_client(self) -> None:
        try:
            self._redis_client = redis.from_url(self._redis_url, socket_connect_timeout=self._health_check_timeout)
            self._redis_client.ping()
            self._is_redis_active = True
            logger.info("Connected to Redis session store", url=self._redis_url)
        except (redis.RedisError, ConnectionError) as e:
            self._is_redis_active = False
            self._redis_client = None
            logger.warning("Failed to connect to Redis, using in-memory session store", error=str(e))

    @property
    def is_redis_active(self) -> bool:
        return self._is_redis_active

    def health_check(self) -> bool:
        """Check if Redis is available and update status accordingly."""
        with self._lock:
            if self._redis_client is None:
                self._init_redis_client()
                return self._is_redis_active
        try:
            self._redis_client.ping()
            if not self._is_redis_active:
                logger.info("Redis connection restored")
            self._is_redis_active = True
            return True
        except (redis.RedisError, ConnectionError, AttributeError) as e:
            if self._is_redis_active:
                logger.warning("Redis connection lost, using in-memory session store", error=str(e))
            self._is_redis_active = False
            return False

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def _mark_down(self, operation: str, error: Exception) -> None:
        logger.error("Redis error in session store", operation=operation, error=str(error))
        self._is_redis_active = False

    def put(self, session: WatchSession) -> None:
        if not self.health_check() or self._redis_client is None:
            self._fallback.put(session)
            return
        payload = _serialize(session)
        ttl = self._ttl_seconds
        if session.expires_at_epoch_millis is not None:
            ttl = max(1, math.ceil((session.expires_at_epoch_millis - session.started_at_epoch_millis) / 1000))
        try:
            pipe = self._redis_client.pipeline()
            pipe.set(self._key(session.session_id), payload, ex=ttl)
            if session.expires_at_epoch_millis is not None:
                pipe.zadd(self._expiry_key, {payload: session.expires_at_epoch_millis})
            pipe.execute()
        except redis.RedisError as e:
            self._mark_down("put", e)
            self._fallback.put(session)

    def consume(self, session_id: str, owner_ids: tuple[str, ...], now_epoch_millis: int) -> WatchSession:
        if not self.health_check() or self._redis_client is None:
            return self._fallback.consume(session_id, owner_ids, now_epoch_millis)
        key = self._key(session_id)
        try:
            with self._redis_client.pipeline() as pipe:
                pipe.watch(key)
                raw = pipe.get(key)
                if raw is None:
                    pipe.unwatch()
                    # Sessions written while Redis was down live in the fallback.
                    return self._fallback.consume(session_id, owner_ids, now_epoch_millis)
                session = _deserialize(raw)
                if session.is_expired(now_epoch_millis):
                    pipe.unwatch()
                    raise SessionNotFound(session_id=session_id)
                if not session.owned_by(*owner_ids):
                    pipe.unwatch()
                    raise Forbidden(session_id=session_id)
                pipe.multi()
                pipe.delete(key)
                pipe.zrem(self._expiry_key, raw)
                pipe.execute()
                return session
        except redis.WatchError:
            # Another handler consumed the session between WATCH and EXEC.
            raise SessionNotFound(session_id=session_id)
        except redis.RedisError as e:
            self._mark_down("consume", e)
            raise SessionNotFound(session_id=session_id)

    def sweep_expired(self, now_epoch_millis: int) -> List[WatchSession]:
        expired = self._fallback.sweep_expired(now_epoch_millis)
        if not self.health_check() or self._redis_client is None:
            return expired
        try:
            members = self._redis_client.zrangebyscore(self._expiry_key, 0, now_epoch_millis) or []
            for raw in members:
                # zrem returning 1 means this sweeper claimed the entry.
                if not self._redis_client.zrem(self._expiry_key, raw):
                    continue
                session = _deserialize(raw)
                self._redis_client.delete(self._key(session.session_id))
                expired.append(session)
        except redis.RedisError as e:
            self._mark_down("sweep_expired", e)
        return expired

    def __len__(self) -> int:
        if not self.health_check() or self._redis_client is None:
            return len(self._fallback)
        try:
            return int(self._redis_client.zcard(self._expiry_key) or 0) + len(self._fallback)
        except redis.RedisError as e:
            self._mark_down("len", e)
            return len(self._fallback)


def create_session_store() -> InMemorySessionStore | RedisSessionStore:
    """Create the session store selected by ``SESSION_SETTINGS['use_redis']``."""
    if SESSION_SETTINGS.get("use_redis", False):
        store = RedisSessionStore()
        if store.health_check():
            logger.info("Using Redis-backed session store")
            return store
        logger.warning("Redis unreachable; using in-memory session store")
    logger.info("Using in-memory session store")
    return InMemorySessionStore()


__all__ = ["SessionStore", "InMemorySessionStore", "RedisSessionStore", "create_session_store"]
