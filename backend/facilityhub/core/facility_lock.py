"""
Per-facility mutex serialising booking writes.

Conflict detection reads the facility's active bookings and then writes, so two
writers for the same facility must not interleave. With REDIS_URL configured
the mutex is a Redis key shared by every worker process; otherwise it is a
process-local lock.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import FacilityBusyException

logger = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.05

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, threading.Lock] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()


def _lock_key(facility_id: str) -> str:
    return f"facility:{facility_id}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("facility_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def _local_lock(facility_id: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(facility_id)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[facility_id] = lock
        return lock


def _acquire_redis(client: Redis, facility_id: str, ttl_s: int, wait_s: float) -> bool:
    key = _namespaced_key(_lock_key(facility_id))
    deadline = time.monotonic() + wait_s
    while True:
        if client.set(key, str(time.time()), nx=True, ex=ttl_s):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(_POLL_INTERVAL_S)


def acquire_facility_lock_sync(
    facility_id: str, ttl_s: Optional[int] = None, wait_s: Optional[float] = None
) -> str:
    """
    Block until the facility mutex is held.

    Returns the backend that granted the lock ("redis" or "local").

    Raises:
        FacilityBusyException: the lock was not granted within ``wait_s``
    """
    ttl = ttl_s if ttl_s is not None else settings.facility_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.facility_lock_wait_seconds

    client = _get_sync_redis()
    if client is not None:
        try:
            acquired = _acquire_redis(client, facility_id, ttl, wait)
        except Exception as exc:
            prometheus_metrics.record_facility_lock("acquire", "error")
            logger.warning(
                "facility_lock_redis_acquire_failed",
                extra={
                    "facility_id": facility_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
        else:
            if not acquired:
                prometheus_metrics.record_facility_lock("acquire", "blocked")
                raise FacilityBusyException(facility_id)
            prometheus_metrics.record_facility_lock("acquire", "success")
            return "redis"

    if not _local_lock(facility_id).acquire(timeout=wait):
        prometheus_metrics.record_facility_lock("acquire", "blocked")
        raise FacilityBusyException(facility_id)
    prometheus_metrics.record_facility_lock("acquire", "success")
    return "local"


def release_facility_lock_sync(facility_id: str, backend: str) -> None:
    if backend == "local":
        _local_lock(facility_id).release()
        prometheus_metrics.record_facility_lock("release", "success")
        return

    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_facility_lock("release", "redis_unavailable")
        logger.warning(
            "facility_lock_redis_unavailable_on_release",
            extra={"facility_id": facility_id},
        )
        return
    try:
        deleted = client.delete(_namespaced_key(_lock_key(facility_id)))
        if deleted:
            prometheus_metrics.record_facility_lock("release", "success")
        else:
            prometheus_metrics.record_facility_lock("release", "not_found")
    except Exception as exc:
        prometheus_metrics.record_facility_lock("release", "error")
        logger.warning(
            "facility_lock_redis_release_failed",
            extra={
                "facility_id": facility_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def facility_lock_sync(
    facility_id: str, ttl_s: Optional[int] = None, wait_s: Optional[float] = None
) -> Iterator[str]:
    backend = acquire_facility_lock_sync(facility_id, ttl_s=ttl_s, wait_s=wait_s)
    try:
        yield backend
    finally:
        release_facility_lock_sync(facility_id, backend)
