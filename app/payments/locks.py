"""
Redis-based mutual exclusion for payment reconciliation.

Two verification calls (or a verification call and a webhook) for the
same transaction reference must not interleave their duplicate check,
payment insert and invoice update. DistributedLock serializes them
across web and Celery processes; the unique constraint on
Payment.reference remains the final guard if a lock expires early.

Usage:
    from payments.locks import reference_lock

    with reference_lock(tx_ref):
        # duplicate check, insert, invoice update
        ...
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING

from django.conf import settings
from django_redis import get_redis_connection

from payments.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis


class DistributedLock:
    """
    Redis lock with TTL and owner token.

    Acquisition is SET key token NX EX ttl. Release runs as a Lua script
    that compares the stored token first, so a process can never free a
    lock that expired and was taken by someone else.

    Args:
        key: Lock identifier (prefixed with "lock:")
        ttl: Seconds until Redis drops the lock on its own
        blocking: If True, acquire() polls until timeout
        timeout: Maximum wait in seconds (blocking mode only)

    Example:
        lock = DistributedLock("payment:reference:PAYRUSH_x_1", ttl=30, timeout=5)
        try:
            with lock:
                reconcile()
        except LockAcquisitionError:
            # another worker is reconciling the same reference
            ...
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    POLL_INTERVAL_SECONDS = 0.05

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True once the lock is held

        Raises:
            LockAcquisitionError: Lock held elsewhere (non-blocking) or not
                obtained within timeout (blocking)
        """
        token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if self.blocking:
            deadline = time.monotonic() + self.timeout
            while True:
                if redis.set(self.key, token, nx=True, ex=self.ttl):
                    self._token = token
                    return True
                if time.monotonic() >= deadline:
                    break
                time.sleep(self.POLL_INTERVAL_SECONDS)

            raise LockAcquisitionError(
                f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                details={"key": self.key, "timeout": self.timeout},
            )

        if not redis.set(self.key, token, nx=True, ex=self.ttl):
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )
        self._token = token
        return True

    def release(self) -> bool:
        """
        Release the lock if this instance holds it.

        Returns:
            True if the lock was deleted, False if it was not ours (or
            already expired)
        """
        if self._token is None:
            return False

        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        self.release()
        return False


def reference_lock(reference: str) -> DistributedLock:
    """
    Lock guarding reconciliation of one transaction reference.

    TTL and wait come from PAYMENT_LOCK_TTL_SECONDS and
    PAYMENT_LOCK_TIMEOUT_SECONDS.
    """
    return DistributedLock(
        f"payment:reference:{reference}",
        ttl=getattr(settings, "PAYMENT_LOCK_TTL_SECONDS", 30),
        blocking=True,
        timeout=getattr(settings, "PAYMENT_LOCK_TIMEOUT_SECONDS", 5),
    )


__all__ = [
    "DistributedLock",
    "reference_lock",
]
