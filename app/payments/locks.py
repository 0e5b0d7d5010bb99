"""
Distributed locks for payment operations.

DistributedLock provides Redis-based mutual exclusion across processes
for operations that call the gateway between database transactions,
such as refunds. Row-level concurrency on Payment is handled by
select_for_update() and ConcurrentTransitionMixin instead.

Usage:

    from payments.locks import DistributedLock

    with DistributedLock(f"payment:refund:{payment.id}", ttl=120, timeout=10.0):
        # Only one process can refund this payment at a time
        refund(payment)
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING

from django_redis import get_redis_connection

from payments.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis


class DistributedLock:
    """
    Redis lock with a TTL and an ownership token.

    The key is set with NX and an expiry, so a crashed holder releases the
    lock after ttl seconds. Release deletes the key only if it still holds
    our token, so a lock that expired and was re-acquired elsewhere is
    left alone.

    Example:
        try:
            with DistributedLock(f"payment:refund:{payment_id}", ttl=120, timeout=10.0):
                refund(payment_id)
        except LockAcquisitionError:
            # Another refund for this payment is running
            ...

    Args:
        key: Lock identifier (stored as "lock:<key>")
        ttl: Seconds before Redis expires the lock
        blocking: Poll until acquired or timeout; otherwise try once
        timeout: Seconds to poll in blocking mode

    Note:
        ttl must exceed the slowest expected gateway call, otherwise a
        second holder can enter while the first is still working.
    """

    # Delete only if the stored token is ours
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    POLL_INTERVAL = 0.05

    def __init__(self, key: str, ttl: int = 30, blocking: bool = True, timeout: float = 10.0) -> None:
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

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Raises:
            LockAcquisitionError: Held elsewhere (non-blocking) or not
                released within timeout (blocking)
        """
        self._token = uuid_module.uuid4().hex
        redis = self._get_redis()

        if not self.blocking:
            if self._try_acquire(redis):
                return True
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )

        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if self._try_acquire(redis):
                return True
            time.sleep(self.POLL_INTERVAL)

        self._token = None
        raise LockAcquisitionError(
            f"Failed to acquire lock '{self.key}' within {self.timeout}s",
            details={"key": self.key, "timeout": self.timeout},
        )

    def release(self) -> bool:
        """Release the lock if we still own it. Safe to call twice."""
        if self._token is None:
            return False

        released = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(released)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb: Any) -> bool:
        self.release()
        return False


__all__ = [
    "DistributedLock",
]
