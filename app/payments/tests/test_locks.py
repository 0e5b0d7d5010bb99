"""
Tests for DistributedLock.

Redis is replaced with a MagicMock; the tests check the commands the
lock issues and how it reacts to their results.
"""

from unittest.mock import patch

import pytest

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock


class TestDistributedLock:
    def test_acquire_sets_key_with_nx_and_ttl(self, mock_redis_lock):
        lock = DistributedLock("payment:refund:abc", ttl=120)

        assert lock.acquire() is True

        args, kwargs = mock_redis_lock.set.call_args
        assert args[0] == "lock:payment:refund:abc"
        assert kwargs == {"nx": True, "ex": 120}
        assert lock.is_held

    def test_release_runs_owner_checked_delete(self, mock_redis_lock):
        lock = DistributedLock("payment:refund:abc")
        lock.acquire()
        token = mock_redis_lock.set.call_args.args[1]

        assert lock.release() is True

        mock_redis_lock.eval.assert_called_once_with(
            DistributedLock.RELEASE_SCRIPT, 1, "lock:payment:refund:abc", token
        )
        assert not lock.is_held

    def test_release_twice_is_safe(self, mock_redis_lock):
        lock = DistributedLock("k")
        lock.acquire()
        lock.release()

        assert lock.release() is False
        assert mock_redis_lock.eval.call_count == 1

    def test_release_reports_lost_lock(self, mock_redis_lock):
        mock_redis_lock.eval.return_value = 0
        lock = DistributedLock("k")
        lock.acquire()

        assert lock.release() is False

    def test_non_blocking_contention(self, mock_redis_lock):
        mock_redis_lock.set.return_value = False

        with pytest.raises(LockAcquisitionError):
            DistributedLock("k", blocking=False).acquire()

        assert mock_redis_lock.set.call_count == 1

    def test_blocking_retries_until_acquired(self, mock_redis_lock):
        mock_redis_lock.set.side_effect = [False, False, True]

        with patch("payments.locks.time.sleep") as sleep:
            assert DistributedLock("k", timeout=5.0).acquire() is True

        assert mock_redis_lock.set.call_count == 3
        assert sleep.call_count == 2

    def test_blocking_times_out(self, mock_redis_lock):
        mock_redis_lock.set.return_value = False

        with patch.object(DistributedLock, "POLL_INTERVAL", 0.001):
            with pytest.raises(LockAcquisitionError) as exc_info:
                DistributedLock("k", timeout=0.01).acquire()

        assert exc_info.value.details["key"] == "lock:k"

    def test_context_manager_releases_on_error(self, mock_redis_lock):
        with pytest.raises(ValueError):
            with DistributedLock("k"):
                raise ValueError("inside")

        mock_redis_lock.eval.assert_called_once()
