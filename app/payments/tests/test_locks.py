"""
Tests for distributed locking utilities.

Tests the DistributedLock class which provides Redis-based mutual exclusion
across processes for payment reconciliation. The Redis connection is the
autouse ``mock_redis`` fixture from payments/conftest.py.
"""

import pytest

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock, reference_lock


class TestDistributedLock:
    """Tests for DistributedLock class."""

    def test_acquire_success(self, mock_redis):
        """Should acquire lock when available."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        result = lock.acquire()

        assert result is True
        assert lock.is_held is True
        call_args = mock_redis.set.call_args
        assert call_args[0][0] == "lock:test:key"
        assert call_args[1]["nx"] is True
        assert call_args[1]["ex"] == 30

    def test_acquire_generates_unique_token(self, mock_redis):
        """Should generate unique token for each acquisition."""
        lock1 = DistributedLock("test:key1", ttl=30, blocking=False)
        lock2 = DistributedLock("test:key2", ttl=30, blocking=False)

        lock1.acquire()
        lock2.acquire()

        assert lock1._token is not None
        assert lock1._token != lock2._token

    def test_acquire_non_blocking_raises_when_held(self, mock_redis):
        """Non-blocking mode should raise immediately if lock unavailable."""
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "already held" in str(exc_info.value)
        assert exc_info.value.details["key"] == "lock:test:key"
        assert lock.is_held is False

    def test_acquire_blocking_waits_and_acquires(self, mock_redis):
        """Blocking mode should poll and eventually acquire."""
        mock_redis.set.side_effect = [False, False, True]

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=1.0)
        result = lock.acquire()

        assert result is True
        assert mock_redis.set.call_count == 3

    def test_acquire_blocking_timeout_raises_error(self, mock_redis):
        """Should raise after timeout in blocking mode."""
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "within 0.1s" in str(exc_info.value)
        assert exc_info.value.details["timeout"] == 0.1
        assert exc_info.value.error_code == "LOCK_ACQUISITION_FAILED"

    def test_release_success(self, mock_redis):
        """Should release lock when we hold it."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()
        result = lock.release()

        assert result is True
        assert lock.is_held is False
        args = mock_redis.eval.call_args[0]
        assert args[0] == DistributedLock.RELEASE_SCRIPT
        assert args[2] == "lock:test:key"

    def test_release_only_if_owned(self, mock_redis):
        """Release reports False when the stored token belongs to someone else."""
        mock_redis.eval.return_value = 0

        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()

        assert lock.release() is False

    def test_release_without_acquire_returns_false(self, mock_redis):
        lock = DistributedLock("test:key", ttl=30, blocking=False)

        assert lock.release() is False
        mock_redis.eval.assert_not_called()

    def test_context_manager_releases_on_exception(self, mock_redis):
        """Should release lock even if exception occurs inside context."""
        with pytest.raises(ValueError, match="Test error"):
            with DistributedLock("test:key", ttl=30):
                raise ValueError("Test error")

        mock_redis.eval.assert_called_once()


class TestReferenceLock:
    """Tests for reference_lock()."""

    def test_uses_payment_settings(self, settings):
        settings.PAYMENT_LOCK_TTL_SECONDS = 45
        settings.PAYMENT_LOCK_TIMEOUT_SECONDS = 2.5

        lock = reference_lock("PAYRUSH_abc_1700000000")

        assert lock.key == "lock:payment:reference:PAYRUSH_abc_1700000000"
        assert lock.ttl == 45
        assert lock.timeout == 2.5
        assert lock.blocking is True
