"""Unit tests for app.services.lockout: failed attempt counting, locking and reset."""

import unittest
from datetime import timedelta

from app.models.user import ensure_utc, utcnow
from app.services.lockout import (
    LOCK_DURATION,
    MAX_LOGIN_ATTEMPTS,
    is_locked,
    register_failed_attempt,
    reset_attempts,
)

from api_case import DatabaseTestCase


class TestIsLocked(DatabaseTestCase):
    def test_no_lock_until_is_unlocked(self) -> None:
        user = self.make_user()
        self.assertFalse(is_locked(user))

    def test_future_lock_is_locked_and_past_lock_is_not(self) -> None:
        user = self.make_user()
        now = utcnow()
        user.lock_until = now + timedelta(minutes=1)
        self.assertTrue(is_locked(user, now))
        user.lock_until = now - timedelta(seconds=1)
        self.assertFalse(is_locked(user, now))

    def test_lock_until_equal_to_now_is_unlocked(self) -> None:
        user = self.make_user()
        now = utcnow()
        user.lock_until = now
        self.assertFalse(is_locked(user, now))


class TestRegisterFailedAttempt(DatabaseTestCase):
    def test_counts_up_without_locking_below_limit(self) -> None:
        user = self.make_user()
        now = utcnow()
        for expected in range(1, MAX_LOGIN_ATTEMPTS):
            register_failed_attempt(self.db, user, now)
            self.assertEqual(user.login_attempts, expected)
            self.assertIsNone(user.lock_until)

    def test_fifth_failure_locks_for_two_hours(self) -> None:
        user = self.make_user()
        now = utcnow()
        for _ in range(MAX_LOGIN_ATTEMPTS):
            register_failed_attempt(self.db, user, now)
        self.assertEqual(user.login_attempts, MAX_LOGIN_ATTEMPTS)
        lock_until = ensure_utc(user.lock_until)
        self.assertAlmostEqual(
            (lock_until - now).total_seconds(), LOCK_DURATION.total_seconds(), delta=1
        )
        self.assertTrue(is_locked(user, now + timedelta(hours=1)))

    def test_failure_while_locked_keeps_first_lock(self) -> None:
        user = self.make_user()
        now = utcnow()
        for _ in range(MAX_LOGIN_ATTEMPTS):
            register_failed_attempt(self.db, user, now)
        first_lock = ensure_utc(user.lock_until)
        register_failed_attempt(self.db, user, now + timedelta(minutes=10))
        self.assertEqual(user.login_attempts, MAX_LOGIN_ATTEMPTS + 1)
        self.assertEqual(ensure_utc(user.lock_until), first_lock)

    def test_failure_after_lock_expired_restarts_count(self) -> None:
        user = self.make_user()
        now = utcnow()
        for _ in range(MAX_LOGIN_ATTEMPTS):
            register_failed_attempt(self.db, user, now)
        later = now + LOCK_DURATION + timedelta(seconds=1)
        register_failed_attempt(self.db, user, later)
        self.assertEqual(user.login_attempts, 1)
        self.assertIsNone(user.lock_until)
        self.assertFalse(is_locked(user, later))

    def test_update_is_persisted(self) -> None:
        user = self.make_user()
        register_failed_attempt(self.db, user)
        register_failed_attempt(self.db, user)
        self.assertEqual(self.reload(user.id).login_attempts, 2)


class TestResetAttempts(DatabaseTestCase):
    def test_reset_clears_count_and_lock_and_sets_last_login(self) -> None:
        user = self.make_user()
        now = utcnow()
        for _ in range(MAX_LOGIN_ATTEMPTS):
            register_failed_attempt(self.db, user, now)
        reset_attempts(self.db, user, now)
        stored = self.reload(user.id)
        self.assertEqual(stored.login_attempts, 0)
        self.assertIsNone(stored.lock_until)
        self.assertAlmostEqual(
            (ensure_utc(stored.last_login) - now).total_seconds(), 0, delta=1
        )


if __name__ == "__main__":
    unittest.main()
