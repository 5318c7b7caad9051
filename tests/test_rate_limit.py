"""Tests for the fixed-window limiter and the per-route and general API limits."""

import unittest

from app.core.rate_limit import FixedWindowRateLimiter

from api_case import PASSWORD, ApiTestCase


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = FixedWindowRateLimiter(3, 60, "slow down", clock=self.clock)

    def test_allows_up_to_max_then_blocks(self) -> None:
        results = [self.limiter.hit("k") for _ in range(4)]
        self.assertEqual([r.allowed for r in results], [True, True, True, False])
        self.assertEqual([r.remaining for r in results[:3]], [2, 1, 0])
        self.assertEqual(results[3].retry_after, 60)

    def test_keys_are_independent(self) -> None:
        for _ in range(3):
            self.limiter.hit("a")
        self.assertFalse(self.limiter.hit("a").allowed)
        self.assertTrue(self.limiter.hit("b").allowed)

    def test_new_window_after_elapsed(self) -> None:
        for _ in range(3):
            self.limiter.hit("k")
        self.clock.now += 59
        blocked = self.limiter.hit("k")
        self.assertFalse(blocked.allowed)
        self.assertEqual(blocked.retry_after, 1)
        self.clock.now += 1
        self.assertTrue(self.limiter.hit("k").allowed)

    def test_refund_gives_back_one_hit(self) -> None:
        for _ in range(3):
            self.limiter.hit("k")
        self.limiter.refund("k")
        self.assertTrue(self.limiter.hit("k").allowed)
        self.assertFalse(self.limiter.hit("k").allowed)

    def test_refund_unknown_key_is_noop(self) -> None:
        self.limiter.refund("nobody")
        self.assertTrue(self.limiter.hit("nobody").allowed)

    def test_rejects_non_positive_configuration(self) -> None:
        with self.assertRaises(ValueError):
            FixedWindowRateLimiter(0, 60, "x")
        with self.assertRaises(ValueError):
            FixedWindowRateLimiter(1, 0, "x")


class TestRouteRateLimits(ApiTestCase):
    settings_overrides = {
        "RATE_LIMIT_ENABLED": True,
        "LOGIN_RATE_LIMIT_MAX": 2,
        "REGISTER_RATE_LIMIT_MAX": 1,
    }

    def test_failed_logins_are_limited(self) -> None:
        self.make_user(email="ann@x.com")
        bad = {"email": "ann@x.com", "password": "Wrong1234"}
        self.assertEqual(self.client.post("/api/auth/login", json=bad).status_code, 401)
        self.assertEqual(self.client.post("/api/auth/login", json=bad).status_code, 401)
        with self.assertLogs("app.security", level="WARNING") as cm:
            r = self.client.post("/api/auth/login", json=bad)
        self.assertEqual(r.status_code, 429)
        self.assertFalse(r.json()["success"])
        self.assertIn("Retry-After", r.headers)
        self.assertEqual(cm.records[-1].security_event, "RATE_LIMIT")

    def test_successful_logins_do_not_count(self) -> None:
        self.make_user(email="ann@x.com")
        good = {"email": "ann@x.com", "password": PASSWORD}
        for _ in range(4):
            self.assertEqual(self.client.post("/api/auth/login", json=good).status_code, 200)

    def test_register_is_limited_per_client(self) -> None:
        first = self.client.post(
            "/api/auth/register",
            json={"name": "Ann Lee", "email": "ann@x.com", "password": PASSWORD},
        )
        self.assertEqual(first.status_code, 201)
        second = self.client.post(
            "/api/auth/register",
            json={"name": "Bob Stone", "email": "bob@x.com", "password": PASSWORD},
        )
        self.assertEqual(second.status_code, 429)

    def test_forwarded_for_identifies_the_client(self) -> None:
        body = {"name": "Ann Lee", "email": "ann@x.com", "password": PASSWORD}
        self.client.post("/api/auth/register", json=body, headers={"X-Forwarded-For": "10.0.0.1"})
        other = self.client.post(
            "/api/auth/register",
            json={**body, "email": "bob@x.com"},
            headers={"X-Forwarded-For": "10.0.0.2, 172.16.0.1"},
        )
        self.assertEqual(other.status_code, 201)


class TestGeneralRateLimit(ApiTestCase):
    settings_overrides = {"RATE_LIMIT_ENABLED": True, "RATE_LIMIT_MAX_REQUESTS": 2}

    def test_api_requests_carry_headers_and_are_limited(self) -> None:
        user = self.make_user()
        first = self.client.get("/api/auth/me", headers=self.auth(user))
        self.assertEqual(first.headers["X-RateLimit-Limit"], "2")
        self.assertEqual(first.headers["X-RateLimit-Remaining"], "1")
        self.client.get("/api/auth/me", headers=self.auth(user))
        third = self.client.get("/api/auth/me", headers=self.auth(user))
        self.assertEqual(third.status_code, 429)
        self.assertEqual(
            third.json()["error"]["message"],
            "Too many requests from this IP, please try again later.",
        )

    def test_health_is_not_limited(self) -> None:
        for _ in range(4):
            self.assertEqual(self.client.get("/health").status_code, 200)


if __name__ == "__main__":
    unittest.main()
