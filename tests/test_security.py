"""Unit tests for app.core.security: password hashing and JWT issue/verify."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest import mock

import jwt

from app.core.errors import InvalidTokenError, TokenConfigurationError, TokenExpiredError
from app.core.security import (
    USER_ID_CLAIM,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

from api_case import TEST_SECRET, make_settings


class TestPasswordHashing(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("app.core.security.BCRYPT_ROUNDS", 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_hash_verifies_against_plaintext(self) -> None:
        hashed = hash_password("Secret123")
        self.assertNotEqual(hashed, "Secret123")
        self.assertTrue(verify_password("Secret123", hashed))

    def test_wrong_password_does_not_verify(self) -> None:
        hashed = hash_password("Secret123")
        self.assertFalse(verify_password("secret123", hashed))

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(hash_password("Secret123"), hash_password("Secret123"))

    def test_missing_or_garbage_hash_is_false(self) -> None:
        self.assertFalse(verify_password("Secret123", None))
        self.assertFalse(verify_password("Secret123", ""))
        self.assertFalse(verify_password("Secret123", "not-a-bcrypt-hash"))


class TestAccessTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()

    def test_round_trip_carries_user_id(self) -> None:
        token = create_access_token("a" * 32, self.settings)
        payload = decode_access_token(token, self.settings)
        self.assertEqual(payload[USER_ID_CLAIM], "a" * 32)
        self.assertIn("iat", payload)
        self.assertIn("exp", payload)

    def test_default_lifetime_is_configured_minutes(self) -> None:
        settings = make_settings(JWT_EXPIRE_MINUTES=60)
        token = create_access_token("a" * 32, settings)
        payload = decode_access_token(token, settings)
        self.assertEqual(payload["exp"] - payload["iat"], 3600)

    def test_expired_token_raises_expired(self) -> None:
        token = create_access_token(
            "a" * 32, self.settings, expires_delta=timedelta(seconds=-10)
        )
        with self.assertRaises(TokenExpiredError) as cm:
            decode_access_token(token, self.settings)
        self.assertEqual(cm.exception.reason, "expired")
        self.assertEqual(cm.exception.status_code, 401)

    def test_zero_lifetime_is_expired(self) -> None:
        token = create_access_token("a" * 32, self.settings, expires_delta=timedelta(0))
        with self.assertRaises(TokenExpiredError):
            decode_access_token(token, self.settings)

    def test_other_secret_is_invalid_not_expired(self) -> None:
        other = make_settings(JWT_SECRET="another-secret-key-not-for-production")
        token = create_access_token("a" * 32, other)
        with self.assertRaises(InvalidTokenError) as cm:
            decode_access_token(token, self.settings)
        self.assertEqual(cm.exception.reason, "invalid")

    def test_garbage_is_invalid(self) -> None:
        with self.assertRaises(InvalidTokenError):
            decode_access_token("not.a.jwt", self.settings)

    def test_token_without_user_id_is_invalid(self) -> None:
        token = jwt.encode(
            {"exp": datetime.now(UTC) + timedelta(minutes=5)}, TEST_SECRET, algorithm="HS256"
        )
        with self.assertRaises(InvalidTokenError):
            decode_access_token(token, self.settings)

    def test_token_without_exp_is_invalid(self) -> None:
        token = jwt.encode({USER_ID_CLAIM: "a" * 32}, TEST_SECRET, algorithm="HS256")
        with self.assertRaises(InvalidTokenError):
            decode_access_token(token, self.settings)

    def test_missing_secret_is_a_configuration_error(self) -> None:
        settings = make_settings(JWT_SECRET="   ")
        self.assertIsNone(settings.JWT_SECRET)
        with self.assertRaises(TokenConfigurationError):
            create_access_token("a" * 32, settings)
        token = create_access_token("a" * 32, self.settings)
        with self.assertRaises(TokenConfigurationError):
            decode_access_token(token, settings)


if __name__ == "__main__":
    unittest.main()
