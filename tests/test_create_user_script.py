"""Tests for the create_user command-line script."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from app.scripts import create_user as script
from app.services.users import get_user_by_email

from api_case import PASSWORD, DatabaseTestCase


class TestCreateUserScript(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        patcher = mock.patch.object(script, "SessionLocal", self.Session)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_script(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = script.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_admin(self) -> None:
        code, out, _ = self.run_script("Site Admin", "Admin@Acme.io", PASSWORD, "admin")
        self.assertEqual(code, 0)
        self.assertIn("admin@acme.io", out)
        self.db.expire_all()
        user = get_user_by_email(self.db, "admin@acme.io")
        self.assertEqual(user.role, "admin")
        self.assertTrue(user.check_password(PASSWORD))

    def test_weak_password_is_rejected(self) -> None:
        code, _, err = self.run_script("Site Admin", "admin@acme.io", "weak")
        self.assertEqual(code, 1)
        self.assertIn("password", err)

    def test_duplicate_email_is_rejected(self) -> None:
        self.make_user(email="admin@acme.io")
        code, _, err = self.run_script("Site Admin", "admin@acme.io", PASSWORD)
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)


if __name__ == "__main__":
    unittest.main()
