import math
import unittest

from jose import jwt

from caucus_api.auth import (
    ALGORITHM,
    CredentialChecker,
    SessionTokenManager,
)
from caucus_api.errors import ConfigurationMissing, Unauthorized

SECRET = "s" * 40
DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


class CredentialCheckerTests(unittest.TestCase):
    def test_exact_match_only(self):
        checker = CredentialChecker("correct-horse")

        self.assertTrue(checker.verify("correct-horse"))
        self.assertFalse(checker.verify("correct-horse "))
        self.assertFalse(checker.verify("Correct-horse"))
        self.assertFalse(checker.verify("correct-hors"))
        self.assertFalse(checker.verify(""))

    def test_non_string_submissions_are_rejected(self):
        checker = CredentialChecker("correct-horse")
        self.assertFalse(checker.verify(None))
        self.assertFalse(checker.verify(12345678))

    def test_missing_password_is_a_configuration_error(self):
        checker = CredentialChecker(None)
        self.assertFalse(checker.configured)
        with self.assertRaises(ConfigurationMissing) as ctx:
            checker.verify("anything")
        self.assertEqual(ctx.exception.setting, "ADMIN_PASSWORD")
        self.assertEqual(ctx.exception.status_code, 500)


class SessionTokenManagerTests(unittest.TestCase):
    def setUp(self):
        self.issued_at = 1_700_000_000_000
        self.clock = FakeClock(self.issued_at)
        self.sessions = SessionTokenManager(SECRET, max_age_ms=DAY_MS, clock=self.clock)

    def test_issue_and_verify(self):
        token = self.sessions.issue()
        payload = self.sessions.verify(token)

        self.assertIsNotNone(payload)
        self.assertTrue(payload.authenticated)
        self.assertEqual(payload.role, "admin")
        self.assertEqual(payload.issued_at_ms, self.issued_at)
        self.assertEqual(payload.expires_at, math.ceil((self.issued_at + DAY_MS) / 1000))

    def test_claims_are_readable_with_the_secret(self):
        claims = jwt.decode(
            self.sessions.issue(),
            SECRET,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
        self.assertEqual(claims["timestamp"], self.issued_at)
        self.assertEqual(claims["role"], "admin")
        self.assertIs(claims["authenticated"], True)

    def test_tampered_signature_is_rejected(self):
        token = self.sessions.issue()
        header, body, signature = token.split(".")
        flipped = ("B" if signature[0] == "A" else "A") + signature[1:]

        self.assertIsNone(self.sessions.verify(f"{header}.{body}.{flipped}"))

    def test_token_signed_with_other_secret_is_rejected(self):
        other = SessionTokenManager("o" * 40, clock=self.clock)
        self.assertIsNone(self.sessions.verify(other.issue()))

    def test_garbage_and_missing_tokens_are_rejected(self):
        self.assertIsNone(self.sessions.verify(None))
        self.assertIsNone(self.sessions.verify(""))
        self.assertIsNone(self.sessions.verify("not-a-jwt"))

    def test_forged_expiry_does_not_outlive_issue_time(self):
        forged = jwt.encode(
            {
                "authenticated": True,
                "role": "admin",
                "timestamp": self.issued_at - 25 * 60 * 60 * 1000,
                "exp": self.issued_at // 1000 + 3600,
            },
            SECRET,
            algorithm=ALGORITHM,
        )
        self.assertIsNone(self.sessions.verify(forged))

    def test_token_without_timestamp_is_rejected(self):
        token = jwt.encode(
            {"authenticated": True, "role": "admin", "exp": self.issued_at // 1000 + 60},
            SECRET,
            algorithm=ALGORITHM,
        )
        self.assertIsNone(self.sessions.verify(token))

    def test_expiry_boundaries(self):
        token = self.sessions.issue()

        self.clock.now = self.issued_at + DAY_MS - 1
        self.assertIsNotNone(self.sessions.verify(token))

        self.clock.now = self.issued_at + DAY_MS
        self.assertIsNone(self.sessions.verify(token))

        self.clock.now = self.issued_at + DAY_MS + 1
        self.assertIsNone(self.sessions.verify(token))

    def test_age_check_applies_when_exp_rounds_up(self):
        issued_at = 1_700_000_000_500
        clock = FakeClock(issued_at)
        sessions = SessionTokenManager(SECRET, max_age_ms=DAY_MS, clock=clock)
        token = sessions.issue()

        clock.now = issued_at + DAY_MS
        self.assertIsNotNone(sessions.verify(token))

        # exp (rounded up to whole seconds) is still in the future here.
        clock.now = issued_at + DAY_MS + 1
        self.assertIsNone(sessions.verify(token))

    def test_missing_secret(self):
        sessions = SessionTokenManager(None, clock=self.clock)
        with self.assertRaises(ConfigurationMissing) as ctx:
            sessions.issue()
        self.assertEqual(str(ctx.exception), "JWT_SECRET is not configured")
        self.assertIsNone(sessions.verify(self.sessions.issue()))

    def test_require_auth(self):
        payload = self.sessions.require_auth(self.sessions.issue())
        self.assertEqual(payload.role, "admin")
        with self.assertRaises(Unauthorized):
            self.sessions.require_auth(None)

    def test_require_auth_rejects_unauthenticated_claims(self):
        token = jwt.encode(
            {
                "authenticated": False,
                "role": "admin",
                "timestamp": self.issued_at,
                "exp": self.issued_at // 1000 + 3600,
            },
            SECRET,
            algorithm=ALGORITHM,
        )

        payload = self.sessions.verify(token)
        self.assertIsNotNone(payload)
        self.assertFalse(payload.authenticated)
        with self.assertRaises(Unauthorized):
            self.sessions.require_auth(token)

    def test_max_age_seconds(self):
        self.assertEqual(self.sessions.max_age_seconds, 86400)


if __name__ == "__main__":
    unittest.main()
