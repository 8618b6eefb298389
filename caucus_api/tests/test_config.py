import os
import unittest
from unittest import mock

from caucus_api.config import Settings


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.api_prefix, "/api")
        self.assertEqual(settings.environment, "development")
        self.assertFalse(settings.is_production)
        self.assertFalse(settings.trust_proxy_headers)
        self.assertEqual((settings.server_host, settings.server_port), ("127.0.0.1", 8000))
        self.assertEqual(settings.login_max_attempts, 5)
        self.assertEqual(settings.login_window_ms, 15 * 60 * 1000)
        self.assertEqual(settings.contact_max_submissions, 3)
        self.assertEqual(settings.session_max_age_ms, 24 * 60 * 60 * 1000)

    def test_node_env_alias(self):
        with mock.patch.dict(os.environ, {"NODE_ENV": "production"}, clear=True):
            settings = Settings(_env_file=None)
        self.assertTrue(settings.is_production)

    def test_env_variables(self):
        env = {
            "ADMIN_PASSWORD": "from-env-pass",
            "JWT_SECRET": "j" * 32,
            "CAUCUS_USE_IN_MEMORY_BACKENDS": "true",
            "LOGIN_MAX_ATTEMPTS": "7",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.admin_password, "from-env-pass")
        self.assertTrue(settings.use_in_memory_backends)
        self.assertEqual(settings.login_max_attempts, 7)
        self.assertEqual(settings.configuration_errors(), [])

    def test_configuration_errors(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            missing = Settings(_env_file=None).configuration_errors()
            weak = Settings(
                _env_file=None,
                admin_password="short",
                jwt_secret="too-short",
                database_url="mongodb://localhost/caucus",
            ).configuration_errors()

        self.assertEqual(
            missing,
            [
                "Missing required environment variable: ADMIN_PASSWORD",
                "Missing required environment variable: JWT_SECRET",
            ],
        )
        self.assertEqual(len(weak), 3)
        self.assertIn("ADMIN_PASSWORD must be at least 8 characters long", weak)
        self.assertTrue(any(e.startswith("DATABASE_URL") for e in weak))


if __name__ == "__main__":
    unittest.main()
