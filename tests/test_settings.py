"""Tests for environment based settings."""

import os
import unittest
from unittest import mock

from scrapfly_client.settings import DEFAULT_HOST, ClientSettings, get_or_throw


class TestClientSettings(unittest.TestCase):
    """Verify reading settings from environment variables."""

    @mock.patch("scrapfly_client.settings.load_dotenv")
    def test_defaults(self, _load_dotenv):
        with mock.patch.dict(os.environ, {"SCRAPFLY_API_KEY": "k"}, clear=True):
            settings = ClientSettings.from_env()
        self.assertEqual(settings.key, "k")
        self.assertEqual(settings.host, DEFAULT_HOST)
        self.assertEqual(settings.retries, 3)
        self.assertEqual(settings.retry_policy, "fixed")
        self.assertEqual(settings.retry_delay, 1.0)
        self.assertTrue(settings.verify_ssl)

    @mock.patch("scrapfly_client.settings.load_dotenv")
    def test_overrides(self, _load_dotenv):
        env = {
            "SCRAPFLY_API_KEY": "k",
            "SCRAPFLY_HOST": "https://api.example.test",
            "SCRAPFLY_TIMEOUT": "30",
            "SCRAPFLY_RETRIES": "5",
            "SCRAPFLY_RETRY_DELAY": "0.5",
            "SCRAPFLY_RETRY_POLICY": "Exponential",
            "SCRAPFLY_RETRY_MAX_DELAY": "12",
            "SCRAPFLY_VERIFY_SSL": "false",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = ClientSettings.from_env()
        self.assertEqual(settings.host, "https://api.example.test")
        self.assertEqual(settings.timeout, 30.0)
        self.assertEqual(settings.retries, 5)
        self.assertEqual(settings.retry_delay, 0.5)
        self.assertEqual(settings.retry_policy, "exponential")
        self.assertEqual(settings.retry_max_delay, 12.0)
        self.assertFalse(settings.verify_ssl)

    @mock.patch("scrapfly_client.settings.load_dotenv")
    def test_missing_key(self, _load_dotenv):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                ClientSettings.from_env()

    def test_get_or_throw(self):
        with mock.patch.dict(os.environ, {"SOME_VAR": "x"}):
            self.assertEqual(get_or_throw("SOME_VAR"), "x")


if __name__ == "__main__":
    unittest.main()
