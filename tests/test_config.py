import os
import unittest
from unittest.mock import patch

from app.config import ConfigurationError, Settings, get_settings
from app.providers.loader import get_stream_client
from app.providers.open_meteo import OpenMeteoStreamClient


class TestGetSettings(unittest.TestCase):
    def test_missing_url(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigurationError):
                get_settings()

    def test_url_must_be_websocket(self):
        with patch.dict(os.environ, {"OPEN_METEO_URL": "http://localhost:8765"}, clear=True):
            with self.assertRaises(ConfigurationError):
                get_settings()

    def test_defaults(self):
        with patch.dict(os.environ, {"OPEN_METEO_URL": "ws://localhost:8765"}, clear=True):
            settings = get_settings()

        self.assertEqual(settings.open_meteo_url, "ws://localhost:8765")
        self.assertEqual(settings.reconnect_delay_seconds, 5.0)
        self.assertEqual(settings.provider, "OPEN_METEO")
        self.assertEqual(settings.port, 3333)
        self.assertEqual(settings.cors_origins, [])
        self.assertEqual(settings.api_token, "stub-token")
        self.assertEqual(settings.rate_limit, "100/minute")

    def test_overrides(self):
        env = {
            "OPEN_METEO_URL": "wss://stream.example.com/weather",
            "RECONNECT_DELAY_SECONDS": "2.5",
            "PORT": "8080",
            "CORS_ORIGIN": "http://a.test, http://b.test",
            "LOG_LEVEL": "debug",
            "RATE_LIMIT": "10/second",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = get_settings()

        self.assertEqual(settings.reconnect_delay_seconds, 2.5)
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.cors_origins, ["http://a.test", "http://b.test"])
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.rate_limit, "10/second")

    def test_bad_reconnect_delay(self):
        for raw in ["0", "-1", "soon"]:
            with self.subTest(raw=raw):
                env = {"OPEN_METEO_URL": "ws://localhost:8765", "RECONNECT_DELAY_SECONDS": raw}
                with patch.dict(os.environ, env, clear=True):
                    with self.assertRaises(ConfigurationError):
                        get_settings()


class TestStreamLoader(unittest.TestCase):
    def test_open_meteo_client(self):
        settings = Settings(open_meteo_url="ws://localhost:8765", reconnect_delay_seconds=1.5)
        client = get_stream_client(settings, sink=object())

        self.assertIsInstance(client, OpenMeteoStreamClient)
        self.assertEqual(client.url, "ws://localhost:8765")
        self.assertEqual(client.reconnect_delay_seconds, 1.5)

    def test_unknown_provider(self):
        settings = Settings(open_meteo_url="ws://localhost:8765", provider="NOAA")
        with self.assertRaises(ConfigurationError):
            get_stream_client(settings, sink=object())


if __name__ == "__main__":
    unittest.main()
