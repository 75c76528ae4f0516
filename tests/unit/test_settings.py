"""
AuthGateSettings のユニットテスト
"""

import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from pydantic import ValidationError

from authgate.config.settings import AuthGateSettings, load_settings
from authgate.errors import ConfigException, ErrorCode


class TestAuthGateSettings(unittest.TestCase):
    """AuthGateSettings の基本動作を検証する"""

    def setUp(self):
        self.original_env = os.environ.copy()
        for key in list(os.environ):
            if key.startswith("AUTHGATE_"):
                del os.environ[key]

    def tearDown(self):
        os.environ.clear()
        os.environ.update(self.original_env)

    def test_default_values(self):
        """デフォルト値が適用される"""
        settings = AuthGateSettings()

        self.assertIsNone(settings.catalog_path)
        self.assertTrue(settings.allow_import)
        self.assertIsNone(settings.max_sessions)
        self.assertEqual(settings.session_lock_stripes, 64)
        self.assertIsNone(settings.stop_timeout)

    def test_env_values_are_applied(self):
        """環境変数が反映される"""
        with patch.dict(
            os.environ,
            {
                "AUTHGATE_MAX_SESSIONS": "10",
                "AUTHGATE_ALLOW_IMPORT": "false",
                "AUTHGATE_SESSION_LOCK_STRIPES": "8",
            },
        ):
            settings = AuthGateSettings()

        self.assertEqual(settings.max_sessions, 10)
        self.assertFalse(settings.allow_import)
        self.assertEqual(settings.session_lock_stripes, 8)

    def test_env_overrides_init(self):
        """env > init の優先順位"""
        with patch.dict(os.environ, {"AUTHGATE_MAX_SESSIONS": "3"}):
            settings = AuthGateSettings(max_sessions=99)
        self.assertEqual(settings.max_sessions, 3)

    def test_invalid_values_are_rejected(self):
        with self.assertRaises(ValidationError):
            AuthGateSettings(max_sessions=0)
        with self.assertRaises(ValidationError):
            AuthGateSettings(session_lock_stripes=0)
        with self.assertRaises(ValidationError):
            AuthGateSettings(stop_timeout=0)

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(ValidationError):
            AuthGateSettings(unknown_option=True)

    def test_catalog_path_must_exist(self):
        with TemporaryDirectory() as tmp:
            missing = Path(tmp) / "catalog.yaml"
            with self.assertRaises(ValidationError):
                AuthGateSettings(catalog_path=missing)

            missing.write_text("providers: {}\n", encoding="utf-8")
            settings = AuthGateSettings(catalog_path=missing)
            self.assertEqual(settings.catalog_path, missing)
            self.assertEqual(settings.dump_safe()["catalog_path"], str(missing))


class TestLoadSettings(unittest.TestCase):
    """load_settings のエラー変換を検証する"""

    def setUp(self):
        self.original_env = os.environ.copy()
        for key in list(os.environ):
            if key.startswith("AUTHGATE_"):
                del os.environ[key]

    def tearDown(self):
        os.environ.clear()
        os.environ.update(self.original_env)

    def test_valid_settings(self):
        settings = load_settings(max_sessions=5)
        self.assertIsInstance(settings, AuthGateSettings)
        self.assertEqual(settings.max_sessions, 5)

    def test_invalid_env_becomes_config_error(self):
        """環境変数の不正値は CONFIG_001 の ConfigException になる"""
        with patch.dict(os.environ, {"AUTHGATE_MAX_SESSIONS": "0"}):
            with self.assertLogs("authgate.config.settings", level="DEBUG") as logs:
                with self.assertRaises(ConfigException) as ctx:
                    load_settings()

        error = ctx.exception.error
        self.assertEqual(error.code, ErrorCode.CONFIG_INVALID_VALUE.value)
        self.assertFalse(error.recoverable)
        self.assertIsInstance(ctx.exception.__cause__, ValidationError)
        self.assertTrue(any(e.startswith("max_sessions:") for e in error.details["errors"]))
        self.assertEqual(logs.records[0].levelno, ctx.exception.log_level)

    def test_missing_catalog_path_becomes_config_error(self):
        with TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigException) as ctx:
                load_settings(catalog_path=Path(tmp) / "missing.yaml")
        self.assertIn("catalog_path", ctx.exception.error.message)


if __name__ == "__main__":
    unittest.main()
