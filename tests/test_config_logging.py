"""Tests for configuration, logging setup, exceptions and the Result type."""
import json
import logging
import os
import sys
import unittest
from unittest.mock import patch

from pawnledger.config import GitHubConfig, LedgerConfig, LocalMode, RemoteMode
from pawnledger.engine import LedgerEngine
from pawnledger.exceptions import (
    DuplicateBillNumberError,
    LoanNotFoundError,
    PawnLedgerError,
    ValidationError,
)
from pawnledger.logging import JsonFormatter, get_logger, setup_logging
from pawnledger.remote import GitHubMirror
from pawnledger.result import Result


class TestLedgerConfig(unittest.TestCase):

    def tearDown(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        root.setLevel(logging.WARNING)
        logging.getLogger("pawnledger").setLevel(logging.NOTSET)

    def test_defaults_are_local(self):
        config = LedgerConfig()
        self.assertEqual(config.resolve_storage_mode(), LocalMode())

    def test_complete_github_config_is_remote(self):
        github = GitHubConfig(owner="shop", repo="data", token="t", branch="main")
        mode = LedgerConfig(storage_mode="github", github=github).resolve_storage_mode()
        self.assertIsInstance(mode, RemoteMode)
        self.assertEqual(mode.github, github)

    def test_incomplete_github_config_falls_back(self):
        github = GitHubConfig(owner="shop", repo=None, token=None)
        mode = LedgerConfig(storage_mode="github", github=github).resolve_storage_mode()
        self.assertIsInstance(mode, LocalMode)
        self.assertIn("repo", mode.reason)
        self.assertIn("token", mode.reason)

    @patch.dict(os.environ, {
        "PAWNLEDGER_DB": "/tmp/shop.db",
        "PAWNLEDGER_STORAGE_MODE": "GitHub",
        "PAWNLEDGER_GITHUB_OWNER": "shop",
        "PAWNLEDGER_GITHUB_REPO": "data",
        "PAWNLEDGER_GITHUB_TOKEN": "secret",
        "PAWNLEDGER_REMOTE_RETRIES": "5",
    }, clear=True)
    def test_from_env(self):
        config = LedgerConfig.from_env()
        self.assertEqual(config.db_path, "/tmp/shop.db")
        self.assertEqual(config.storage_mode, "github")
        self.assertEqual(config.github.branch, "main")
        self.assertEqual(config.remote_retries, 5)
        self.assertIsInstance(config.resolve_storage_mode(), RemoteMode)

    def test_engine_from_config_remote(self):
        github = GitHubConfig(owner="shop", repo="data", token="t", branch="main")
        engine = LedgerEngine.from_config(
            LedgerConfig(db_path=":memory:", storage_mode="github", github=github, remote_timeout=3)
        )
        try:
            self.assertTrue(engine.store.is_remote)
            self.assertIsInstance(engine.store.mirror, GitHubMirror)
            self.assertEqual(engine.store.mirror.timeout, 3)
        finally:
            engine.close()

    def test_engine_from_config_warns_on_fallback(self):
        config = LedgerConfig(db_path=":memory:", storage_mode="github", github=GitHubConfig())
        with self.assertLogs("pawnledger.engine", level="WARNING"):
            engine = LedgerEngine.from_config(config)
        self.assertFalse(engine.store.is_remote)
        self.assertIsNone(engine.store.mirror)
        engine.close()

    def test_engine_from_config_applies_logging(self):
        engine = LedgerEngine.from_config(
            LedgerConfig(db_path=":memory:", log_level="DEBUG", log_format="json")
        )
        engine.close()
        self.assertEqual(logging.getLogger("pawnledger").level, logging.DEBUG)
        self.assertIsInstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    @patch.dict(os.environ, {
        "PAWNLEDGER_DB": ":memory:",
        "PAWNLEDGER_LOG_LEVEL": "warning",
        "PAWNLEDGER_LOG_FORMAT": "JSON",
    }, clear=True)
    def test_logging_settings_from_env(self):
        config = LedgerConfig.from_env()
        self.assertEqual(config.log_format, "json")
        LedgerEngine.from_config(config).close()
        self.assertEqual(logging.getLogger("pawnledger").level, logging.WARNING)


class TestLogging(unittest.TestCase):

    def tearDown(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        root.setLevel(logging.WARNING)
        logging.getLogger("pawnledger").setLevel(logging.NOTSET)

    def test_setup_standard(self):
        setup_logging("DEBUG")
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)

    def test_setup_json(self):
        setup_logging("INFO", format_type="json")
        handler = logging.getLogger().handlers[0]
        self.assertIsInstance(handler.formatter, JsonFormatter)

    def test_json_formatter(self):
        record = logging.LogRecord("pawnledger.test", logging.INFO, __file__, 1, "hello %s", ("shop",), None)
        data = json.loads(JsonFormatter().format(record))
        self.assertEqual(data["message"], "hello shop")
        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "pawnledger.test")

    def test_json_formatter_includes_exception(self):
        try:
            raise RuntimeError("disk full")
        except RuntimeError:
            record = logging.LogRecord("pawnledger.test", logging.ERROR, __file__, 1,
                                       "write failed", None, sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        self.assertIn("RuntimeError: disk full", data["exception"])
        self.assertEqual(set(data), {"timestamp", "level", "logger", "message", "exception"})

    def test_get_logger(self):
        self.assertEqual(get_logger("pawnledger.x").name, "pawnledger.x")


class TestExceptionsAndResult(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(DuplicateBillNumberError, ValidationError))
        self.assertTrue(issubclass(ValidationError, PawnLedgerError))

    def test_details_in_str(self):
        error = LoanNotFoundError(bill_number="G-404")
        self.assertEqual(error.details, {'bill_number': "G-404"})
        self.assertIn("G-404", str(error))

    def test_result(self):
        self.assertTrue(Result.ok(5))
        self.assertEqual(Result.ok(5).unwrap(), 5)
        failed = Result.fail("nope", "SYNC", value="partial")
        self.assertFalse(failed)
        self.assertEqual(failed.unwrap_or(0), 0)
        self.assertEqual(failed.value, "partial")
        with self.assertRaises(ValueError):
            failed.unwrap()


if __name__ == "__main__":
    unittest.main(verbosity=2)
