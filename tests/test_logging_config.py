"""Tests for logging setup."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest

from master_coder.config import Config
from master_coder.logging_config import ROOT_LOGGER, SensitiveDataFilter, setup_logging


@pytest.fixture
def package_logger():
	"""Give each test a package logger without handlers."""
	logger = logging.getLogger(ROOT_LOGGER)
	saved = logger.handlers[:]
	logger.handlers.clear()
	yield logger
	for handler in logger.handlers:
		handler.close()
	logger.handlers[:] = saved


def _console_handler(logger: logging.Logger) -> logging.Handler:
	return next(h for h in logger.handlers if not isinstance(h, RotatingFileHandler))


def test_default_level_matches_config(package_logger):
	"""The CLI passes Config.log_level; both defaults keep INFO off the console."""
	env = {k: v for k, v in os.environ.items() if k != "MASTER_CODER_LOG_LEVEL"}
	with patch.dict(os.environ, env, clear=True):
		setup_logging()
		assert _console_handler(package_logger).level == logging.WARNING

		package_logger.handlers.clear()
		setup_logging(level=Config().log_level)
		assert _console_handler(package_logger).level == logging.WARNING


def test_file_handler_gets_everything(package_logger, tmp_path: Path):
	setup_logging(level="ERROR", log_dir=tmp_path)
	file_handler = next(h for h in package_logger.handlers if isinstance(h, RotatingFileHandler))

	assert package_logger.level == logging.DEBUG
	assert file_handler.level == logging.DEBUG
	assert _console_handler(package_logger).level == logging.ERROR
	assert (tmp_path / "master-coder.log").exists()


def test_repeat_call_only_changes_console_level(package_logger, tmp_path: Path):
	setup_logging(level="WARNING", log_dir=tmp_path)
	setup_logging(level="DEBUG", log_dir=tmp_path)

	assert len(package_logger.handlers) == 2
	assert _console_handler(package_logger).level == logging.DEBUG


def test_sensitive_messages_marked():
	record = logging.LogRecord("master_coder", logging.INFO, __file__, 1, "using api_key abc", None, None)
	assert SensitiveDataFilter().filter(record) is True
	assert record.msg.startswith("[SENSITIVE]")
