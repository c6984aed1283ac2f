"""Centralized logging configuration for master-coder."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "master_coder"


class SensitiveDataFilter(logging.Filter):
	"""Marks records that look like they carry credentials."""

	SENSITIVE_PATTERNS = (
		"password",
		"secret",
		"api_key",
		"authorization",
		"anthropic_api",
	)

	def filter(self, record: logging.LogRecord) -> bool:
		if isinstance(record.msg, str):
			msg_lower = record.msg.lower()
			if any(pattern in msg_lower for pattern in self.SENSITIVE_PATTERNS):
				record.msg = f"[SENSITIVE] {record.msg}"
		return True


def setup_logging(
	level: Optional[str] = None,
	log_dir: Optional[Path] = None,
	console: bool = True,
) -> logging.Logger:
	"""
	Set up logging with console and rotating file handlers.

	Args:
		level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to
			MASTER_CODER_LOG_LEVEL or WARNING.
		log_dir: Directory for log files; no file handler when None
		console: Attach a stderr handler

	Returns:
		The package root logger
	"""
	level = level or os.getenv("MASTER_CODER_LOG_LEVEL", "WARNING")
	log_level = getattr(logging, level.upper(), logging.WARNING)

	logger = logging.getLogger(ROOT_LOGGER)
	logger.setLevel(logging.DEBUG if log_dir else log_level)

	# Avoid duplicate handlers on repeated calls
	if logger.handlers:
		for handler in logger.handlers:
			if not isinstance(handler, RotatingFileHandler):
				handler.setLevel(log_level)
		return logger

	detailed_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	simple_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] %(message)s",
		datefmt="%H:%M:%S",
	)

	if console:
		# stderr keeps stdout free for rendered output
		console_handler = logging.StreamHandler(sys.stderr)
		console_handler.setLevel(log_level)
		console_handler.setFormatter(simple_formatter)
		logger.addHandler(console_handler)

	if log_dir is not None:
		log_path = Path(log_dir)
		log_path.mkdir(parents=True, exist_ok=True)
		file_handler = RotatingFileHandler(
			log_path / "master-coder.log",
			maxBytes=10 * 1024 * 1024,  # 10 MB
			backupCount=5,
		)
		file_handler.setLevel(logging.DEBUG)  # File gets all logs
		file_handler.setFormatter(detailed_formatter)
		file_handler.addFilter(SensitiveDataFilter())
		logger.addHandler(file_handler)

	return logger
