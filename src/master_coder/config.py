"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import platformdirs

from .errors import ConfigError
from .models import AutonomyPolicy

APP_NAME = "master-coder"
APP_AUTHOR = "master-coder"

MAX_PARALLEL_LIMIT = 100
MIN_TOKEN_BUDGET = 1_000
MAX_TOKEN_BUDGET = 1_000_000


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	config_file: Path = field(init=False)
	db_path: Path = field(init=False)
	log_dir: Path = field(init=False)

	# Orchestration
	default_mode: str = "balanced"
	max_parallel_workers: int = 5
	token_budget: int = 50_000
	enable_learning: bool = True

	# Worker invocation
	max_retries: int = 2
	retry_base_delay: float = 1.0
	worker_timeout: float = 300.0
	claude_command: str = "claude"
	claude_model: Optional[str] = None

	log_level: str = "WARNING"

	def __post_init__(self) -> None:
		self.config_file = self.config_dir / "config.toml"
		self.db_path = self.data_dir / "master-coder.db"
		self.log_dir = self.data_dir / "logs"

	@property
	def policy(self) -> AutonomyPolicy:
		return AutonomyPolicy.parse(self.default_mode)

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)

	def validate(self) -> None:
		"""
		Check value ranges.

		Raises:
			ConfigError: on the first invalid value
		"""
		AutonomyPolicy.parse(self.default_mode)
		if not 1 <= self.max_parallel_workers <= MAX_PARALLEL_LIMIT:
			raise ConfigError(
				f"max_parallel_workers must be between 1 and {MAX_PARALLEL_LIMIT}, got {self.max_parallel_workers}"
			)
		if not MIN_TOKEN_BUDGET <= self.token_budget <= MAX_TOKEN_BUDGET:
			raise ConfigError(
				f"token_budget must be between {MIN_TOKEN_BUDGET} and {MAX_TOKEN_BUDGET}, got {self.token_budget}"
			)
		if self.max_retries < 0:
			raise ConfigError(f"max_retries must be >= 0, got {self.max_retries}")
		if self.retry_base_delay < 0:
			raise ConfigError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
		if self.worker_timeout <= 0:
			raise ConfigError(f"worker_timeout must be > 0, got {self.worker_timeout}")

	def to_dict(self) -> dict:
		return {f.name: getattr(self, f.name) for f in fields(self)}


PATH_FIELDS = {"config_dir", "data_dir"}
DERIVED_FIELDS = {"config_file", "db_path", "log_dir"}


def _coerce(config: Config, key: str, value):
	"""Convert a raw string or TOML value to the field's type."""
	current = getattr(config, key)
	if key in PATH_FIELDS:
		return Path(os.path.expanduser(str(value)))
	if isinstance(current, bool):
		if isinstance(value, str):
			return value.strip().lower() in ("1", "true", "yes", "on")
		return bool(value)
	if isinstance(current, int):
		try:
			return int(value)
		except (TypeError, ValueError):
			raise ConfigError(f"{key} must be an integer, got {value!r}") from None
	if isinstance(current, float):
		try:
			return float(value)
		except (TypeError, ValueError):
			raise ConfigError(f"{key} must be a number, got {value!r}") from None
	return value


def _apply_env_overrides(config: Config) -> Config:
	"""Apply MASTER_CODER_* environment variable overrides."""
	env_map = {
		"MASTER_CODER_CONFIG_DIR": "config_dir",
		"MASTER_CODER_DATA_DIR": "data_dir",
		"MASTER_CODER_MODE": "default_mode",
		"MASTER_CODER_MAX_PARALLEL": "max_parallel_workers",
		"MASTER_CODER_TOKEN_BUDGET": "token_budget",
		"MASTER_CODER_MAX_RETRIES": "max_retries",
		"MASTER_CODER_WORKER_TIMEOUT": "worker_timeout",
		"MASTER_CODER_CLAUDE_COMMAND": "claude_command",
		"MASTER_CODER_CLAUDE_MODEL": "claude_model",
		"MASTER_CODER_LOG_LEVEL": "log_level",
	}
	for env_key, attr in env_map.items():
		val = os.getenv(env_key)
		if val:
			setattr(config, attr, _coerce(config, attr, val))
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	try:
		with open(toml_path, "rb") as f:
			data = tomllib.load(f)
	except tomllib.TOMLDecodeError as e:
		raise ConfigError(f"config.toml parse error: {e}") from e

	# Accept both a flat file and a [master_coder] table
	data = {**data, **data.pop("master_coder", {})}
	for key, val in data.items():
		if hasattr(config, key) and key not in DERIVED_FIELDS:
			setattr(config, key, _coerce(config, key, val))

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# Env may relocate the config dir before the toml file is read
	config = _apply_env_overrides(config)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.validate()
	config.ensure_dirs()
	return config


def default_config_toml() -> str:
	"""Contents of a freshly written config.toml."""
	return (
		"# master-coder configuration\n"
		"\n"
		"[master_coder]\n"
		'default_mode = "balanced"  # conservative, balanced, trust, interactive\n'
		"max_parallel_workers = 5\n"
		"token_budget = 50000\n"
		"enable_learning = true\n"
		"max_retries = 2\n"
		"worker_timeout = 300\n"
	)


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
