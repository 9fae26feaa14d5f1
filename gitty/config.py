"""Configuration management for Gitty."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .errors import ConfigurationError
from .platform import get_git_executable, normalize_path, validate_git_availability, supports_pseudo_terminal

load_dotenv()  # Load .env file if it exists


@dataclass
class Config:
    """Configuration class for Gitty with validation and defaults."""

    # Git
    git_executable: str = field(default_factory=get_git_executable)

    # Interactive push/pull
    sync_read_size: int = 1024
    sync_force_c_locale: bool = True  # prompts are matched in English
    echo_sync_output: bool = True

    # Logging
    log_level: str = "INFO"

    # Repository served by the MCP tool server
    repository_path: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.repository_path, str):
            self.repository_path = Path(self.repository_path)
        self.repository_path = normalize_path(self.repository_path)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")
        self.log_level = self.log_level.upper()

        if not self.git_executable:
            raise ValueError("git_executable must not be empty")

        if self.sync_read_size <= 0:
            raise ValueError("sync_read_size must be positive")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def load_configuration() -> Config:
    """Load configuration from environment variables."""
    try:
        return Config(
            git_executable=os.getenv("GITTY_GIT_EXECUTABLE", get_git_executable()),
            log_level=os.getenv("GITTY_LOG_LEVEL", "INFO").upper(),
            sync_read_size=int(os.getenv("GITTY_SYNC_READ_SIZE", "1024")),
            sync_force_c_locale=_env_flag("GITTY_SYNC_C_LOCALE", "true"),
            echo_sync_output=_env_flag("GITTY_ECHO_SYNC_OUTPUT", "true"),
            repository_path=Path(os.getenv("GITTY_REPOSITORY", str(Path.cwd()))),
        )
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Configuration error: {e}")


def validate_configuration(config: Config) -> List[str]:
    """Validate configuration and return any errors or warnings."""
    errors = []

    git_available, git_error = validate_git_availability(config.git_executable)
    if not git_available:
        errors.append(f"ERROR: Git not available: {git_error}")

    if not config.repository_path.is_dir():
        errors.append(f"ERROR: Repository path is not a directory: {config.repository_path}")
    elif not (config.repository_path / ".git").exists():
        errors.append(f"WARNING: Repository path is not a Git repository yet: {config.repository_path}")

    if not supports_pseudo_terminal():
        errors.append("WARNING: Pseudo-terminals are unavailable on this platform; push and pull will fail")

    if config.sync_read_size < 64:
        logging.getLogger('gitty.config').debug(
            f"Small sync_read_size ({config.sync_read_size}) splits prompts across chunks more often"
        )
        errors.append("WARNING: sync_read_size below 64 may split credential prompts across chunks")

    return errors
