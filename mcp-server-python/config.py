"""
Configuration module for the Job Pipeline MCP Server.

Provides centralized configuration management with support for:
- Environment variables
- Default values
- Path resolution
- Logging configuration
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file at project root
# config.py is in mcp-server-python/, so .env is in parent directory
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


def _parse_int(env_var: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on bad input."""
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring invalid %s=%r, using default %s", env_var, value, default
        )
        return default


def _parse_float(env_var: str, default: float) -> float:
    """Parse a float from an environment variable, falling back on bad input."""
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring invalid %s=%r, using default %s", env_var, value, default
        )
        return default


def _parse_optional_str(env_var: str) -> Optional[str]:
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return None
    return value.strip()


class Config:
    """
    Configuration class for MCP server settings.

    Supports configuration via environment variables (and .env file) with sensible defaults.
    All paths are resolved relative to the repository root.
    """

    def __init__(self):
        """Initialize configuration from environment variables and defaults."""
        # Repository root detection
        self._repo_root = self._find_repo_root()

        # Database configuration
        self.db_path = self._resolve_db_path()

        # Logging configuration
        self.log_level = os.getenv("JOBPIPELINE_LOG_LEVEL", "INFO").upper()
        self.log_file = self._resolve_log_path()

        # Server configuration
        self.server_name = os.getenv("JOBPIPELINE_SERVER_NAME", "job-pipeline-mcp-server")

        # Transition defaults
        self.actor_user_id = _parse_optional_str("JOBPIPELINE_ACTOR_USER_ID")
        self.follow_up_days = _parse_int("JOBPIPELINE_FOLLOW_UP_DAYS", 7)
        self.reminder_type = os.getenv("JOBPIPELINE_REMINDER_TYPE", "email").strip() or "email"

        # bulk_update_application_status defaults
        self.bulk_update_limit = _parse_int("JOBPIPELINE_BULK_UPDATE_LIMIT", 100)

        # Drag activation thresholds
        self.pointer_activation_distance = _parse_float(
            "JOBPIPELINE_POINTER_ACTIVATION_DISTANCE", 8.0
        )
        self.touch_activation_delay_ms = _parse_int("JOBPIPELINE_TOUCH_ACTIVATION_DELAY_MS", 150)
        self.touch_activation_tolerance = _parse_float(
            "JOBPIPELINE_TOUCH_ACTIVATION_TOLERANCE", 8.0
        )

    def _find_repo_root(self) -> Path:
        """
        Find the repository root directory.

        Returns:
            Path to repository root
        """
        current_file = Path(__file__).resolve()
        # config.py is in mcp-server-python/, so parent is repo root
        return current_file.parent.parent

    def _resolve_db_path(self) -> Path:
        """
        Resolve the database path from environment or default.

        Resolution order:
        1. JOBPIPELINE_DB environment variable (absolute or relative)
        2. JOBPIPELINE_ROOT/data/pipeline/jobs.db
        3. Default: <repo_root>/data/pipeline/jobs.db

        Returns:
            Resolved absolute Path to database
        """
        db_env = os.getenv("JOBPIPELINE_DB")
        if db_env:
            db_path = Path(db_env)
            if db_path.is_absolute():
                return db_path
            return self._repo_root / db_path

        root_env = os.getenv("JOBPIPELINE_ROOT")
        if root_env:
            return Path(root_env) / "data" / "pipeline" / "jobs.db"

        return self._repo_root / "data" / "pipeline" / "jobs.db"

    def _resolve_log_path(self) -> Optional[Path]:
        """
        Resolve the log file path from environment.

        If JOBPIPELINE_LOG_FILE is set, logs will be written to that file.
        Otherwise, logs go to stderr only.
        """
        log_env = os.getenv("JOBPIPELINE_LOG_FILE")
        if not log_env:
            return None

        log_path = Path(log_env)
        if log_path.is_absolute():
            return log_path
        return self._repo_root / log_path

    def setup_logging(self):
        """
        Configure logging based on configuration settings.

        Sets up logging to stderr and optionally to a file.
        Log level is controlled by JOBPIPELINE_LOG_LEVEL.
        """
        numeric_level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)

        # Remove existing handlers to avoid duplicates
        root_logger.handlers.clear()

        # stdout carries the MCP stdio transport, so logs always go to stderr
        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        root_logger.addHandler(stderr_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.info(f"Logging to file: {self.log_file}")

        logging.info(f"Log level set to: {self.log_level}")
        logging.info(f"Repository root: {self._repo_root}")
        logging.info(f"Database path: {self.db_path}")

    def get_db_path_str(self) -> str:
        """Database path as string for use in tool handlers."""
        return str(self.db_path)

    def drag_options(self) -> dict:
        """Keyword arguments for DragController activation thresholds."""
        return {
            "pointer_activation_distance": self.pointer_activation_distance,
            "touch_activation_delay_ms": self.touch_activation_delay_ms,
            "touch_activation_tolerance": self.touch_activation_tolerance,
        }

    def validate(self) -> list[str]:
        """
        Validate configuration and return any warnings.

        Returns:
            List of warning messages (empty if all valid)
        """
        warnings = []

        if not self.db_path.exists():
            warnings.append(
                f"Database file not found: {self.db_path}. "
                "The server will start but tools will fail until the database is created."
            )

        if self.log_file:
            log_dir = self.log_file.parent
            if not log_dir.exists():
                try:
                    log_dir.mkdir(parents=True, exist_ok=True)
                except Exception as e:
                    warnings.append(f"Cannot create log directory {log_dir}: {e}")
            elif not os.access(log_dir, os.W_OK):
                warnings.append(f"Log directory not writable: {log_dir}")

        if self.follow_up_days <= 0:
            warnings.append(
                f"JOBPIPELINE_FOLLOW_UP_DAYS must be positive, got {self.follow_up_days}. "
                "Follow-up reminders will be due immediately."
            )

        if self.bulk_update_limit <= 0:
            warnings.append(
                f"JOBPIPELINE_BULK_UPDATE_LIMIT must be positive, got {self.bulk_update_limit}. "
                "Every non-empty bulk update will be rejected."
            )

        return warnings


# Global configuration instance
config = Config()


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Global Config instance
    """
    return config
