"""
Configuration management for Conductor.

Reads configuration from a .env file and environment variables with
sensible defaults. Variables already present in the environment win over
the .env file.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from conductor.clock.runtime_clock import MAX_TIME_SCALE, MIN_TIME_SCALE

DEFAULT_ENV_FILE = Path(".env")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger(__name__)


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_file = os.getenv("CONDUCTOR_ENV_FILE", str(DEFAULT_ENV_FILE))
    env_path = Path(env_file)

    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars
        logger.debug(f"Loaded environment variables from {env_path}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PlayerConfig:
    """Player configuration loaded from .env file and environment variables."""

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # Runtime clock driver
    tick_interval_ms: int = 100
    time_scale: float = 1.0

    # Queue modes at startup
    probability_mode: bool = True
    shuffle: bool = False
    repeat: bool = False

    # Shared random source; None = unseeded
    seed: Optional[int] = None

    @property
    def tick_interval_sec(self) -> float:
        return self.tick_interval_ms / 1000.0

    @classmethod
    def load_config(cls) -> "PlayerConfig":
        """
        Load configuration from environment variables.

        Returns:
            PlayerConfig instance with loaded values

        Raises:
            ValueError: If configuration is invalid
        """
        # Load .env file first (if it exists)
        _load_env_file()

        log_level = os.getenv("CONDUCTOR_LOG_LEVEL", "INFO").upper()
        log_file_str = os.getenv("CONDUCTOR_LOG_FILE", "")
        log_file = Path(os.path.expanduser(log_file_str)) if log_file_str else None

        tick_interval_str = os.getenv("CONDUCTOR_TICK_INTERVAL_MS", "100")
        try:
            tick_interval_ms = int(tick_interval_str)
        except ValueError:
            raise ValueError(f"Invalid CONDUCTOR_TICK_INTERVAL_MS: {tick_interval_str} (must be an integer)")

        time_scale_str = os.getenv("CONDUCTOR_TIME_SCALE", "1.0")
        try:
            time_scale = float(time_scale_str)
        except ValueError:
            raise ValueError(f"Invalid CONDUCTOR_TIME_SCALE: {time_scale_str} (must be a number)")

        seed_str = os.getenv("CONDUCTOR_SEED", "")
        seed = None
        if seed_str:
            try:
                seed = int(seed_str)
            except ValueError:
                raise ValueError(f"Invalid CONDUCTOR_SEED: {seed_str} (must be an integer)")

        config = cls(
            log_level=log_level,
            log_file=log_file,
            tick_interval_ms=tick_interval_ms,
            time_scale=time_scale,
            probability_mode=_parse_bool(os.getenv("CONDUCTOR_PROBABILITY_MODE", "true")),
            shuffle=_parse_bool(os.getenv("CONDUCTOR_SHUFFLE", "")),
            repeat=_parse_bool(os.getenv("CONDUCTOR_REPEAT", "")),
            seed=seed,
        )

        # Validate configuration
        config.validate()

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level} (must be one of {', '.join(VALID_LOG_LEVELS)})")

        if self.tick_interval_ms <= 0:
            raise ValueError(f"Invalid tick interval: {self.tick_interval_ms} (must be positive)")

        if not MIN_TIME_SCALE <= self.time_scale <= MAX_TIME_SCALE:
            raise ValueError(
                f"Invalid time scale: {self.time_scale} (must be between {MIN_TIME_SCALE} and {MAX_TIME_SCALE})"
            )
