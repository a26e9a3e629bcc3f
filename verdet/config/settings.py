"""
Configuration management for the VeRDET application.
"""

import os
import json
import math
import numbers
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, field
from dotenv import load_dotenv

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class VerdetConfig:
    """Algorithm parameters for one solve.

    ``alpha`` is both the TV regularization weight and the segment merge
    threshold. Larger values produce more de-noising and fewer segments.
    Defaults assume series values between 0 and 1.
    """
    alpha: float = 1 / 20.0
    tolerance: float = 1e-4
    max_iterations: int = 100

    def validate(self):
        """Raise ConfigurationError if any parameter is out of range."""
        if isinstance(self.alpha, bool) or not isinstance(self.alpha, numbers.Real):
            raise ConfigurationError(f"alpha must be a number, got {self.alpha!r}")
        if not math.isfinite(self.alpha) or self.alpha <= 0:
            raise ConfigurationError(f"alpha must be a finite value > 0, got {self.alpha}")

        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, numbers.Real):
            raise ConfigurationError(f"tolerance must be a number, got {self.tolerance!r}")
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ConfigurationError(f"tolerance must be a finite value > 0, got {self.tolerance}")

        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, numbers.Integral):
            raise ConfigurationError(
                f"max_iterations must be an integer, got {self.max_iterations!r}"
            )
        if self.max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )


@dataclass
class ProcessingConfig:
    """Batch processing configuration."""
    # Resource limits
    max_workers: int = 4

    # Series with non-finite samples, or that the solver rejects, are left as
    # NaN instead of failing
    skip_invalid: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"

    # Log to console
    console_logging: bool = True

    # Log format
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class SystemConfig:
    """Complete system configuration."""
    verdet: VerdetConfig = field(default_factory=VerdetConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = "development"  # development, staging, production


class ConfigManager:
    """Manages application configuration from various sources."""

    def __init__(self, config_file: str = None, env_file: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to JSON configuration file
            env_file: Path to environment variables file
        """
        self.config_file = config_file
        self.env_file = env_file
        self._config = None

        # Load environment variables
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)
            logger.info(f"Loaded environment variables from {env_file}")

        self._load_config()

    def _load_config(self):
        """Load configuration from all sources."""
        # Start with default configuration
        config_dict = self._get_default_config()

        # Override with file configuration if exists
        if self.config_file and os.path.exists(self.config_file):
            file_config = self._load_from_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_file}")

        # Override with environment variables
        env_config = self._load_from_environment()
        config_dict = self._merge_configs(config_dict, env_config)

        # Create config object
        self._config = SystemConfig(
            verdet=VerdetConfig(**config_dict.get('verdet', {})),
            processing=ProcessingConfig(**config_dict.get('processing', {})),
            logging=LoggingConfig(**config_dict.get('logging', {})),
            environment=config_dict.get('environment', 'development'),
        )

        logger.info(f"Configuration loaded for environment: {self._config.environment}")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            'verdet': asdict(VerdetConfig()),
            'processing': asdict(ProcessingConfig()),
            'logging': asdict(LoggingConfig()),
            'environment': 'development',
        }

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load config file {file_path}: {e}")
            return {}

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}

        # Algorithm configuration
        verdet_env = {}
        try:
            if 'VERDET_ALPHA' in os.environ:
                verdet_env['alpha'] = float(os.environ['VERDET_ALPHA'])
            if 'VERDET_TOLERANCE' in os.environ:
                verdet_env['tolerance'] = float(os.environ['VERDET_TOLERANCE'])
            if 'VERDET_MAX_ITERATIONS' in os.environ:
                verdet_env['max_iterations'] = int(os.environ['VERDET_MAX_ITERATIONS'])
        except ValueError as e:
            raise ConfigurationError(f"Invalid VeRDET environment setting: {e}") from e

        if verdet_env:
            env_config['verdet'] = verdet_env

        # Processing configuration
        processing_env = {}
        if 'VERDET_MAX_WORKERS' in os.environ:
            processing_env['max_workers'] = int(os.environ['VERDET_MAX_WORKERS'])
        if 'VERDET_SKIP_INVALID' in os.environ:
            processing_env['skip_invalid'] = os.environ['VERDET_SKIP_INVALID'].lower() == 'true'

        if processing_env:
            env_config['processing'] = processing_env

        # Logging configuration
        logging_env = {}
        if 'LOG_LEVEL' in os.environ:
            logging_env['level'] = os.environ['LOG_LEVEL'].upper()

        if logging_env:
            env_config['logging'] = logging_env

        # System configuration
        if 'ENVIRONMENT' in os.environ:
            env_config['environment'] = os.environ['ENVIRONMENT']

        return env_config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    @property
    def config(self) -> SystemConfig:
        """Get the current configuration."""
        return self._config

    def save_config(self, file_path: str):
        """Save current configuration to a file."""
        try:
            config_dict = {
                'verdet': asdict(self._config.verdet),
                'processing': asdict(self._config.processing),
                'logging': asdict(self._config.logging),
                'environment': self._config.environment,
            }

            with open(file_path, 'w') as f:
                json.dump(config_dict, f, indent=2)

            logger.info(f"Configuration saved to {file_path}")

        except OSError as e:
            logger.error(f"Failed to save config to {file_path}: {e}")
            raise

    def validate_config(self) -> bool:
        """Validate the current configuration."""
        try:
            self._config.verdet.validate()
        except ConfigurationError as e:
            logger.error(f"Algorithm configuration is invalid: {e}")
            return False

        if self._config.processing.max_workers < 1:
            logger.error("Max workers must be at least 1")
            return False

        if self._config.logging.level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            logger.error(f"Unknown log level: {self._config.logging.level}")
            return False

        logger.info("Configuration validation passed")
        return True


# Global configuration manager instance, created on first use
config_manager: Optional[ConfigManager] = None


def _get_manager() -> ConfigManager:
    global config_manager
    if config_manager is None:
        config_manager = ConfigManager()
    return config_manager


def get_config() -> SystemConfig:
    """Get the current system configuration."""
    return _get_manager().config


def load_config(config_file: str = None, env_file: str = ".env") -> SystemConfig:
    """Load configuration from specified sources."""
    global config_manager
    config_manager = ConfigManager(config_file, env_file)
    return config_manager.config


def validate_config() -> bool:
    """Validate the current configuration."""
    return _get_manager().validate_config()
