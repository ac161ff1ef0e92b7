"""
Shearwater Log - Configuration
==============================

Decoder defaults for the command-line tools. Configuration can come
from:
- Default values (defined here)
- Environment variables
- Command-line options (which override both)

Environment variables (all optional):
    SHEARWATER_MODEL: Default model, by name ("perdix") or number ("5")
    SHEARWATER_SERIAL: Device serial, decimal or 0x-prefixed hex
    SHEARWATER_VERBOSE: Enable debug logging ("1", "true", "yes")
"""

from dataclasses import dataclass
import logging
import os
from typing import Optional

from shearwater_log.parser.records import ShearwaterModel

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class DecoderConfig:
    """
    Decoder defaults.

    Attributes:
        model: Model used to pick the decoder family (default: PETREL)
        serial: Device serial number reported in the "Serial" string
        verbose: Log at debug level
    """

    model: ShearwaterModel = ShearwaterModel.PETREL
    serial: int = 0
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "DecoderConfig":
        """
        Create a DecoderConfig from environment variables.

        Invalid values are logged and ignored.
        """
        config = cls()

        if model := os.environ.get("SHEARWATER_MODEL"):
            try:
                config.model = ShearwaterModel.from_name(model)
            except ValueError:
                logger.warning(f"Invalid SHEARWATER_MODEL: {model}")

        if serial := os.environ.get("SHEARWATER_SERIAL"):
            try:
                config.serial = int(serial, 0)
            except ValueError:
                logger.warning(f"Invalid SHEARWATER_SERIAL: {serial}")

        if verbose := os.environ.get("SHEARWATER_VERBOSE"):
            config.verbose = verbose.strip().lower() in _TRUE_VALUES

        return config

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.verbose else logging.WARNING


# Global default configuration instance
_default_config: Optional[DecoderConfig] = None


def get_default_config() -> DecoderConfig:
    """Get the global configuration, reading the environment on first use."""
    global _default_config
    if _default_config is None:
        _default_config = DecoderConfig.from_env()
    return _default_config


def set_default_config(config: Optional[DecoderConfig]) -> None:
    """Replace the global configuration (None re-reads the environment)."""
    global _default_config
    _default_config = config
