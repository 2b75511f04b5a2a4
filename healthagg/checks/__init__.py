"""Check registry — config file loading and probe definitions."""

from .registry import (
    ConfigError,
    ConfigIOError,
    ConfigParseError,
    Configuration,
    Probe,
    load_config,
)
