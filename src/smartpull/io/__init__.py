"""Logging and configuration helpers."""

from .config import EnvironmentSettings, apply_environment, load_config
from .logging import StructuredLogger

__all__ = ["EnvironmentSettings", "StructuredLogger", "apply_environment", "load_config"]
