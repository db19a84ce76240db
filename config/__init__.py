"""Configuration management for Chatkin."""

from .loader import ConfigLoader, load_config
from .schema import ChatkinSettings

__all__ = ["ChatkinSettings", "ConfigLoader", "load_config"]
