"""Configuration for skillpack."""

from skillpack.config.manager import ConfigManager

__all__ = ["ConfigManager"]
