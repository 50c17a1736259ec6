"""
Storage Layer.

This package handles data persistence, namely the INI configuration file.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
