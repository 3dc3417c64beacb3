"""
Config package - Application configuration and settings
"""

from .settings import get_settings, Settings
from .logging_config import setup_logging, InterceptHandler

__all__ = ['get_settings', 'Settings', 'setup_logging', 'InterceptHandler']
