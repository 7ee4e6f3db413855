"""
Configuration module for Memories Album Backend

Provides environment-specific configuration for:
- Database and JWT settings
- Cloudinary credentials
- Upload limits and restrictions
- Logging
"""

from .settings import Settings, load_settings
from .log_config import setup_logging

__all__ = ["Settings", "load_settings", "setup_logging"]
