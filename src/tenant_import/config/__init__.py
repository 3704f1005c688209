"""Configuration management: profiles, TOML loading, and import settings.

Usage:
    >>> from tenant_import.config import load_db_config, ImportSettings
"""

from tenant_import.config.loader import load_db_config
from tenant_import.config.models import DatabaseConfig, DatabaseProfile, ImportSettings

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "ImportSettings"]
