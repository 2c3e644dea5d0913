"""Configuration adapters."""

from visitor_analytics.adapters.config.app_config import AppConfig

__all__ = ["AppConfig"]
