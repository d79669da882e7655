"""
配置模块
"""

from floe.core.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
