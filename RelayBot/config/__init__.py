"""
配置模块
Configuration module.
"""

from RelayBot.config.defaults import build_default_config
from RelayBot.config.manager import CONFIG_FILE, ConfigManager

__all__ = ["CONFIG_FILE", "ConfigManager", "build_default_config"]
