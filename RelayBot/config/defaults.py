"""
默认配置 - 框架的所有默认配置值
Default configuration - all default configuration values of the framework.
"""

from __future__ import annotations

from typing import Any


def build_default_config() -> dict[str, Any]:
    """
    构建默认配置
    Build the default configuration.
    """
    return {
        # 日志配置
        "log": {
            "level": "INFO",
            "file": "data/logs/relaybot.log",
        },
        # 存储配置
        "store": {
            "db_path": "data/relaybot.db",
            # LIKE 模式是否区分大小写（默认不区分 ASCII 大小写）
            "case_sensitive_like": False,
        },
        # 消息通道配置
        "messenger": {
            "type": "console",
            "name": "relaybot",
            "channel": "console",
            "user": "",
            "history_size": 200,
            "exit_on_connect_failure": False,
        },
        # 分发配置
        "dispatch": {
            # 单个阶段的超时（秒），None 表示不限制
            "stage_timeout": None,
        },
        # 内置阶段配置
        "packs": {
            "say": {"enabled": True},
            "seen": {"enabled": True, "namespace": "seen"},
            "reply_prefix": {"prefix": ""},
        },
    }
