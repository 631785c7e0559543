#!/usr/bin/env python3
"""
RelayBot - 可插拔的聊天机器人运行时
应用主入口。不带参数时直接启动机器人。
"""

import sys
from pathlib import Path

# 确保项目根目录已加入 Python 路径
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from RelayBot.cli.main import run_cli  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(run_cli(sys.argv[1:] or ["run"]))
