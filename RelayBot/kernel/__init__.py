"""
内核模块 - 分发器与启动引导
Kernel module - the dispatcher and bootstrap.
"""

from RelayBot.kernel.bootstrap import Bootstrap
from RelayBot.kernel.dispatcher import Dispatcher

__all__ = ["Bootstrap", "Dispatcher"]
