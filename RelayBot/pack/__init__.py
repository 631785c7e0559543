"""
阶段模块 - 可插拔的消息处理阶段
Pack module - pluggable message processing stages.
"""

from RelayBot.pack.base import Listener, Responder, Transformer, stage_name

__all__ = ["Listener", "Responder", "Transformer", "stage_name"]
