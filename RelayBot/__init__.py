"""
RelayBot - 可插拔的聊天机器人运行时
RelayBot - a pluggable chat-bot runtime.

消息从聊天网络进入，经过监听器、应答器、变换器三个阶段后回复。
Messages arrive from a chat network and flow through listeners, responders
and transformers before a reply is sent back.
"""

__app_name__ = "RelayBot"
__version__ = "0.3.0"
