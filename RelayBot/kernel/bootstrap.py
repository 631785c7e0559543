"""
启动引导器 - 框架的生命周期管理
Bootstrap - framework lifecycle management.

负责按正确顺序初始化所有子系统，并管理关闭流程。
Responsible for initializing all subsystems in the correct order
and managing the shutdown process.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from RelayBot.config.defaults import build_default_config
from RelayBot.config.manager import CONFIG_FILE, ConfigManager
from RelayBot.gateway.base import Messenger
from RelayBot.gateway.registry import create_messenger
from RelayBot.kernel.dispatcher import Dispatcher
from RelayBot.kernel.logging import setup_logging
from RelayBot.pack.base import Listener, Responder, Transformer
from RelayBot.store.engine import StorageEngine
from RelayBot.store.manager import DataStoreManager

logger = logging.getLogger(__name__)

# 关闭时等待进行中分发任务的最长时间（秒）
DRAIN_TIMEOUT = 10.0


class Bootstrap:
    """
    引导器 - 编排整个框架的启动和关闭
    Bootstrap - orchestrates the startup and shutdown of the entire framework.

    启动顺序：
    1. 加载配置
    2. 初始化日志系统
    3. 初始化存储层
    4. 构建阶段集合
    5. 创建消息通道和分发器
    6. 连接消息通道，成功后挂载分发器
    """

    def __init__(
        self,
        config_path: str = CONFIG_FILE,
        log_level: str | None = None,
        messenger: Messenger | None = None,
    ) -> None:
        self.config = ConfigManager(defaults=build_default_config(), config_path=config_path)
        self.engine: StorageEngine | None = None
        self.stores: DataStoreManager | None = None
        self.messenger = messenger
        self.dispatcher: Dispatcher | None = None
        self._log_level = log_level
        self._shutdown_event = asyncio.Event()
        self._stopped = False

    async def start(self) -> bool:
        """
        启动框架，返回消息通道是否连接成功
        Start the framework; return whether the messenger connected.
        """
        await self.config.load()
        setup_logging(
            self._log_level or self.config.get("log.level", "INFO"),
            self.config.get("log.file"),
        )
        logger.info("RelayBot 正在启动...")

        stores = await self._init_store()
        listeners, responders, transformers = await self._build_stages(stores)
        return await self._start_messenger(listeners, responders, transformers)

    async def _init_store(self) -> DataStoreManager:
        """初始化存储层 / Initialize the storage layer."""
        db_path = self.config.get("store.db_path", "data/relaybot.db")
        self.engine = StorageEngine(
            db_path,
            case_sensitive_like=bool(self.config.get("store.case_sensitive_like", False)),
        )
        self.stores = DataStoreManager(self.engine)
        logger.info("存储引擎已初始化: %s", db_path)
        return self.stores

    async def _build_stages(
        self, stores: DataStoreManager
    ) -> tuple[list[Listener], list[Responder], list[Transformer]]:
        """
        按配置构建阶段集合（顺序即执行顺序）
        Build the stage collections from configuration; order is run order.
        """
        from RelayBot.pack.builtin import (
            ReplyPrefixTransformer,
            SayResponder,
            SeenListener,
            SeenResponder,
        )

        listeners: list[Listener] = []
        responders: list[Responder] = []
        transformers: list[Transformer] = []

        if self.config.get("packs.seen.enabled", True):
            seen_store = await stores.get_store(
                self.config.get("packs.seen.namespace", "seen")
            )
            listeners.append(SeenListener(seen_store))
            responders.append(SeenResponder(seen_store))

        if self.config.get("packs.say.enabled", True):
            responders.append(SayResponder())

        prefix = self.config.get("packs.reply_prefix.prefix", "")
        if prefix:
            transformers.append(ReplyPrefixTransformer(prefix))

        logger.info(
            "阶段已构建: %d 个监听器, %d 个应答器, %d 个变换器",
            len(listeners),
            len(responders),
            len(transformers),
        )
        return listeners, responders, transformers

    async def _start_messenger(
        self,
        listeners: list[Listener],
        responders: list[Responder],
        transformers: list[Transformer],
    ) -> bool:
        """连接消息通道 / Connect the messenger."""
        if self.messenger is None:
            self.messenger = create_messenger(self.config.get("messenger", {}))

        self.dispatcher = Dispatcher(
            listeners,
            responders,
            transformers,
            self.messenger,
            stage_timeout=self.config.get("dispatch.stage_timeout"),
        )

        connected = await self.messenger.connect()
        if not connected:
            logger.warning("无法连接消息通道 %s", self.messenger.metadata.instance_name)
            if self.config.get("messenger.exit_on_connect_failure", False):
                self._shutdown_event.set()
            return False

        logger.info("消息通道已连接: %s", self.messenger.metadata.instance_name)
        self.dispatcher.attach()
        self.messenger.set_fatal_handler(self._on_fatal)
        return True

    async def _on_fatal(self, exc: BaseException) -> None:
        logger.error("消息通道报告致命错误，准备关闭: %s", exc)
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        """请求关闭 / Request shutdown."""
        self._shutdown_event.set()

    async def run_forever(self) -> None:
        """
        持续运行直到收到关闭信号
        Run until a shutdown signal is received.
        """
        loop = asyncio.get_running_loop()

        # 注册系统信号（仅 Unix）
        signals = (signal.SIGINT, signal.SIGTERM) if sys.platform != "win32" else ()
        for sig in signals:
            loop.add_signal_handler(sig, self._shutdown_event.set)

        try:
            await self._shutdown_event.wait()
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            await self.shutdown()

    async def shutdown(self) -> None:
        """
        优雅关闭
        Graceful shutdown.
        """
        if self._stopped:
            return
        self._stopped = True
        logger.info("RelayBot 正在关闭...")

        # 先排空分发再断开消息通道
        if self.dispatcher is not None:
            await self.dispatcher.drain(timeout=DRAIN_TIMEOUT)

        if self.messenger is not None:
            await self.messenger.disconnect()

        if self.engine is not None:
            await self.engine.dispose()

        logger.info("RelayBot 已完全关闭")
