"""
RPC/WS 端口中继的调用约定。

中继本身由外部提供：serve(channel, host, port, is_websocket) 在对外端口上开始转发并返回一个
可关闭对象，节点实际监听 端口 + SERVICE_PORT_ON_PROXY。这里只负责成对地打开与关闭。
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from loguru import logger

from ..schemas import ClientConfig


class PortRelay(Protocol):
    def close(self) -> None: ...


ProxyServe = Callable[[Any, str, int, bool], PortRelay]


class ProxyPair:
    """同时管理 RPC 与 WebSocket 两个中继。"""

    def __init__(self, serve: ProxyServe, channel: Any = None):
        self._serve = serve
        self._channel = channel
        self._relays: list[PortRelay] = []

    @property
    def active(self) -> bool:
        return bool(self._relays)

    def open(self, config: ClientConfig) -> None:
        if self._relays:
            return
        self._relays = [
            self._serve(self._channel, config.rpc_host, config.rpc_port, False),
            self._serve(self._channel, config.ws_host, config.ws_port, True),
        ]
        logger.info(
            f"端口中继已开启：rpc {config.rpc_port} -> {config.node_rpc_port}，"
            f"ws {config.ws_port} -> {config.node_ws_port}"
        )

    def close(self) -> None:
        relays, self._relays = self._relays, []
        for relay in relays:
            try:
                relay.close()
            except Exception as e:
                logger.warning(f"关闭端口中继失败：{e}")
