"""
进程内 IPC 通道。

只有 role 为 "server" 的一端会接收日志消息；dispatch 把消息交给同名订阅者并返回它们的结果。
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from loguru import logger


class LocalIpc:
    def __init__(self, role: str = "server"):
        self.role = role
        self._handlers: dict[str, list[Callable[[Any], Any]]] = defaultdict(list)

    def is_server(self) -> bool:
        return self.role == "server"

    def on(self, message_type: str, handler: Callable[[Any], Any]) -> None:
        self._handlers[message_type].append(handler)

    def dispatch(self, message_type: str, message: Any) -> list[Any]:
        handlers = self._handlers.get(message_type, [])
        if not handlers:
            logger.debug(f"IPC 消息 {message_type} 没有订阅者，已忽略")
        return [handler(message) for handler in handlers]
