"""
进程内事件总线。

公开接口：
    - EventBus.on(name, handler): 订阅事件
    - EventBus.emit(name, *args): 同步通知所有订阅者
    - EventBus.set_command_handler(name, handler) / EventBus.request(name, *args): 一对一的请求应答
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable

from loguru import logger

Handler = Callable[..., Any]


class EventBus:
    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Handler]] = defaultdict(list)
        self._commands: dict[str, Handler] = {}

    def on(self, name: str, handler: Handler) -> None:
        with self._lock:
            self._listeners[name].append(handler)

    def emit(self, name: str, *args: Any) -> None:
        with self._lock:
            listeners = list(self._listeners.get(name, ()))
        for handler in listeners:
            try:
                handler(*args)
            except Exception:
                logger.exception(f"事件 {name} 的处理函数执行失败")

    def set_command_handler(self, name: str, handler: Handler) -> None:
        with self._lock:
            self._commands[name] = handler

    def request(self, name: str, *args: Any) -> Any:
        with self._lock:
            handler = self._commands.get(name)
        if handler is None:
            raise LookupError(f"没有注册命令处理函数：{name}")
        return handler(*args)
