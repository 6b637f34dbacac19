"""
测试进程内事件总线与 IPC 通道。
"""

from unittest.mock import MagicMock

import pytest

from src.node_runner.events import EventBus
from src.node_runner.ipc import LocalIpc


def test_emit_calls_listeners_in_order():
    bus = EventBus()
    seen = []
    bus.on("contractsDeployed", lambda: seen.append("a"))
    bus.on("contractsDeployed", lambda: seen.append("b"))
    bus.emit("contractsDeployed")
    bus.emit("unknown")
    assert seen == ["a", "b"]


def test_failing_listener_does_not_stop_others():
    bus = EventBus()
    second = MagicMock()
    bus.on("outputDone", MagicMock(side_effect=RuntimeError("boom")))
    bus.on("outputDone", second)
    bus.emit("outputDone", 1)
    second.assert_called_once_with(1)


def test_request_uses_command_handler():
    bus = EventBus()
    bus.set_command_handler("contracts:list", lambda: ["Token"])
    assert bus.request("contracts:list") == ["Token"]
    with pytest.raises(LookupError):
        bus.request("missing")


def test_ipc_dispatch():
    ipc = LocalIpc()
    assert ipc.is_server()
    assert ipc.dispatch("log", {}) == []
    ipc.on("log", lambda message: message["n"] * 2)
    assert ipc.dispatch("log", {"n": 2}) == [4]
    assert not LocalIpc(role="client").is_server()
