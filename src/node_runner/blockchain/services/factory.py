"""
根据用户配置选择客户端并构造 Blockchain 实例。

客户端名称的优先级：显式传入的 client_name > 用户配置中的 ethereumClientName > geth。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..clients import get_client_class
from .config_builder import build_client_config
from .supervisor import Blockchain, ErrorCallback, ExitCallback, ReadyCallback


def create_blockchain(
    user_config: dict[str, Any] | None,
    client_name: str | None = None,
    env: str = "development",
    is_dev: bool = False,
    on_ready: ReadyCallback | None = None,
    on_exit: ExitCallback | None = None,
    on_error: ErrorCallback | None = None,
    dapp_path: str | Path | None = None,
    log: Any = None,
    **kwargs: Any,
) -> Blockchain:
    user = user_config or {}
    name = client_name or user.get("ethereumClientName") or "geth"
    client_class = get_client_class(name)
    config = build_client_config(user_config, client_class, env=env, dapp_path=dapp_path, is_dev=is_dev)
    client = client_class(config, log=log)
    return Blockchain(
        config,
        client,
        on_ready=on_ready,
        on_exit=on_exit,
        on_error=on_error,
        dapp_path=dapp_path,
        **kwargs,
    )
