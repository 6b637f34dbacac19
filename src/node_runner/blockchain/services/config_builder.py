"""
文件功能：
    将用户的 blockchain 配置（camelCase 字典）与客户端默认值合并为不可变的 ClientConfig。

公开接口：
    - build_client_config(user_config, client_class, env, dapp_path) -> ClientConfig
    - is_default_config(user_config) -> bool
    - check_paths(data) -> None: 路径中包含空格时抛出 ConfigurationError

内部方法：
    - _dev_template(name: str) -> str

说明：
    - 空配置或 {"enabled": true} 视为使用内置开发模板（密码文件、创世块、数据目录）。
    - maxpeers 显式为 0 时保留 0；whisper 与 wsRPC 只有显式为 false 时才关闭。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from ..clients import BlockchainClient
from ..errors import ConfigurationError
from ..schemas import ClientConfig

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "development"
_SPACE_MESSAGE = "The path for {} in blockchain config contains spaces, please remove them"


def _dev_template(name: str) -> str:
    return str(_TEMPLATE_DIR / name)


def is_default_config(user_config: dict[str, Any] | None) -> bool:
    return not user_config or user_config == {"enabled": True}


def check_paths(data: dict[str, Any]) -> None:
    """datadir、account.password、genesisBlock 中不允许出现空格。"""
    account = data.get("account") or {}
    for name, value in (
        ("datadir", data.get("datadir")),
        ("account.password", account.get("password")),
        ("genesisBlock", data.get("genesisBlock")),
    ):
        if value and " " in str(value):
            raise ConfigurationError(_SPACE_MESSAGE.format(name))


def build_client_config(
    user_config: dict[str, Any] | None,
    client_class: type[BlockchainClient],
    env: str = "development",
    dapp_path: str | Path | None = None,
    is_dev: bool = False,
) -> ClientConfig:
    user = dict(user_config or {})
    defaults = client_class.DEFAULTS
    base = Path(dapp_path) if dapp_path else Path.cwd()
    is_dev = bool(is_dev or user.get("isDev") or user.get("default"))

    if is_default_config(user_config):
        if env != "development":
            logger.warning("===> warning: running default config on a non-development environment")
        user["account"] = {"password": _dev_template("password")}
        user["genesisBlock"] = _dev_template("genesis.json")
        user["datadir"] = str(base / ".node_runner" / "development" / "datadir")

    account = dict(user.get("account") or {})
    datadir = user.get("datadir") or None
    if is_dev and not account.get("devPassword"):
        dev_dir = Path(datadir) if datadir else base / ".node_runner" / env / "datadir"
        account["devPassword"] = str(dev_dir / "devpassword")

    maxpeers = user.get("maxpeers")
    data: dict[str, Any] = {
        "ethereumClientName": client_class.name,
        "ethereumClientBin": user.get("ethereumClientBin") or defaults.bin,
        "env": env,
        "isDev": is_dev,
        "silent": bool(user.get("silent")),
        "networkType": user.get("networkType") or defaults.network_type,
        "networkId": user.get("networkId") or defaults.network_id,
        "genesisBlock": user.get("genesisBlock") or None,
        "datadir": datadir,
        "syncMode": user.get("syncMode") or None,
        "verbosity": user.get("verbosity"),
        "mineWhenNeeded": bool(user.get("mineWhenNeeded")),
        "mine": bool(user.get("mine")),
        "targetGasLimit": user.get("targetGasLimit") or None,
        "port": user.get("port") or 30303,
        "nodiscover": bool(user.get("nodiscover")),
        "maxpeers": 25 if maxpeers in (None, "") else maxpeers,
        "bootnodes": user.get("bootnodes") or "",
        "vmdebug": bool(user.get("vmdebug")),
        "whisper": user.get("whisper") is not False,
        "rpcHost": user.get("rpcHost") or "localhost",
        "rpcPort": user.get("rpcPort") or 8545,
        "rpcCorsDomain": user.get("rpcCorsDomain") or None,
        "rpcApi": user.get("rpcApi") or defaults.rpc_api,
        "wsRPC": user.get("wsRPC") is not False,
        "wsHost": user.get("wsHost") or "localhost",
        "wsPort": user.get("wsPort") or 8546,
        "wsOrigins": user.get("wsOrigins") or None,
        "wsApi": user.get("wsApi") or (defaults.dev_ws_api if is_dev else defaults.ws_api),
        "account": account,
        "proxy": bool(user.get("proxy")),
    }
    check_paths(data)
    return ClientConfig.model_validate(data)
