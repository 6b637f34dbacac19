"""
区块链节点管理服务模块集合。

按功能拆分：配置合并、命令执行、端口中继、开发账户准备、进程监管。
"""

from .command import CommandResult, run_command
from .config_builder import build_client_config, check_paths, is_default_config
from .dev_funds import DevFunds, create_dev_funds
from .factory import create_blockchain
from .proxy import ProxyPair
from .supervisor import Blockchain

__all__ = [
    "Blockchain",
    "CommandResult",
    "DevFunds",
    "ProxyPair",
    "build_client_config",
    "check_paths",
    "create_blockchain",
    "create_dev_funds",
    "is_default_config",
    "run_command",
]
