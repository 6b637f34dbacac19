"""
以太坊客户端命令构造的公共部分。

每个具体客户端只负责把 ClientConfig 翻译成命令行，不做任何进程管理或阻塞 I/O；
所有提示（cors 未设置、缺少密码等）都通过可注入的 logger 发出，不影响控制流。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar

from loguru import logger

from ..schemas import ClientConfig

_BANNER = "=================================="
# geth 旧版本输出 {a94f...}，新版本与 parity 输出 0x 开头的地址
_BRACED_ADDRESS_RE = re.compile(r"\{([0-9a-fA-F]{40})\}")
_HEX_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def _first_address(text: str | None) -> str | None:
    if not text:
        return None
    m = _BRACED_ADDRESS_RE.search(text)
    if m:
        return "0x" + m.group(1)
    m = _HEX_ADDRESS_RE.search(text)
    if m:
        return m.group(0)
    return None


@dataclass(frozen=True)
class ClientDefaults:
    bin: str
    network_type: str
    network_id: int
    rpc_api: tuple[str, ...]
    ws_api: tuple[str, ...]
    dev_ws_api: tuple[str, ...]
    target_gas_limit: int
    ready_marker: str
    messaging_modules: tuple[str, ...]
    dev_account: str | None = None


class BlockchainClient:
    name: ClassVar[str]
    pretty_name: ClassVar[str]
    DEFAULTS: ClassVar[ClientDefaults]
    # 就绪后是否需要通过 JSON-RPC 创建、充值并解锁开发账户
    funds_dev_accounts: ClassVar[bool] = False
    # 超过该长度的 dapp 路径会导致节点 IPC 路径出错
    max_dapp_path_length: ClassVar[int | None] = None

    def __init__(self, config: ClientConfig, log: Any = None):
        self.config = config
        self.is_dev = config.is_dev
        self.bin = config.ethereum_client_bin or self.DEFAULTS.bin
        self._log = log if log is not None else logger

    def get_binary_path(self) -> str:
        return self.bin

    def is_ready(self, line: str) -> bool:
        return self.DEFAULTS.ready_marker in line

    def _warn_banner(self, *lines: str) -> None:
        self._log.warning(_BANNER)
        for line in lines:
            self._log.warning(line)
        self._log.warning(_BANNER)

    # 各客户端需要实现的部分

    def determine_network_type(self) -> str | None:
        raise NotImplementedError

    def common_options(self) -> list[str]:
        raise NotImplementedError

    def determine_version_command(self) -> str:
        raise NotImplementedError

    def init_genesis_command(self) -> str | None:
        raise NotImplementedError

    def determine_rpc_options(self) -> list[str]:
        raise NotImplementedError

    def determine_ws_options(self) -> list[str]:
        raise NotImplementedError

    def _flag_options(self) -> list[str]:
        """节点发现、调试、最大连接数、挖矿、bootnodes 等开关。"""
        raise NotImplementedError

    def _api_options(self, rpc_api: list[str], ws_api: list[str]) -> list[str]:
        raise NotImplementedError

    def _unlock_option(self, address: str) -> str:
        return f"--unlock={address}"

    def _gas_options(self) -> list[str]:
        raise NotImplementedError

    def _dev_options(self) -> list[str]:
        return []

    def dev_init_commands(self) -> list[str]:
        """开发模式下的一次性初始化命令，按顺序执行。"""
        return []

    def dev_password_file(self) -> tuple[str, str] | None:
        """开发模式需要预先写入的密码文件 (路径, 内容)。"""
        return None

    # 通用逻辑

    def _base_command(self) -> str:
        return " ".join([self.bin] + self.common_options())

    def new_account_command(self) -> str:
        if not self.config.account.password:
            self._log.warning(
                "区块链配置缺少账户密码，创建账户可能失败。"
                "请在 blockchain > account > password 中配置后重新运行"
            )
        return self._base_command() + " account new"

    def list_accounts_command(self) -> str:
        return self._base_command() + " account list"

    def parse_list_accounts_output(self, stdout: str) -> str | None:
        """从 `account list` 输出中解析第一个账户地址。"""
        return _first_address(stdout)

    def parse_new_account_output(self, stdout: str) -> str | None:
        """从 `account new` 输出中解析新账户地址。"""
        return _first_address(stdout)

    def api_lists(self) -> tuple[list[str], list[str]]:
        """返回 (rpc_api, ws_api)；开启 whisper 时追加消息模块，关闭时移除。"""
        rpc_api = list(self.config.rpc_api)
        ws_api = list(self.config.ws_api)
        modules = self.DEFAULTS.messaging_modules
        if self.config.whisper:
            for module in modules:
                if module not in rpc_api:
                    rpc_api.append(module)
                if module not in ws_api:
                    ws_api.append(module)
        else:
            rpc_api = [api for api in rpc_api if api not in modules]
            ws_api = [api for api in ws_api if api not in modules]
        return rpc_api, ws_api

    def account_to_unlock(self, address: str | None) -> str | None:
        """显式配置的地址 > 初始化阶段得到的地址 > 开发模式默认地址。"""
        if self.config.account.address:
            return self.config.account.address
        if address:
            return address
        if self.is_dev:
            return self.DEFAULTS.dev_account
        return None

    def main_command(self, address: str | None = None) -> tuple[str, list[str]]:
        """构造启动节点的 (二进制路径, 参数列表)，网络选择参数排在最前。"""
        rpc_api, ws_api = self.api_lists()
        args: list[str] = []
        args += self.common_options()
        args += self.determine_rpc_options()
        args += self.determine_ws_options()
        args += self._flag_options()
        args += self._api_options(rpc_api, ws_api)
        unlock = self.account_to_unlock(address)
        if unlock:
            args.append(self._unlock_option(unlock))
        args += self._gas_options()
        args += self._dev_options()
        return self.bin, [arg for arg in args if arg]
