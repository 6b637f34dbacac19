"""
文件功能：
    开发模式下在节点就绪后创建、充值并解锁开发账户。

公开接口：
    - DevFunds: 通过节点的 JSON-RPC 完成账户准备
    - create_dev_funds(config, client) -> DevFunds | None: 按客户端能力选择是否需要该步骤

内部方法：
    - _read_password(path: str | None) -> str

说明：
    - 只有 geth 需要这一步。parity 在启动前已写好密码文件，并通过 --unlock 参数解锁，
      资金来自开发链的创世分配。
    - 该步骤是尽力而为的：失败只通过回调上报，不影响已经在运行的节点。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from web3 import Web3

from ..clients import BlockchainClient
from ..schemas import ClientConfig

# personal_unlockAccount 的持续时间，0 表示直到节点退出
_UNLOCK_DURATION = 0


def _read_password(path: str | None) -> str:
    if not path:
        return ""
    p = Path(path)
    if not p.exists():
        return ""
    lines = p.read_text(encoding="utf-8").splitlines()
    return lines[0].strip() if lines else ""


class DevFunds:
    def __init__(self, config: ClientConfig, web3: Web3 | None = None):
        self.config = config
        if web3 is None:
            url = f"http://{config.rpc_host}:{config.node_rpc_port}"
            web3 = Web3(Web3.HTTPProvider(url))
        self.web3 = web3
        self.password = _read_password(config.account.password)
        self.num_accounts = config.account.num_accounts
        self.balance = Web3.to_wei(config.account.balance, "ether")

    def _rpc(self, method: str, params: list[Any]) -> Any:
        response = self.web3.provider.make_request(method, params)
        if response.get("error"):
            raise RuntimeError(f"{method} 调用失败: {response['error']}")
        return response.get("result")

    def _new_account(self) -> str:
        address = self._rpc("personal_newAccount", [self.password])
        logger.info(f"已创建开发账户：{address}")
        return address

    def _unlock(self, address: str) -> None:
        self._rpc("personal_unlockAccount", [address, self.password, _UNLOCK_DURATION])

    def _fund(self, coinbase: str, address: str) -> None:
        address = Web3.to_checksum_address(address)
        current = self.web3.eth.get_balance(address)
        if current >= self.balance:
            return
        tx_hash = self.web3.eth.send_transaction(
            {"from": Web3.to_checksum_address(coinbase), "to": address, "value": self.balance - current}
        )
        logger.info(f"已为开发账户充值：{address}, tx={Web3.to_hex(tx_hash)}")

    def create_fund_and_unlock_accounts(self) -> list[str]:
        """保证至少 num_accounts 个开发账户（不含 coinbase）存在、有余额且已解锁。"""
        accounts = list(self.web3.eth.accounts)
        if not accounts:
            raise RuntimeError("节点没有返回任何账户，无法为开发账户充值")
        coinbase = accounts[0]
        dev_accounts = accounts[1:]
        while len(dev_accounts) < self.num_accounts:
            dev_accounts.append(self._new_account())

        for address in dev_accounts:
            self._unlock(address)
            self._fund(coinbase, address)
        logger.info(f"开发账户准备完成：{len(dev_accounts)} 个")
        return dev_accounts


def create_dev_funds(config: ClientConfig, client: BlockchainClient) -> DevFunds | None:
    if not client.funds_dev_accounts:
        return None
    return DevFunds(config)
