"""
Parity-Ethereum 命令行构造。

与 geth 的主要差异：
    - 自定义网络通过 --chain 直接指定链规格文件，没有单独的 genesis init 步骤；
    - 日志级别只有 error/warn/info/debug 四档，需要把 0-5 的 verbosity 映射过去；
    - 开发模式通过启动参数解锁内置开发账户，密码来自预先写好的密码文件。
"""

from __future__ import annotations

from .base import BlockchainClient, ClientDefaults

_PARITY_API = (
    "web3", "eth", "pubsub", "net", "parity", "private",
    "parity_pubsub", "traces", "rpc", "shh", "shh_pubsub",
)

# 0 无法完全静默，退化为 error；debug 已是 parity 的最高级别
_LOGGING_LEVELS = {
    0: "error",
    1: "error",
    2: "warn",
    3: "info",
    4: "debug",
    5: "debug",
}


def _interface(host: str) -> str:
    return "local" if host == "localhost" else host


def _all_if_wildcard(value: str) -> str:
    return "all" if value == "*" else value


class ParityClient(BlockchainClient):
    name = "parity"
    pretty_name = "Parity-Ethereum (https://www.parity.io/ethereum/)"
    DEFAULTS = ClientDefaults(
        bin="parity",
        network_type="dev",
        network_id=17,
        rpc_api=_PARITY_API,
        ws_api=_PARITY_API,
        dev_ws_api=_PARITY_API + ("personal",),
        target_gas_limit=8000000,
        ready_marker="Public node URL",
        messaging_modules=("shh", "shh_pubsub"),
        dev_account="0x00a329c0648769a73afac7f9381e08fb43dbea72",
    )

    def determine_network_type(self) -> str | None:
        if self.is_dev:
            return "--chain=dev"
        network_type = self.config.network_type
        if network_type == "rinkeby":
            self._log.warning("Parity 不支持 Rinkeby PoA 网络，改用 Kovan PoA 网络")
            network_type = "kovan"
        elif network_type == "testnet":
            self._log.warning('Parity 的 "testnet" 对应 Kovan，为与 geth 参数保持一致改用 Ropsten')
            network_type = "ropsten"
        elif network_type == "custom" and self.config.genesis_block:
            return f"--chain={self.config.genesis_block}"
        return f"--chain={network_type}"

    def common_options(self) -> list[str]:
        config = self.config
        cmd = [self.determine_network_type()]
        if config.network_id:
            cmd.append(f"--network-id={config.network_id}")
        if config.datadir:
            cmd.append(f"--base-path={config.datadir}")

        if config.sync_mode == "light":
            cmd.append("--light")
        elif config.sync_mode == "fast":
            cmd.append("--pruning=fast")
        elif config.sync_mode == "full":
            cmd.append("--pruning=archive")

        if self.is_dev:
            if config.account.dev_password:
                cmd.append(f"--password={config.account.dev_password}")
        elif config.account.password:
            cmd.append(f"--password={config.account.password}")

        if config.verbosity is not None and 0 <= config.verbosity <= 5:
            cmd.append(f"--logging={_LOGGING_LEVELS.get(config.verbosity, 'info')}")
        return [c for c in cmd if c]

    def determine_version_command(self) -> str:
        return f"{self.bin} --version"

    def init_genesis_command(self) -> str | None:
        # 自定义链规格已经通过 --chain 传入
        return None

    def determine_rpc_options(self) -> list[str]:
        config = self.config
        cmd = [
            f"--port={config.port}",
            f"--jsonrpc-port={config.node_rpc_port}",
            f"--jsonrpc-interface={_interface(config.rpc_host)}",
        ]
        if config.rpc_cors_domain:
            if config.rpc_cors_domain == "*":
                self._warn_banner('rpcCorsDomain set to "all"', "make sure you know what you are doing")
            cmd.append(f"--jsonrpc-cors={_all_if_wildcard(config.rpc_cors_domain)}")
        else:
            self._warn_banner("warning: cors is not set")
        cmd.append("--jsonrpc-hosts=all")
        return cmd

    def determine_ws_options(self) -> list[str]:
        config = self.config
        if not config.ws_rpc:
            return []
        cmd = [
            f"--ws-port={config.node_ws_port}",
            f"--ws-interface={_interface(config.ws_host)}",
        ]
        if config.ws_origins:
            if config.ws_origins == "*":
                self._warn_banner('wsOrigins set to "all"', "make sure you know what you are doing")
            cmd.append(f"--ws-origins={_all_if_wildcard(config.ws_origins)}")
        else:
            self._warn_banner("warning: wsOrigins is not set")
        cmd.append("--ws-hosts=all")
        return cmd

    def _flag_options(self) -> list[str]:
        config = self.config
        cmd = []
        if config.nodiscover:
            cmd.append("--no-discovery")
        if config.vmdebug:
            cmd.append("--tracing=on")
        cmd.append(f"--max-peers={config.maxpeers}")
        if config.bootnodes:
            cmd.append(f"--bootnodes={config.bootnodes}")
        if config.whisper:
            cmd.append("--whisper")
        return cmd

    def _api_options(self, rpc_api: list[str], ws_api: list[str]) -> list[str]:
        return ["--jsonrpc-apis=" + ",".join(rpc_api), "--ws-apis=" + ",".join(ws_api)]

    def _gas_options(self) -> list[str]:
        # parity 默认 4700000，这里与 geth 的默认值对齐
        target = self.config.target_gas_limit or self.DEFAULTS.target_gas_limit
        return [f"--gas-floor-target={target}"]

    def dev_password_file(self) -> tuple[str, str] | None:
        """内置开发账户与新建账户都使用空密码，每个账户一行。"""
        path = self.config.account.dev_password
        if not path:
            return None
        return path, "\n" * (self.config.account.num_accounts + 1)

    def dev_init_commands(self) -> list[str]:
        return [self.new_account_command() for _ in range(self.config.account.num_accounts)]
