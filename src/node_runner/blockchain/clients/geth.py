"""Go-Ethereum 命令行构造。"""

from __future__ import annotations

from .base import BlockchainClient, ClientDefaults


class GethClient(BlockchainClient):
    name = "geth"
    pretty_name = "Go-Ethereum (https://github.com/ethereum/go-ethereum)"
    funds_dev_accounts = True
    max_dapp_path_length = 66
    DEFAULTS = ClientDefaults(
        bin="geth",
        network_type="custom",
        network_id=1337,
        rpc_api=("eth", "web3", "net", "debug"),
        ws_api=("eth", "web3", "net", "shh", "debug", "pubsub"),
        dev_ws_api=("eth", "web3", "net", "shh", "debug", "pubsub", "personal"),
        target_gas_limit=8000000,
        ready_marker="WebSocket endpoint opened",
        messaging_modules=("shh",),
    )

    def determine_network_type(self) -> str | None:
        network_type = self.config.network_type
        if network_type == "testnet":
            return "--testnet"
        if network_type == "rinkeby":
            return "--rinkeby"
        if network_type == "custom":
            return f"--networkid={self.config.network_id}"
        return None

    def common_options(self) -> list[str]:
        config = self.config
        cmd = [self.determine_network_type()]
        if config.datadir:
            cmd.append(f"--datadir={config.datadir}")
        if config.sync_mode:
            cmd.append(f"--syncmode={config.sync_mode}")
        if config.account.password:
            cmd.append(f"--password={config.account.password}")
        if config.verbosity is not None and 0 <= config.verbosity <= 5:
            cmd.append(f"--verbosity={config.verbosity}")
        return [c for c in cmd if c]

    def determine_version_command(self) -> str:
        return f"{self.bin} version"

    def init_genesis_command(self) -> str | None:
        if not self.config.genesis_block:
            return None
        return f'{self._base_command()} init "{self.config.genesis_block}"'

    def determine_rpc_options(self) -> list[str]:
        config = self.config
        cmd = [
            f"--port={config.port}",
            "--rpc",
            f"--rpcport={config.node_rpc_port}",
            f"--rpcaddr={config.rpc_host}",
        ]
        if config.rpc_cors_domain:
            if config.rpc_cors_domain == "*":
                self._warn_banner("rpcCorsDomain set to *", "make sure you know what you are doing")
            cmd.append(f"--rpccorsdomain={config.rpc_cors_domain}")
        else:
            self._warn_banner("warning: cors is not set")
        return cmd

    def determine_ws_options(self) -> list[str]:
        config = self.config
        if not config.ws_rpc:
            return []
        cmd = ["--ws", f"--wsport={config.node_ws_port}", f"--wsaddr={config.ws_host}"]
        if config.ws_origins:
            if config.ws_origins == "*":
                self._warn_banner("wsOrigins set to *", "make sure you know what you are doing")
            cmd.append(f"--wsorigins={config.ws_origins}")
        else:
            self._warn_banner("warning: wsOrigins is not set")
        return cmd

    def _flag_options(self) -> list[str]:
        config = self.config
        cmd = []
        if config.nodiscover:
            cmd.append("--nodiscover")
        if config.vmdebug:
            cmd.append("--vmdebug")
        cmd.append(f"--maxpeers={config.maxpeers}")
        if config.mine_when_needed or config.mine:
            cmd.append("--mine")
        if config.bootnodes:
            cmd.append(f"--bootnodes={config.bootnodes}")
        if config.whisper:
            cmd.append("--shh")
        return cmd

    def _api_options(self, rpc_api: list[str], ws_api: list[str]) -> list[str]:
        return ["--rpcapi=" + ",".join(rpc_api), "--wsapi=" + ",".join(ws_api)]

    def _gas_options(self) -> list[str]:
        if self.config.target_gas_limit:
            return [f"--miner.gastarget={self.config.target_gas_limit}"]
        return []

    def _dev_options(self) -> list[str]:
        return ["--dev"] if self.is_dev else []
