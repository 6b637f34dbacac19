"""
文件功能：
    定义区块链节点管理相关的公开数据模型（Pydantic）。

公开接口：
    - AccountConfig: 账户相关配置（密码文件、地址、开发模式账户数与余额）
    - ClientConfig: 单次运行使用的不可变客户端配置
    - NodeState: 节点生命周期状态
    - NodeStatus: 节点状态快照
    - ExitReport: 节点进程退出报告

内部方法：
    无

说明：
    - 用户配置沿用 camelCase 键名（rpcPort、wsOrigins ...），通过别名映射到字段。
    - 开启 proxy 时节点实际监听 端口 + SERVICE_PORT_ON_PROXY，对外端口由中继占用。
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .errors import RuntimeExitError

SERVICE_PORT_ON_PROXY = 10


class AccountConfig(BaseModel):
    """账户配置。"""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    password: str | None = Field(default=None, description="账户密码文件路径")
    address: str | None = Field(default=None, description="显式指定需要解锁的账户地址")
    dev_password: str | None = Field(default=None, description="开发模式下使用的密码文件路径")
    num_accounts: int = Field(default=1, description="开发模式下需要准备的账户数量")
    balance: float = Field(default=5, description="开发模式下每个账户的目标余额（ether）")


class ClientConfig(BaseModel):
    """合并用户配置与客户端默认值后的不可变配置。"""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    ethereum_client_name: str = "geth"
    ethereum_client_bin: str = "geth"
    env: str = "development"
    is_dev: bool = False
    silent: bool = False

    network_type: str = "custom"
    network_id: int | None = None
    genesis_block: str | None = None
    datadir: str | None = None
    sync_mode: str | None = None
    verbosity: int | None = None

    mine_when_needed: bool = False
    mine: bool = False
    target_gas_limit: int | None = None

    port: int = 30303
    nodiscover: bool = False
    maxpeers: int = 25
    bootnodes: str = ""
    vmdebug: bool = False
    whisper: bool = True

    rpc_host: str = "localhost"
    rpc_port: int = 8545
    rpc_cors_domain: str | None = None
    rpc_api: tuple[str, ...] = ()

    ws_rpc: bool = Field(default=True, alias="wsRPC")
    ws_host: str = "localhost"
    ws_port: int = 8546
    ws_origins: str | None = None
    ws_api: tuple[str, ...] = ()

    account: AccountConfig = Field(default_factory=AccountConfig)
    proxy: bool = False

    @field_validator("bootnodes", mode="before")
    @classmethod
    def join_bootnodes(cls, value: Any) -> str:
        """bootnodes 既可以是字符串，也可以是列表。"""
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value if v)
        return str(value)

    @property
    def node_rpc_port(self) -> int:
        """节点进程实际监听的 RPC 端口。"""
        return self.rpc_port + SERVICE_PORT_ON_PROXY if self.proxy else self.rpc_port

    @property
    def node_ws_port(self) -> int:
        """节点进程实际监听的 WebSocket 端口。"""
        return self.ws_port + SERVICE_PORT_ON_PROXY if self.proxy else self.ws_port


class NodeState(str, Enum):
    NOT_STARTED = "not_started"
    INSTALLING = "installing"
    INITIALIZING = "initializing"
    STARTING = "starting"
    RUNNING = "running"
    READY = "ready"
    EXITED = "exited"
    FAILED = "failed"


class ExitReport(BaseModel):
    """节点进程退出报告。"""

    client_name: str = Field(description="客户端名称")
    code: int | None = Field(default=None, description="退出码；None 表示无退出码（可能被手动终止）")

    @property
    def manually_killed(self) -> bool:
        return not self.code

    def to_error(self) -> RuntimeExitError:
        return RuntimeExitError(self.client_name, self.code)

    def describe(self) -> str:
        return str(self.to_error())


class NodeStatus(BaseModel):
    """节点运行状态快照。"""

    client: str = Field(description="客户端名称")
    state: NodeState = Field(description="生命周期状态")
    ready: bool = Field(description="是否已检测到就绪标记")
    pid: int | None = Field(default=None, description="运行中的进程 PID")
    is_dev: bool = Field(description="是否为开发模式")
    rpc_port: int = Field(description="对外 RPC 端口")
    ws_port: int = Field(description="对外 WebSocket 端口")
    exit_code: int | None = Field(default=None, description="最近一次退出码")
