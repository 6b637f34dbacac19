"""
区块链节点生命周期中的异常类型。

- 启动前的错误（配置/安装/初始化）同步抛出，终止本次运行。
- 启动后的错误（进程拉起失败/进程退出）只通过回调通知，不会抛出。
"""

from __future__ import annotations


class NodeRunnerError(Exception):
    """所有节点管理错误的基类。"""


class ConfigurationError(NodeRunnerError):
    """配置非法（例如路径中包含空格、未知的客户端）。"""


class InstallationError(NodeRunnerError):
    """以太坊客户端二进制不存在或无法执行。"""


class InitializationError(NodeRunnerError):
    """数据目录、创世块或账户创建失败。"""


class SpawnError(NodeRunnerError):
    """操作系统拉起节点进程失败。"""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        base = super().__str__()
        if self.hint:
            return f"{base}\n{self.hint}"
        return base


class RuntimeExitError(NodeRunnerError):
    """节点进程已退出；code 为 None 表示没有退出码（可能被手动终止）。"""

    def __init__(self, client_name: str, code: int | None):
        self.client_name = client_name
        self.code = code
        if code:
            detail = f"with error code {code}"
        else:
            detail = "with no error code (manually killed?)"
        super().__init__(f"{client_name} exited {detail}")
