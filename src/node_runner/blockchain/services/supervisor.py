"""
文件功能：
    以太坊节点进程的完整生命周期管理：安装检查 -> 链与账户初始化 -> 启动 -> 输出监控 -> 退出报告。

公开接口：
    - Blockchain.run(): 串行执行启动前步骤，任一步失败立即抛出并终止本次运行
    - Blockchain.check_installed(): 版本命令检查客户端是否可用
    - Blockchain.initialize_chain() -> str | None: 初始化链数据并返回可解锁的账户地址
    - Blockchain.start(address): 拉起节点进程并挂接输出读取线程
    - Blockchain.kill(): 关闭端口中继并终止进程（幂等）
    - Blockchain.status() -> NodeStatus

内部方法：
    - _find_existing_account / _init_genesis / _create_account: 非开发模式的初始化步骤
    - _init_dev_chain: 开发模式的一次性初始化
    - _log_error_output / _scan_output / _wait_for_exit: 进程启动后的三个读取线程
    - _mark_ready: 只触发一次的就绪处理

说明：
    - geth 与 parity 都把运行日志写到 stderr、把错误写到 stdout，这里保持这种反转：
      stdout 按 error 级别记录，stderr 用于检测就绪标记并按 info 级别记录。
    - 启动后的所有问题只通过回调通知（on_error / on_exit），不会从读取线程抛出。
"""

from __future__ import annotations

import os
import subprocess
import threading
from pathlib import Path
from typing import IO, Any, Callable, Iterator

from loguru import logger

from ..clients import BlockchainClient
from ..errors import (
    ConfigurationError,
    InitializationError,
    InstallationError,
    NodeRunnerError,
    SpawnError,
)
from ..schemas import ClientConfig, ExitReport, NodeState, NodeStatus
from .command import CommandResult, CommandRunner, run_command
from .dev_funds import DevFunds, create_dev_funds
from .proxy import ProxyPair, ProxyServe

ReadyCallback = Callable[[], None]
ExitCallback = Callable[[ExitReport], None]
ErrorCallback = Callable[[Exception], None]
ProvisionerFactory = Callable[[ClientConfig, BlockchainClient], "DevFunds | None"]

_SEPARATOR = "=" * 79
_UNLOCK_FAILED_HINT = (
    "Development blockchain has changed to use the --dev option.\n"
    "You can reset your workspace to fix the problem, "
    "otherwise change your data directory in the blockchain config (datadir)."
)


class Blockchain:
    def __init__(
        self,
        config: ClientConfig,
        client: BlockchainClient,
        on_ready: ReadyCallback | None = None,
        on_exit: ExitCallback | None = None,
        on_error: ErrorCallback | None = None,
        ipc: Any = None,
        proxy_serve: ProxyServe | None = None,
        command_runner: CommandRunner | None = None,
        provisioner_factory: ProvisionerFactory | None = None,
        dapp_path: str | Path | None = None,
    ):
        if config.proxy and proxy_serve is None:
            raise ConfigurationError("proxy 已开启，但没有提供端口中继实现")
        self.config = config
        self.client = client
        self.is_dev = config.is_dev
        self.env = config.env
        self.dapp_path = Path(dapp_path) if dapp_path else Path.cwd()
        self.state = NodeState.NOT_STARTED
        self.child: subprocess.Popen | None = None

        self._on_ready = on_ready or (lambda: None)
        self._on_exit = on_exit
        self._on_error = on_error
        self._proxy = ProxyPair(proxy_serve, ipc) if proxy_serve is not None else None
        self._command_runner = command_runner or (lambda cmd: run_command(cmd, silent=config.silent))
        self._provisioner_factory = provisioner_factory or create_dev_funds

        self._ready_lock = threading.Lock()
        self._ready_called = False
        self._exit_lock = threading.Lock()
        self._exit_reported = False
        self._exit_code: int | None = None
        self._readers: list[threading.Thread] = []
        self._provision_thread: threading.Thread | None = None

    @property
    def ready(self) -> bool:
        return self._ready_called

    def _datadir(self) -> Path:
        if self.config.datadir:
            return Path(self.config.datadir)
        return self.dapp_path / ".node_runner" / self.env / "datadir"

    def _run(self, cmd: str) -> CommandResult:
        return self._command_runner(cmd)

    # 启动前步骤

    def run(self) -> None:
        logger.info(_SEPARATOR)
        logger.info(f"Blockchain using {self.client.pretty_name}")
        logger.info(_SEPARATOR)
        self.check_path_length()

        address: str | None = None
        steps: list[tuple[NodeState, Callable[[], str | None]]] = [
            (NodeState.INSTALLING, self.check_installed),
            (NodeState.INITIALIZING, self.initialize_chain),
        ]
        try:
            for state, step in steps:
                self.state = state
                address = step() or address
        except NodeRunnerError:
            self.state = NodeState.FAILED
            raise
        self.start(address)

    def check_path_length(self) -> None:
        limit = self.client.max_dapp_path_length
        dapp_path = str(self.dapp_path)
        if limit is None or len(dapp_path) <= limit:
            return
        logger.warning(_SEPARATOR)
        logger.warning(f"===========> WARNING! dapp 路径过长: {dapp_path}")
        logger.warning(
            f"===========> 这会导致 {self.client.name} 启动异常，请将路径长度控制在 {limit} 个字符以内"
        )
        logger.warning(_SEPARATOR)

    def check_installed(self) -> None:
        result = self._run(self.client.determine_version_command())
        if (
            result.failed
            or not result.stdout
            or "not found" in result.stdout
            or "not found" in result.stderr
        ):
            raise InstallationError(f"Ethereum client bin not found: {self.client.get_binary_path()}")

    def initialize_chain(self) -> str | None:
        if self.is_dev:
            self._init_dev_chain()
            return None
        # 第一个返回地址的步骤直接结束初始化（已有账户时跳过 genesis 与新建账户）
        for step in (self._make_datadir, self._find_existing_account, self._init_genesis, self._create_account):
            address = step()
            if address:
                return address
        return None

    def _make_datadir(self) -> None:
        datadir = self._datadir()
        try:
            datadir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InitializationError(f"创建数据目录失败 {datadir}: {e}") from e

    def _find_existing_account(self) -> str | None:
        result = self._run(self.client.list_accounts_command())
        if result.failed or "Fatal" in result.stdout:
            logger.info("no accounts found")
            return None
        address = self.client.parse_list_accounts_output(result.stdout)
        if not address:
            logger.info("no accounts found")
            return None
        logger.info("already initialized")
        return address

    def _init_genesis(self) -> None:
        cmd = self.client.init_genesis_command()
        if not cmd:
            return
        logger.info("initializing genesis block")
        result = self._run(cmd)
        if result.failed:
            raise InitializationError(f"初始化创世块失败: {result.error or result.stderr.strip()}")

    def _create_account(self) -> str | None:
        result = self._run(self.client.new_account_command())
        if result.failed:
            raise InitializationError(f"创建账户失败: {result.error or result.stderr.strip()}")
        return self.client.parse_new_account_output(result.stdout)

    def _init_dev_chain(self) -> None:
        self._make_datadir()
        password_file = self.client.dev_password_file()
        if password_file:
            path, content = password_file
            try:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
                Path(path).write_text(content, encoding="utf-8")
            except OSError as e:
                raise InitializationError(f"写入开发密码文件失败 {path}: {e}") from e
        for cmd in self.client.dev_init_commands():
            result = self._run(cmd)
            if result.failed:
                raise InitializationError(f"开发链初始化失败: {result.error or result.stderr.strip()}")

    # 进程启动与监控

    def start(self, address: str | None = None) -> None:
        self.state = NodeState.STARTING
        cmd, args = self.client.main_command(address)
        if self._proxy is not None:
            self._proxy.open(self.config)

        logger.info(f"running: {cmd} {' '.join(args)}")
        try:
            self.child = subprocess.Popen(
                [cmd, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=os.getcwd(),
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            self.state = NodeState.FAILED
            self.shutdown_proxy()
            self._report_spawn_error(str(e))
            return

        self.state = NodeState.RUNNING
        child = self.child
        self._readers = [
            threading.Thread(target=self._log_error_output, args=(child.stdout,), daemon=True),
            threading.Thread(target=self._scan_output, args=(child.stderr,), daemon=True),
        ]
        for reader in self._readers:
            reader.start()
        threading.Thread(target=self._wait_for_exit, args=(child,), daemon=True).start()

    def _report_spawn_error(self, text: str) -> None:
        logger.error(f"Blockchain error: {text}")
        hint = None
        if self.env == "development" and "Failed to unlock" in text:
            hint = _UNLOCK_FAILED_HINT
            logger.warning(hint)
        self._notify_error(SpawnError(text, hint=hint))

    def _notify_error(self, error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("on_error 回调执行失败")

    @staticmethod
    def _iter_lines(stream: IO[str] | None) -> Iterator[str]:
        if stream is None:
            return
        try:
            for line in iter(stream.readline, ""):
                yield line.rstrip("\r\n")
        except (ValueError, OSError):
            # kill() 之后管道可能已被关闭
            return

    def _log_error_output(self, stream: IO[str] | None) -> None:
        for line in self._iter_lines(stream):
            logger.error(f"{self.client.name} error: {line}")

    def _scan_output(self, stream: IO[str] | None) -> None:
        for line in self._iter_lines(stream):
            if not self._ready_called and self.client.is_ready(line):
                self._mark_ready()
            logger.info(f"{self.client.name}: {line}")

    def _mark_ready(self) -> None:
        with self._ready_lock:
            if self._ready_called:
                return
            self._ready_called = True
        self.state = NodeState.READY
        if self.is_dev:
            self._provision_dev_accounts()
        try:
            self._on_ready()
        except Exception:
            logger.exception("on_ready 回调执行失败")

    def _provision_dev_accounts(self) -> None:
        def _provision() -> None:
            try:
                provisioner = self._provisioner_factory(self.config, self.client)
                if provisioner is None:
                    return
                provisioner.create_fund_and_unlock_accounts()
            except Exception as e:
                logger.error(f"Error creating, unlocking, and funding accounts: {e}")
                self._notify_error(e)

        self._provision_thread = threading.Thread(target=_provision, daemon=True)
        self._provision_thread.start()

    def _wait_for_exit(self, child: subprocess.Popen) -> None:
        return_code = child.wait()
        for reader in self._readers:
            reader.join(timeout=1)
        # 负数表示被信号终止，视为没有退出码
        self._report_exit(return_code if return_code is not None and return_code >= 0 else None)

    def _report_exit(self, code: int | None) -> None:
        with self._exit_lock:
            if self._exit_reported:
                return
            self._exit_reported = True
        self._exit_code = code
        self.state = NodeState.EXITED
        report = ExitReport(client_name=self.client.name, code=code)
        if report.manually_killed:
            logger.warning(report.describe())
        else:
            logger.error(report.describe())
        if self._on_exit is None:
            return
        try:
            self._on_exit(report)
        except Exception:
            logger.exception("on_exit 回调执行失败")

    def shutdown_proxy(self) -> None:
        if self._proxy is not None:
            self._proxy.close()

    def kill(self) -> None:
        self.shutdown_proxy()
        child = self.child
        if child is None or child.poll() is not None:
            return
        try:
            child.terminate()
        except ProcessLookupError:
            pass

    def status(self) -> NodeStatus:
        child = self.child
        running = child is not None and child.poll() is None
        return NodeStatus(
            client=self.client.name,
            state=self.state,
            ready=self._ready_called,
            pid=child.pid if running else None,
            is_dev=self.is_dev,
            rpc_port=self.config.rpc_port,
            ws_port=self.config.ws_port,
            exit_code=self._exit_code,
        )
