"""
FastAPI 应用入口点。
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.node_runner.blockchain.errors import NodeRunnerError
from src.node_runner.blockchain.router import router as blockchain_router
from src.node_runner.blockchain.schemas import ExitReport
from src.node_runner.blockchain.services import create_blockchain
from src.node_runner.config import config
from src.node_runner.console_listener.router import router as console_router
from src.node_runner.console_listener.services import ConsoleListener
from src.node_runner.events import EventBus
from src.node_runner.ipc import LocalIpc


def _on_ready() -> None:
    logger.info("区块链节点已就绪")


def _on_exit(report: ExitReport) -> None:
    logger.warning(f"区块链节点已退出：{report.describe()}")


def _on_error(error: Exception) -> None:
    logger.error(f"区块链节点运行出错：{error}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    events = EventBus()
    ipc = LocalIpc(role="server")
    app.state.events = events
    app.state.ipc = ipc
    app.state.contracts = []
    app.state.blockchain = None
    events.set_command_handler("contracts:list", lambda: list(app.state.contracts))
    app.state.console_listener = ConsoleListener(events, ipc)

    if config.blockchain_enabled:
        try:
            blockchain = create_blockchain(
                config.blockchain_config(),
                client_name=config.client_name,
                env=config.app_env,
                is_dev=config.is_dev,
                on_ready=_on_ready,
                on_exit=_on_exit,
                on_error=_on_error,
                dapp_path=config.dapp_path,
            )
            app.state.blockchain = blockchain
            blockchain.run()
            logger.info(f"区块链节点启动状态: {blockchain.status().model_dump_json(indent=4)}")
        except NodeRunnerError as e:
            logger.error(f"启动区块链节点失败：{e}")
    try:
        yield
    finally:
        blockchain = app.state.blockchain
        if blockchain is not None:
            logger.info("应用关闭，正在停止区块链节点...")
            blockchain.kill()
            logger.info("区块链节点已停止")


app = FastAPI(title="Blockchain Node Runner", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(blockchain_router, prefix="/v1")
app.include_router(console_router, prefix="/v1")

logger.info(f"config: {config.model_dump_json(indent=4)}")
