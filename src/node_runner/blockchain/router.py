"""
文件功能：
    区块链节点管理的 FastAPI 路由：暴露节点状态查询与手动停止接口。

公开接口：
    - GET /blockchain/status -> NodeStatus
    - POST /blockchain/stop -> NodeStatus

内部方法：
    - get_blockchain(request) -> Blockchain: 从应用状态中取出当前节点实例

说明：
    - 配置错误映射为 400，其余节点管理错误（状态冲突）映射为 409。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from .errors import ConfigurationError, NodeRunnerError
from .schemas import NodeStatus
from .services import Blockchain


router = APIRouter(prefix="/blockchain", tags=["Blockchain Node"])


def get_blockchain(request: Request) -> Blockchain:
    blockchain = getattr(request.app.state, "blockchain", None)
    if blockchain is None:
        raise HTTPException(status_code=409, detail="区块链节点未启用或尚未创建")
    return blockchain


def _to_http_error(e: NodeRunnerError) -> HTTPException:
    status_code = 400 if isinstance(e, ConfigurationError) else 409
    return HTTPException(status_code=status_code, detail=str(e))


@router.get("/status", response_model=NodeStatus)
async def get_status(blockchain: Blockchain = Depends(get_blockchain)) -> NodeStatus:
    """获取节点状态。"""
    try:
        return blockchain.status()
    except NodeRunnerError as e:
        raise _to_http_error(e) from e


@router.post("/stop", response_model=NodeStatus)
async def post_stop(blockchain: Blockchain = Depends(get_blockchain)) -> NodeStatus:
    """停止节点进程（重复调用无副作用）。"""
    try:
        blockchain.kill()
        return blockchain.status()
    except NodeRunnerError as e:
        raise _to_http_error(e) from e
