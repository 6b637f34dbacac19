"""
文件功能：
    合约日志相关的 FastAPI 路由，把外部通知转交给进程内事件总线与 IPC 通道。

公开接口：
    - POST /console/contracts: 登记已部署合约并触发 contractsDeployed
    - POST /console/output-done: 标记批量输出完成
    - POST /console/log -> TraceResponse: 投递一条日志记录
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from .schemas import DeployedContract, TraceResponse


router = APIRouter(prefix="/console", tags=["Console Listener"])


def _state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=409, detail=f"{name} 尚未初始化")
    return value


@router.post("/contracts")
async def post_contracts(contracts: list[DeployedContract], request: Request) -> dict[str, int]:
    """替换已部署合约列表，并通知监听器重建选择器表。"""
    events = _state(request, "events")
    request.app.state.contracts = [c.model_dump(by_alias=True) for c in contracts]
    events.emit("contractsDeployed")
    return {"contracts": len(contracts)}


@router.post("/output-done")
async def post_output_done(request: Request) -> dict[str, bool]:
    _state(request, "events").emit("outputDone")
    return {"output_done": True}


@router.post("/log", response_model=TraceResponse)
async def post_log(record: dict[str, Any], request: Request) -> TraceResponse:
    """投递日志记录；只有 server 角色的 IPC 通道会处理。"""
    ipc = _state(request, "ipc")
    if not ipc.is_server():
        raise HTTPException(status_code=409, detail="IPC 通道不是 server 角色，不接收日志")
    try:
        results = ipc.dispatch("log", record)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"日志记录无法处理：{e}") from e
    line = next((r for r in results if r is not None), None)
    return TraceResponse(line=line)
