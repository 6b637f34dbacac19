"""
文件功能：
    把 IPC 通道送来的合约日志记录解码为可读的调用轨迹。

公开接口：
    - ConsoleListener.handle_log(request) -> str | None: 处理一条日志记录，返回输出的行（被丢弃时为 None）
    - ConsoleListener.update_contract_list(): 根据已部署合约重建选择器表
    - function_selector(signature) -> str
    - render_value(abi_type, value) -> str

内部方法：
    - _hex_to_int(value) -> int
    - _decode_call(func, data) -> str | None

说明：
    - 选择器表在每次部署通知时整体重建；表建立之前到达的记录直接丢弃，不缓存也不重放。
    - 地址未知时刷新一次选择器表，并丢弃当前这条记录。
    - 无法解析的记录（未知选择器、解码失败）静默丢弃，不作为错误上报。
"""

from __future__ import annotations

import json
from typing import Any

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak
from loguru import logger
from pydantic import ValidationError

from .schemas import CONTRACT_LOG, ContractEntry, ContractLog, DeployedContract, FunctionInfo

TRACE_LABEL = "Blockchain>"


def function_selector(signature: str) -> str:
    return "0x" + keccak(text=signature)[:4].hex()


def _hex_to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    text = str(value or "0").strip()
    if text.lower().startswith("0x"):
        return int(text, 16) if len(text) > 2 else 0
    return int(text)


def render_value(abi_type: str, value: Any) -> str:
    """整数类型不加引号，其余类型加双引号。"""
    text = _stringify(value)
    if "int" in abi_type:
        return text
    return f'"{text}"'


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


class ConsoleListener:
    def __init__(self, events: Any, ipc: Any, log: Any = None):
        self.events = events
        self.ipc = ipc
        self._log = log if log is not None else logger
        self.address_to_contract: dict[str, ContractEntry] = {}
        self.contracts_deployed = False
        self.output_done = False

        self.events.on("outputDone", self._on_output_done)
        self.events.on("contractsDeployed", self._on_contracts_deployed)
        if self.ipc.is_server():
            self.ipc.on("log", self.handle_log)

    def _on_output_done(self, *_: Any) -> None:
        self.output_done = True

    def _on_contracts_deployed(self, *_: Any) -> None:
        self.contracts_deployed = True
        self.update_contract_list()

    def update_contract_list(self) -> None:
        try:
            contracts = self.events.request("contracts:list")
        except Exception as e:
            self._log.error(f"no contracts found: {e}")
            return

        table: dict[str, ContractEntry] = {}
        for raw in contracts or []:
            try:
                contract = raw if isinstance(raw, DeployedContract) else DeployedContract.model_validate(raw)
            except ValidationError as e:
                self._log.warning(f"忽略无法解析的合约元数据：{e}")
                continue
            if not contract.deployed_address:
                continue
            functions: dict[str, FunctionInfo] = {}
            for entry in contract.abi_definition:
                if entry.type != "function":
                    continue
                signature = f"{entry.name}({','.join(p.type for p in entry.inputs)})"
                functions[function_selector(signature)] = FunctionInfo(
                    signature=signature, function_name=entry.name, abi=entry
                )
            table[contract.deployed_address.lower()] = ContractEntry(
                name=contract.class_name, silent=contract.silent, functions=functions
            )
        self.address_to_contract = table
        self._log.debug(f"选择器表已重建，共 {len(table)} 个合约")

    def _decode_call(self, func: FunctionInfo, data: str) -> str | None:
        inputs = func.abi.inputs
        if not inputs:
            return ""
        try:
            values = decode([p.type for p in inputs], bytes.fromhex(data))
        except (DecodingError, ValueError, TypeError) as e:
            self._log.debug(f"{func.signature} 参数解码失败，记录已丢弃：{e}")
            return None
        return ", ".join(render_value(p.type, v) for p, v in zip(inputs, values))

    def handle_log(self, request: ContractLog | dict[str, Any]) -> str | None:
        if isinstance(request, dict):
            if request.get("type") != CONTRACT_LOG:
                line = json.dumps(request)
                self._log.info(line)
                return line
            try:
                request = ContractLog.model_validate(request)
            except ValidationError as e:
                self._log.debug(f"合约日志格式错误，记录已丢弃：{e}")
                return None
        elif request.type != CONTRACT_LOG:
            line = request.model_dump_json(by_alias=True)
            self._log.info(line)
            return line

        if not self.contracts_deployed:
            return None

        contract = self.address_to_contract.get(request.address.lower())
        if contract is None:
            self.update_contract_list()
            return None
        if contract.silent and not self.output_done:
            return None

        data = request.data[2:] if request.data[:2].lower() == "0x" else request.data
        func = contract.functions.get("0x" + data[:8].lower())
        if func is None:
            return None
        params = self._decode_call(func, data[8:])
        if params is None:
            return None

        try:
            gas_used = _hex_to_int(request.gas_used)
            block_number = _hex_to_int(request.block_number)
        except ValueError:
            return None

        line = (
            f"{TRACE_LABEL} {contract.name}.{func.function_name}({params})"
            f" | {request.transaction_hash} | gas:{gas_used} | blk:{block_number} | status:{request.status}"
        )
        self._log.info(line)
        return line
