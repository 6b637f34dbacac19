"""
文件功能：
    合约日志解码相关的数据模型。

公开接口：
    - AbiParam / AbiEntry: ABI 片段（只使用解码需要的字段）
    - DeployedContract: 已部署合约的元数据
    - FunctionInfo: 选择器对应的函数信息
    - ContractEntry: 选择器表中的单个合约
    - ContractLog: IPC 通道送来的合约日志记录
    - TraceResponse: 日志接口的返回值
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

CONTRACT_LOG = "contract-log"


class AbiParam(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(default="", description="参数名")
    type: str = Field(description="ABI 类型，例如 uint256、address、string")


class AbiEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(default="function", description="条目类型：function / event / constructor ...")
    name: str = Field(default="", description="函数名")
    inputs: list[AbiParam] = Field(default_factory=list, description="输入参数")


class DeployedContract(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="className", description="合约名")
    deployed_address: str | None = Field(default=None, alias="deployedAddress", description="部署地址")
    abi_definition: list[AbiEntry] = Field(default_factory=list, alias="abiDefinition", description="ABI")
    silent: bool = Field(default=False, description="批量输出完成前是否屏蔽该合约的日志")


class FunctionInfo(BaseModel):
    signature: str = Field(description="规范签名，例如 set(uint256)")
    function_name: str = Field(description="函数名")
    abi: AbiEntry = Field(description="ABI 片段")


class ContractEntry(BaseModel):
    name: str
    silent: bool = False
    functions: dict[str, FunctionInfo] = Field(default_factory=dict, description="4 字节选择器（0x 开头）-> 函数")


class ContractLog(BaseModel):
    """type 为 contract-log 时其余字段才有意义；其他类型的记录按原样输出。"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = Field(default=CONTRACT_LOG, description="记录类型")
    address: str = Field(default="", description="合约地址")
    data: str = Field(default="", description="十六进制 calldata，前 8 个十六进制字符是选择器")
    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    block_number: str | int = Field(default="0x0", alias="blockNumber", description="十六进制区块号或整数")
    gas_used: str | int = Field(default="0x0", alias="gasUsed", description="十六进制 gas 用量或整数")
    status: str | int | bool | None = Field(default=None, description="交易状态")


class TraceResponse(BaseModel):
    line: str | None = Field(default=None, description="输出的日志行；None 表示记录被丢弃")
