"""
受支持的以太坊客户端集合。

客户端在构造 Blockchain 时一次性选定，之后不再改变；新增客户端需要同时在 CLIENTS 中登记。
"""

from __future__ import annotations

from .base import BlockchainClient, ClientDefaults
from .geth import GethClient
from .parity import ParityClient
from ..errors import ConfigurationError

CLIENTS: dict[str, type[BlockchainClient]] = {
    GethClient.name: GethClient,
    ParityClient.name: ParityClient,
}


def get_client_class(name: str) -> type[BlockchainClient]:
    try:
        return CLIENTS[name]
    except KeyError:
        raise ConfigurationError(
            f'Unknown client "{name}". Please use one of the following: {", ".join(CLIENTS)}'
        ) from None


__all__ = [
    "CLIENTS",
    "BlockchainClient",
    "ClientDefaults",
    "GethClient",
    "ParityClient",
    "get_client_class",
]
