"""
测试一次性命令执行与端口中继的成对开关。
"""

import sys
from unittest.mock import MagicMock, call

from src.node_runner.blockchain.services.command import run_command
from src.node_runner.blockchain.services.config_builder import build_client_config
from src.node_runner.blockchain.services.proxy import ProxyPair
from src.node_runner.blockchain.clients import GethClient


def test_run_command_collects_output():
    result = run_command(f'"{sys.executable}" -c "import sys; print(1); sys.stderr.write(\'e\'); sys.exit(2)"')
    assert result.return_code == 2
    assert result.stdout.strip() == "1"
    assert result.stderr == "e"
    assert result.failed


def test_run_command_success():
    result = run_command(f'"{sys.executable}" -c "print(\'Version: 1.0\')"', silent=True)
    assert not result.failed
    assert "Version" in result.stdout


def test_proxy_pair_open_and_close():
    relays = [MagicMock(), MagicMock()]
    serve = MagicMock(side_effect=relays)
    config = build_client_config({"datadir": "/tmp/chain", "proxy": True, "rpcHost": "0.0.0.0"}, GethClient)
    pair = ProxyPair(serve, channel="ipc")

    pair.open(config)
    pair.open(config)
    assert pair.active
    assert serve.call_args_list == [call("ipc", "0.0.0.0", 8545, False), call("ipc", "localhost", 8546, True)]

    relays[0].close.side_effect = OSError("already closed")
    pair.close()
    pair.close()
    assert not pair.active
    relays[0].close.assert_called_once_with()
    relays[1].close.assert_called_once_with()
