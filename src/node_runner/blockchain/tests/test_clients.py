"""
测试 clients 包：命令行构造、whisper 模块、解锁优先级、告警与输出解析。
"""

from unittest.mock import MagicMock, call

import pytest

from src.node_runner.blockchain.clients import GethClient, ParityClient, get_client_class
from src.node_runner.blockchain.errors import ConfigurationError
from src.node_runner.blockchain.services.config_builder import build_client_config


def _client(client_class, user=None, log=None, **kwargs):
    config = build_client_config(user if user is not None else {"datadir": "/tmp/chain"}, client_class, **kwargs)
    return client_class(config, log=log if log is not None else MagicMock())


def _option(args, prefix):
    return [a for a in args if a.startswith(prefix)]


def _api_modules(args, prefix):
    (value,) = _option(args, prefix)
    return value.split("=", 1)[1].split(",")


@pytest.mark.parametrize(
    "client_class,rpc_flag,ws_flag",
    [
        (GethClient, "--rpcapi=", "--wsapi="),
        (ParityClient, "--jsonrpc-apis=", "--ws-apis="),
    ],
)
def test_messaging_module_present_iff_whisper(client_class, rpc_flag, ws_flag):
    """开启 whisper 时两个 API 列表都包含消息模块，关闭时都不包含"""
    modules = client_class.DEFAULTS.messaging_modules

    _, args = _client(client_class, {"datadir": "/tmp/chain", "whisper": True}).main_command()
    for module in modules:
        assert module in _api_modules(args, rpc_flag)
        assert module in _api_modules(args, ws_flag)

    _, args = _client(client_class, {"datadir": "/tmp/chain", "whisper": False}).main_command()
    for module in modules:
        assert module not in _api_modules(args, rpc_flag)
        assert module not in _api_modules(args, ws_flag)


def test_whisper_module_not_duplicated():
    _, args = _client(GethClient, {"datadir": "/tmp/chain", "wsApi": ["eth", "shh"]}).main_command()
    assert _api_modules(args, "--wsapi=") == ["eth", "shh"]
    assert _api_modules(args, "--rpcapi=") == ["eth", "web3", "net", "debug", "shh"]


def test_geth_main_command_flags():
    user = {
        "datadir": "/tmp/chain",
        "syncMode": "fast",
        "verbosity": 3,
        "rpcCorsDomain": "http://localhost:8000",
        "wsOrigins": "http://localhost:8000",
        "nodiscover": True,
        "vmdebug": True,
        "mineWhenNeeded": True,
        "maxpeers": 0,
        "bootnodes": ["enode://a", "enode://b"],
        "targetGasLimit": 7000000,
    }
    binary, args = _client(GethClient, user).main_command("0x" + "ab" * 20)
    assert binary == "geth"
    assert args[0] == "--networkid=1337"
    for expected in [
        "--datadir=/tmp/chain",
        "--syncmode=fast",
        "--verbosity=3",
        "--rpc",
        "--rpcport=8545",
        "--rpcaddr=localhost",
        "--rpccorsdomain=http://localhost:8000",
        "--ws",
        "--wsport=8546",
        "--wsorigins=http://localhost:8000",
        "--nodiscover",
        "--vmdebug",
        "--maxpeers=0",
        "--mine",
        "--bootnodes=enode://a,enode://b",
        "--shh",
        "--unlock=0x" + "ab" * 20,
        "--miner.gastarget=7000000",
    ]:
        assert expected in args
    assert "--dev" not in args


def test_parity_main_command_flags():
    user = {
        "datadir": "/tmp/chain",
        "syncMode": "light",
        "verbosity": 2,
        "rpcCorsDomain": "*",
        "wsOrigins": "*",
        "nodiscover": True,
        "vmdebug": True,
    }
    log = MagicMock()
    binary, args = _client(ParityClient, user, log=log).main_command()
    assert binary == "parity"
    assert args[0] == "--chain=dev"
    for expected in [
        "--network-id=17",
        "--base-path=/tmp/chain",
        "--light",
        "--logging=warn",
        "--jsonrpc-port=8545",
        "--jsonrpc-interface=local",
        "--jsonrpc-cors=all",
        "--jsonrpc-hosts=all",
        "--ws-port=8546",
        "--ws-interface=local",
        "--ws-origins=all",
        "--no-discovery",
        "--tracing=on",
        "--max-peers=25",
        "--whisper",
        "--gas-floor-target=8000000",
    ]:
        assert expected in args
    assert call('rpcCorsDomain set to "all"') in log.warning.call_args_list
    assert call('wsOrigins set to "all"') in log.warning.call_args_list


@pytest.mark.parametrize("verbosity,level", [(0, "error"), (1, "error"), (2, "warn"), (3, "info"), (4, "debug"), (5, "debug")])
def test_parity_verbosity_mapping(verbosity, level):
    client = _client(ParityClient, {"datadir": "/tmp/chain", "verbosity": verbosity})
    assert f"--logging={level}" in client.common_options()


def test_verbosity_out_of_range_is_ignored():
    client = _client(GethClient, {"datadir": "/tmp/chain", "verbosity": 9})
    assert not _option(client.common_options(), "--verbosity")


def test_missing_cors_and_origins_only_warn():
    log = MagicMock()
    _, args = _client(GethClient, log=log).main_command()
    assert "--rpc" in args
    assert call("warning: cors is not set") in log.warning.call_args_list
    assert call("warning: wsOrigins is not set") in log.warning.call_args_list


def test_ws_disabled_omits_ws_options():
    _, args = _client(GethClient, {"datadir": "/tmp/chain", "wsRPC": False}).main_command()
    assert "--ws" not in args
    assert not _option(args, "--wsport")


def test_proxy_remaps_node_ports():
    _, args = _client(GethClient, {"datadir": "/tmp/chain", "proxy": True, "rpcPort": 9000}).main_command()
    assert "--rpcport=9010" in args
    assert "--wsport=8556" in args


class TestUnlockPriority:
    def test_explicit_address_wins(self):
        client = _client(ParityClient, {"datadir": "/tmp/chain", "account": {"address": "0xexplicit"}}, is_dev=True)
        assert client.account_to_unlock("0xfound") == "0xexplicit"

    def test_initialized_address_before_dev_default(self):
        client = _client(ParityClient, {"datadir": "/tmp/chain"}, is_dev=True)
        assert client.account_to_unlock("0xfound") == "0xfound"

    def test_dev_default_address(self):
        client = _client(ParityClient, {"datadir": "/tmp/chain"}, is_dev=True)
        _, args = client.main_command()
        assert "--unlock=0x00a329c0648769a73afac7f9381e08fb43dbea72" in args

    def test_no_dev_default_outside_dev_mode(self):
        client = _client(ParityClient)
        _, args = client.main_command()
        assert not _option(args, "--unlock")

    def test_geth_dev_has_no_default(self):
        client = _client(GethClient, {"datadir": "/tmp/chain"}, is_dev=True)
        _, args = client.main_command()
        assert not _option(args, "--unlock")
        assert args[-1] == "--dev"


def test_geth_network_selection():
    assert _client(GethClient, {"datadir": "/d", "networkType": "testnet"}).determine_network_type() == "--testnet"
    assert _client(GethClient, {"datadir": "/d", "networkType": "rinkeby"}).determine_network_type() == "--rinkeby"
    assert _client(GethClient, {"datadir": "/d", "networkType": "mainnet"}).determine_network_type() is None


def test_parity_network_remaps_warn():
    log = MagicMock()
    client = _client(ParityClient, {"datadir": "/d", "networkType": "rinkeby"}, log=log)
    assert client.determine_network_type() == "--chain=kovan"
    log.warning.assert_called_once()

    client = _client(ParityClient, {"datadir": "/d", "networkType": "testnet"}, log=MagicMock())
    assert client.determine_network_type() == "--chain=ropsten"

    client = _client(ParityClient, {"datadir": "/d", "networkType": "custom", "genesisBlock": "/g/chain.json"})
    assert client.determine_network_type() == "--chain=/g/chain.json"


def test_genesis_commands():
    geth = _client(GethClient, {"datadir": "/tmp/chain", "genesisBlock": "/tmp/genesis.json"})
    assert geth.init_genesis_command() == 'geth --networkid=1337 --datadir=/tmp/chain init "/tmp/genesis.json"'
    assert _client(GethClient).init_genesis_command() is None
    parity = _client(ParityClient, {"datadir": "/tmp/chain", "genesisBlock": "/tmp/genesis.json"})
    assert parity.init_genesis_command() is None


def test_version_commands_and_binary_override():
    assert _client(GethClient).determine_version_command() == "geth version"
    client = _client(ParityClient, {"datadir": "/d", "ethereumClientBin": "/opt/parity"})
    assert client.determine_version_command() == "/opt/parity --version"
    assert client.get_binary_path() == "/opt/parity"


def test_new_account_without_password_warns():
    log = MagicMock()
    client = _client(GethClient, log=log)
    assert client.new_account_command().endswith(" account new")
    log.warning.assert_called_once()


def test_list_accounts_command():
    client = _client(GethClient, {"datadir": "/tmp/chain", "account": {"password": "/tmp/pw"}})
    assert client.list_accounts_command() == "geth --networkid=1337 --datadir=/tmp/chain --password=/tmp/pw account list"


def test_parse_account_output():
    client = _client(GethClient)
    address = "a94f5374fce5edbc8e2a8697c15331677e6ebf0b"
    listed = f"Account #0: {{{address}}} keystore:///tmp/chain/keystore/UTC--x\n"
    assert client.parse_list_accounts_output(listed) == "0x" + address
    assert client.parse_new_account_output(f"Address: {{{address}}}") == "0x" + address
    assert client.parse_new_account_output(f"Public address of the key:   0x{address.upper()}") == "0x" + address.upper()
    assert client.parse_list_accounts_output("") is None


def test_is_ready_markers():
    assert _client(GethClient).is_ready("INFO WebSocket endpoint opened url=ws://127.0.0.1:8546")
    assert not _client(GethClient).is_ready("Public node URL: enode://x")
    assert _client(ParityClient).is_ready("2019 Public node URL: enode://x")


def test_parity_dev_initialisation():
    client = _client(ParityClient, {"datadir": "/tmp/chain", "account": {"numAccounts": 3}}, is_dev=True)
    path, content = client.dev_password_file()
    assert path == "/tmp/chain/devpassword"
    assert content == "\n\n\n\n"
    commands = client.dev_init_commands()
    assert len(commands) == 3
    assert all(c.endswith(" account new") for c in commands)
    assert "--password=/tmp/chain/devpassword" in commands[0]


def test_geth_dev_initialisation_is_empty():
    client = _client(GethClient, {"datadir": "/tmp/chain"}, is_dev=True)
    assert client.dev_password_file() is None
    assert client.dev_init_commands() == []


def test_unknown_client_name():
    with pytest.raises(ConfigurationError) as exc:
        get_client_class("besu")
    assert "geth, parity" in str(exc.value)
