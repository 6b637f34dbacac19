"""
测试 Config 的多来源合并：入参 > 环境变量 > .env > config.json。
"""

import json

import pytest

from src.node_runner.config import Config


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("CONFIG_FILE", "APP_ENV", "CLIENT_NAME", "BLOCKCHAIN", "BOOTNODES", "IS_DEV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_defaults(workdir):
    c = Config()
    assert c.app_env == "development"
    assert c.blockchain_enabled is True
    assert c.blockchain == {}
    assert c.bootnodes == []


def test_config_json_is_loaded(workdir):
    (workdir / "config.json").write_text(
        json.dumps({"client_name": "parity", "blockchain": {"rpcPort": 9545}, "is_dev": True})
    )
    c = Config()
    assert c.client_name == "parity"
    assert c.blockchain == {"rpcPort": 9545}
    assert c.is_dev is True


def test_environment_beats_dotenv_and_config_json(workdir, monkeypatch):
    (workdir / "config.json").write_text(json.dumps({"app_env": "from-json", "log_level": "DEBUG"}))
    (workdir / ".env").write_text("APP_ENV=from-dotenv\nLOG_LEVEL=WARNING\n")
    assert Config().app_env == "from-dotenv"
    assert Config().log_level == "WARNING"

    monkeypatch.setenv("APP_ENV", "from-env")
    assert Config().app_env == "from-env"
    assert Config(app_env="from-init").app_env == "from-init"


def test_config_file_env_var(workdir, monkeypatch):
    path = workdir / "custom.json"
    path.write_text(json.dumps({"blockchain_enabled": False}))
    monkeypatch.setenv("CONFIG_FILE", str(path))
    assert Config().blockchain_enabled is False


def test_broken_config_json_is_ignored(workdir):
    (workdir / "config.json").write_text("{not json")
    assert Config().app_env == "development"


def test_blockchain_from_environment(workdir, monkeypatch):
    monkeypatch.setenv("BLOCKCHAIN", json.dumps({"ethereumClientName": "parity", "isDev": True}))
    assert Config().blockchain == {"ethereumClientName": "parity", "isDev": True}


@pytest.mark.parametrize(
    "value,expected",
    [
        ("enode://a, enode://b;enode://c", ["enode://a", "enode://b", "enode://c"]),
        ('["enode://a", "enode://b"]', ["enode://a", "enode://b"]),
        ("", []),
        (["enode://a"], ["enode://a"]),
    ],
)
def test_parse_bootnodes(workdir, value, expected):
    assert Config(bootnodes=value).bootnodes == expected


def test_blockchain_config_merges_bootnodes(workdir):
    c = Config(bootnodes=["enode://a"], blockchain={"rpcPort": 1})
    assert c.blockchain_config() == {"rpcPort": 1, "bootnodes": ["enode://a"]}
    c = Config(bootnodes=["enode://a"], blockchain={"bootnodes": "enode://b"})
    assert c.blockchain_config()["bootnodes"] == "enode://b"
