"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- config: Config 的单例实例
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.parse_bootnodes: 将字符串/JSON 解析为 List[str]
- JsonFileSettingsSource: config.json 配置来源
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource


class JsonFileSettingsSource(PydanticBaseSettingsSource):
    """从工作目录的 config.json（或 CONFIG_FILE 指定路径）加载配置。"""

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self._data: Dict[str, Any] | None = None

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        cfg_path = os.environ.get("CONFIG_FILE")
        path = Path(cfg_path) if cfg_path else Path.cwd() / "config.json"
        self._data = {}
        if not path.exists():
            return self._data
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"读取配置文件 {path} 失败，已忽略：{e}")
            return self._data
        if isinstance(data, dict):
            self._data = data
        return self._data

    def __call__(self) -> Dict[str, Any]:
        data = self._load()
        result: Dict[str, Any] = {}
        for name, field in self.settings_cls.model_fields.items():
            value, _, found = self._lookup(data, name, field.alias)
            if found:
                result[name] = value
        return result

    @staticmethod
    def _lookup(data: Dict[str, Any], name: str, alias: str | None) -> Tuple[Any, str | None, bool]:
        for key in (alias, name):
            if key and key in data:
                return data[key], key, True
        return None, None, False

    def get_field_value(self, field, field_name):  # type: ignore[override]
        return self._lookup(self._load(), field_name, getattr(field, "alias", None))


class Config(BaseSettings):
    app_env: str = "development"
    log_level: str = "INFO"
    dapp_path: str | None = None
    blockchain_enabled: bool = True
    client_name: str | None = None
    is_dev: bool = False
    blockchain: Dict[str, Any] = {}
    bootnodes: List[str] = []

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("bootnodes", mode="before")
    @classmethod
    def parse_bootnodes(cls, value: Any) -> List[str]:
        """支持从环境变量以 JSON 或分隔符（逗号/分号/空白）解析 bootnodes。"""
        if value is None or value == "":
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                try:
                    loaded = json.loads(text)
                except json.JSONDecodeError:
                    loaded = None
                if isinstance(loaded, list):
                    return [str(v) for v in loaded]
            return [p for p in re.split(r"[\s,;]+", text) if p]
        return value

    def blockchain_config(self) -> Dict[str, Any]:
        """用户的 blockchain 配置；顶层 bootnodes 只在其未配置时补充进去。"""
        data = dict(self.blockchain)
        if self.bootnodes and not data.get("bootnodes"):
            data["bootnodes"] = list(self.bootnodes)
        return data

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """自定义配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSettingsSource(settings_cls),
            file_secret_settings,
        )


config = Config()
