"""一次性 shell 命令的执行与结果封装。"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable

from loguru import logger


@dataclass(frozen=True)
class CommandResult:
    cmd: str
    return_code: int = 0
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None or self.return_code != 0


CommandRunner = Callable[[str], CommandResult]


def run_command(cmd: str, silent: bool = False) -> CommandResult:
    """执行命令并收集输出；启动失败不会抛出，而是记录在 error 中。"""
    if not silent:
        logger.info(f"running: {cmd}")
    try:
        result = subprocess.run(
            cmd,
            shell=True,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        return CommandResult(cmd=cmd, return_code=-1, error=str(e))
    return CommandResult(
        cmd=cmd,
        return_code=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )
