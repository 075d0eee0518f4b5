"""git 子进程执行

CliGit 只依赖 CommandExecutor 协议；测试或嵌入到其他构建工具时，
用 set_executor 换掉全局执行器即可，不需要 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    def execute(
        self, cmd: list[str], *, cwd: str = ".", timeout: int | None = None,
    ) -> CommandResult:
        """执行命令；超时抛 subprocess.TimeoutExpired，找不到程序抛 OSError"""
        ...


class LocalExecutor:
    """本地子进程执行器，不经过 shell"""

    def execute(
        self, cmd: list[str], *, cwd: str = ".", timeout: int | None = None,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(cmd), cwd)
        r = subprocess.run(
            cmd, capture_output=True, text=True, cwd=cwd, check=False, timeout=timeout,
        )
        return CommandResult(r.returncode, r.stdout, r.stderr)


_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    return _executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局执行器，之后新建的 CliGit 都会使用它"""
    global _executor  # noqa: PLW0603
    _executor = executor
