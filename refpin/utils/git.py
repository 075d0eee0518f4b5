"""Git 远程操作：只暴露构建元信息需要的语义操作

- archive_file: 不 clone，直接取某 ref 下的单个文件
- shallow_clone: depth=1 浅克隆
- ls_remote: 列出远程 ref -> hash
- rev_parse_head: 读取工作目录当前 commit

GitRemote 是协议，CliGit 通过 CommandExecutor 调用 git 命令行；
换成库实现（如 dulwich）只需实现同样的四个方法。
"""

from __future__ import annotations

import logging
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import Protocol

from refpin.core.exceptions import ExecutionError, ValidationError
from refpin.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 300


class GitRemote(Protocol):
    """Git 远程操作协议

    命令失败时抛 ExecutionError，由调用方决定如何降级。
    """

    def archive_file(self, repo: str, ref: str, path: str) -> str | None:
        """取 repo@ref 下单个文件的文本内容；归档中没有该文件时返回 None"""
        ...

    def shallow_clone(self, repo: str, ref: str, dest: Path) -> None:
        """浅克隆 repo 的 ref 分支到 dest"""
        ...

    def ls_remote(self, repo: str, ref: str) -> list[tuple[str, str]]:
        """返回 [(hash, refname), ...]，顺序与远程输出一致"""
        ...

    def rev_parse_head(self, workdir: Path) -> str:
        """返回 workdir 当前 HEAD 的完整 commit hash"""
        ...


def _check_arg(value: str, what: str) -> None:
    # 以 '-' 开头会被 git 当成选项
    if not value or value.startswith("-"):
        raise ValidationError(f"非法的 git {what}: {value!r}")


class CliGit:
    """基于 git 命令行的 GitRemote 实现"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        timeout: int | None = DEFAULT_GIT_TIMEOUT,
    ) -> None:
        self.executor = executor or get_executor()
        self.timeout = timeout

    def _run(self, args: list[str], *, cwd: str = ".", label: str) -> CommandResult:
        try:
            r = self.executor.execute(args, cwd=cwd, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(f"{label} 超时 ({self.timeout}s)") from e
        except OSError as e:
            raise ExecutionError(f"{label} 无法执行: {e}") from e
        if not r.success:
            raise ExecutionError(
                f"{label} 失败 (rc={r.returncode}): {r.stderr.strip()[:300]}"
            )
        return r

    def archive_file(self, repo: str, ref: str, path: str) -> str | None:
        _check_arg(repo, "仓库地址")
        _check_arg(ref, "ref")
        with tempfile.TemporaryDirectory(prefix="refpin-archive-") as tmp:
            out = Path(tmp) / "archive.tar"
            self._run(
                ["git", "archive", f"--remote={repo}", f"--output={out}", ref, path],
                label="git archive",
            )
            try:
                with tarfile.open(out) as tf:
                    member = tf.extractfile(path)
                    if member is None:
                        return None
                    data = member.read()
            except (tarfile.TarError, KeyError, OSError) as e:
                logger.debug("归档中读取 %s 失败: %s", path, e)
                return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def shallow_clone(self, repo: str, ref: str, dest: Path) -> None:
        _check_arg(repo, "仓库地址")
        _check_arg(ref, "ref")
        self._run(
            ["git", "clone", "--depth", "1", "--branch", ref, repo, str(dest)],
            label="git clone",
        )

    def ls_remote(self, repo: str, ref: str) -> list[tuple[str, str]]:
        _check_arg(repo, "仓库地址")
        _check_arg(ref, "ref")
        r = self._run(["git", "ls-remote", repo, ref], label="git ls-remote")
        refs: list[tuple[str, str]] = []
        for line in r.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2:
                refs.append((parts[0], parts[1]))
        return refs

    def rev_parse_head(self, workdir: Path) -> str:
        r = self._run(["git", "rev-parse", "HEAD"], cwd=str(workdir), label="git rev-parse")
        return r.stdout.strip()
