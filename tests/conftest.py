"""共享 fixture：假 git / 假 HTTP，测试不访问网络"""

from __future__ import annotations

from pathlib import Path

import pytest

from refpin.core.config import Config, reset_config
from refpin.core.exceptions import ExecutionError


class FakeGit:
    """GitRemote 的内存实现

    errors: {"archive"|"clone"|"ls_remote"|"rev_parse": 异常实例}
    """

    def __init__(
        self,
        *,
        archive: str | None = None,
        clone_files: dict[str, str] | None = None,
        refs: list[tuple[str, str]] | None = None,
        head: str = "",
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.archive = archive
        self.clone_files = clone_files or {}
        self.refs = refs or []
        self.head = head
        self.errors = errors or {}
        self.calls: list[tuple] = []
        self.clone_dest: Path | None = None

    def _maybe_fail(self, op: str) -> None:
        if op in self.errors:
            raise self.errors[op]

    def archive_file(self, repo: str, ref: str, path: str) -> str | None:
        self.calls.append(("archive", repo, ref, path))
        self._maybe_fail("archive")
        return self.archive

    def shallow_clone(self, repo: str, ref: str, dest: Path) -> None:
        self.calls.append(("clone", repo, ref))
        self.clone_dest = dest
        dest.mkdir(parents=True, exist_ok=True)
        for rel, text in self.clone_files.items():
            p = dest / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(text, encoding="utf-8")
        self._maybe_fail("clone")

    def ls_remote(self, repo: str, ref: str) -> list[tuple[str, str]]:
        self.calls.append(("ls_remote", repo, ref))
        self._maybe_fail("ls_remote")
        return list(self.refs)

    def rev_parse_head(self, workdir: Path) -> str:
        self.calls.append(("rev_parse", str(workdir)))
        self._maybe_fail("rev_parse")
        return self.head


class FakeHttp:
    """按 URL 返回预置文本，其余返回 None"""

    def __init__(self, responses: dict[str, str] | None = None, error: Exception | None = None) -> None:
        self.responses = responses or {}
        self.error = error
        self.urls: list[str] = []

    def __call__(self, url: str) -> str | None:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.responses.get(url)


NETWORK_DOWN = ExecutionError("git ls-remote 失败 (rc=128): Could not resolve host")


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    """清理 REFPIN_* 环境变量和全局配置"""
    import os
    for key in list(os.environ):
        if key.startswith("REFPIN_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(install_prefix=str(tmp_path / "prefix"))


@pytest.fixture()
def fake_git() -> type[FakeGit]:
    return FakeGit


@pytest.fixture()
def fake_http() -> type[FakeHttp]:
    return FakeHttp


@pytest.fixture()
def network_down() -> ExecutionError:
    return NETWORK_DOWN
