"""模块级入口测试：使用全局配置与全局执行器"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from refpin.core.config import init_config
from refpin.core.fetcher import fetch_descriptor
from refpin.core.identity import compute_identity, download_name, remote_head, repo_fingerprint
from refpin.core.record import is_outdated, record_build
from refpin.utils.shell import CommandResult, get_executor, set_executor

HEAD = "0123456789abcdef0123456789abcdef01234567"
NEWER = "fedcba9876543210fedcba9876543210fedcba98"
REPO = "ssh://git.example.org/tool.git"


class ScriptedGit:
    """按 git 子命令返回预置结果的执行器"""

    def __init__(self, head: str = HEAD, files: dict[str, bytes] | None = None) -> None:
        self.head = head
        self.files = files or {}
        self.commands: list[list[str]] = []
        self.timeouts: list[int | None] = []

    def execute(self, cmd, *, cwd=".", timeout=None) -> CommandResult:
        cmd = list(cmd)
        self.commands.append(cmd)
        self.timeouts.append(timeout)
        if cmd[1] == "ls-remote":
            return CommandResult(0, f"{self.head}\trefs/heads/{cmd[-1]}\n", "")
        if cmd[1] == "archive" and self.files:
            out = next(a.split("=", 1)[1] for a in cmd if a.startswith("--output="))
            with tarfile.open(out, "w") as tf:
                for name, data in self.files.items():
                    info = tarfile.TarInfo(name)
                    info.size = len(data)
                    tf.addfile(info, io.BytesIO(data))
            return CommandResult(0, "", "")
        return CommandResult(128, "", "fatal: unable to access remote")


@pytest.fixture()
def scripted_git():
    original = get_executor()
    ex = ScriptedGit()
    set_executor(ex)
    yield ex
    set_executor(original)


@pytest.fixture()
def global_config(tmp_path: Path):
    p = tmp_path / "refpin.yml"
    p.write_text(
        "project_name: tool\n"
        f"default_repo: {REPO}\n"
        "default_ref: main\n"
        "descriptor_path: VERSION.txt\n"
        "descriptor_key: RELEASE\n"
        f"install_prefix: {tmp_path / 'inst'}\n"
        "record_file: BUILD_INFO\n"
        "git_timeout: 45\n",
        encoding="utf-8",
    )
    return init_config(str(p))


class TestRecordFunctions:
    def test_record_then_outdated_with_configured_prefix(self, global_config, scripted_git, tmp_path) -> None:
        path = record_build(REPO, "main", "1.0", HEAD)
        assert path == tmp_path / "inst" / "BUILD_INFO"
        assert "COMMIT=" + HEAD in path.read_text(encoding="utf-8")

        assert is_outdated() is False
        scripted_git.head = NEWER
        assert is_outdated() is True
        assert scripted_git.timeouts[-1] == 45

    def test_explicit_prefix(self, global_config, scripted_git, tmp_path) -> None:
        other = tmp_path / "other"
        path = record_build(REPO, "main", "1.0", HEAD, prefix=other)
        assert path == other / "BUILD_INFO"
        assert not (tmp_path / "inst" / "BUILD_INFO").exists()

        scripted_git.head = NEWER
        assert is_outdated(other) is True
        assert is_outdated() is False  # 默认目录下没有记录


class TestIdentityFunctions:
    def test_remote_head(self, global_config, scripted_git) -> None:
        assert remote_head(REPO, "main") == HEAD
        assert scripted_git.commands[-1] == ["git", "ls-remote", REPO, "main"]

    def test_commit_reference_runs_nothing(self, global_config, scripted_git) -> None:
        assert remote_head(REPO, HEAD) is None
        assert compute_identity(REPO, NEWER, "1.0").label == "1.0-fedcba98"
        assert scripted_git.commands == []

    def test_compute_identity(self, global_config, scripted_git) -> None:
        assert compute_identity(REPO, "main", "1.0").label == "1.0-01234567"

    def test_download_name_uses_project_name(self, global_config) -> None:
        assert download_name(REPO) == f"tool-{repo_fingerprint(REPO)}"


class TestFetchFunction:
    def test_generic_host_reads_configured_path(self, global_config, scripted_git) -> None:
        scripted_git.files = {"VERSION.txt": b"RELEASE=1.2\n"}
        assert fetch_descriptor(REPO, "main") == "RELEASE=1.2\n"
        archive = scripted_git.commands[0]
        assert archive[:3] == ["git", "archive", f"--remote={REPO}"]
        assert archive[-2:] == ["main", "VERSION.txt"]
        assert scripted_git.timeouts[0] == 45

    def test_unreachable_is_absent(self, global_config, scripted_git) -> None:
        assert fetch_descriptor(REPO, "main") is None
        assert [c[1] for c in scripted_git.commands] == ["archive", "clone"]
