"""构建标识

- remote_head: 分支 ref 解析为远程当前 commit
- compute_identity: 版本号 + 8 位 commit 后缀
- download_name: 按仓库地址区分的下载缓存名，不同仓库互不冲突
"""

from __future__ import annotations

import hashlib
import logging

from refpin.core.config import Config, failure_level, get_config
from refpin.core.models import SHORT_HASH_LEN, BuildIdentity, is_commit_reference
from refpin.utils.git import CliGit, GitRemote

logger = logging.getLogger(__name__)

__all__ = [
    "IdentityResolver",
    "compute_identity",
    "download_name",
    "is_commit_reference",
    "remote_head",
    "repo_fingerprint",
]


def repo_fingerprint(location: str) -> str:
    """仓库地址的 8 位 SHA-256 指纹，只由地址决定，与版本无关"""
    return hashlib.sha256(location.encode("utf-8")).hexdigest()[:SHORT_HASH_LEN]


class IdentityResolver:
    """commit 解析与构建标识计算"""

    def __init__(self, config: Config | None = None, git: GitRemote | None = None) -> None:
        self.config = config or get_config()
        self.git = git or CliGit(timeout=self.config.git_timeout)

    def remote_head(
        self, repo: str, reference: str, *, debug: bool | None = None,
    ) -> str | None:
        """远程 ref 当前指向的 commit

        commit ref 不会移动，直接返回 None；查询失败也返回 None，
        debug 为 True 时失败以 WARNING 输出。
        """
        if is_commit_reference(reference):
            return None
        try:
            refs = self.git.ls_remote(repo, reference)
        except Exception as e:  # noqa: BLE001
            logger.log(failure_level(debug), "ls-remote 失败 %s %s: %s", repo, reference, e)
            return None
        if not refs:
            logger.debug("远程没有匹配的 ref: %s %s", repo, reference)
            return None
        head = refs[0][0].strip()
        return head or None

    def compute_identity(
        self, repo: str, reference: str, version: str, *, debug: bool | None = None,
    ) -> BuildIdentity:
        if is_commit_reference(reference):
            return BuildIdentity(version, reference[:SHORT_HASH_LEN])
        head = self.remote_head(repo, reference, debug=debug)
        if head:
            return BuildIdentity(version, head[:SHORT_HASH_LEN])
        # 查不到远程 commit 时退化为裸版本号
        return BuildIdentity(version)

    def download_name(self, location: str) -> str:
        return f"{self.config.project_name}-{repo_fingerprint(location)}"


def remote_head(repo: str, reference: str) -> str | None:
    return IdentityResolver().remote_head(repo, reference)


def compute_identity(repo: str, reference: str, version: str) -> BuildIdentity:
    return IdentityResolver().compute_identity(repo, reference, version)


def download_name(location: str) -> str:
    return IdentityResolver().download_name(location)
