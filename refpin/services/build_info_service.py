"""构建元信息服务：供构建工具在各生命周期节点调用

  构建前: resolve() / identity() / download_name()
  构建后: record_after_build()
  升级前: is_outdated()
  安装后: build_info()
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from refpin.core.config import Config, debug_enabled, get_config
from refpin.core.exceptions import ExecutionError
from refpin.core.fetcher import DescriptorFetcher, HttpGet
from refpin.core.identity import IdentityResolver
from refpin.core.models import BuildIdentity, BuildParams
from refpin.core.record import BuildRecordStore
from refpin.core.resolver import VersionResolver, describe_build
from refpin.utils.git import CliGit, GitRemote

logger = logging.getLogger(__name__)


class BuildInfoService:
    """构建版本解析、安装记录与过期检测的统一入口"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        git: GitRemote | None = None,
        http_get: HttpGet | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.git = git or CliGit(timeout=self.config.git_timeout)
        self.env = env
        self.fetcher = DescriptorFetcher(self.config, http_get=http_get, git=self.git)
        self.resolver = VersionResolver(self.config, self.fetcher)
        self.identity_resolver = IdentityResolver(self.config, self.git)

    def _env(self) -> Mapping[str, str]:
        return os.environ if self.env is None else self.env

    def _debug(self) -> bool:
        return debug_enabled(self._env())

    # ---- 构建前 ----

    def resolve(self) -> BuildParams:
        return self.resolver.resolve(self._env())

    def identity(self, params: BuildParams | None = None) -> BuildIdentity:
        params = params or self.resolve()
        return self.identity_resolver.compute_identity(
            params.repo, params.ref, params.version.raw, debug=self._debug(),
        )

    def download_name(self, repo: str) -> str:
        return self.identity_resolver.download_name(repo)

    def describe(self, params: BuildParams | None = None) -> str:
        repo, ref, version = params or self.resolve()
        return describe_build(repo, ref, version)

    def detect_version(self, repo: str, ref: str) -> str | None:
        return self.fetcher.detect_version(repo, ref, debug=self._debug())

    # ---- 构建后 / 升级前 ----

    def store(self, prefix: str | Path | None = None) -> BuildRecordStore:
        return BuildRecordStore(prefix, self.config, self.identity_resolver)

    def record_after_build(
        self,
        prefix: str | Path | None,
        workdir: str | Path = ".",
        params: BuildParams | None = None,
    ) -> Path | None:
        """读取构建目录的 HEAD 并写入安装记录"""
        params = params or self.resolve()
        try:
            actual_commit = self.git.rev_parse_head(Path(workdir))
        except ExecutionError as e:
            logger.warning("读取构建目录 commit 失败 %s: %s", workdir, e)
            actual_commit = ""
        repo, ref, version = params
        return self.store(prefix).record_build(repo, ref, version, actual_commit)

    def is_outdated(self, prefix: str | Path | None = None) -> bool:
        return self.store(prefix).is_outdated(debug=self._debug())

    # ---- 安装后 ----

    def build_info(self, prefix: str | Path | None = None) -> str:
        """构建信息文本：优先读安装记录，没有记录时按当前环境解析"""
        fields = self.store(prefix).read_fields()
        if fields is not None:
            repo = fields.get("REPO") or self.config.default_repo
            ref = fields.get("REF") or self.config.default_ref
            version = fields.get("VERSION") or self.config.default_version
            commit = fields.get("COMMIT", "")
            installed_at = fields.get("INSTALLED_AT", "")
        else:
            repo, ref, version = self.resolve()
            commit = installed_at = ""

        lines = [
            "构建信息:",
            f"  仓库:     {repo}",
            f"  Ref:      {ref}",
            f"  版本:     {version}",
        ]
        if commit:
            lines.append(f"  Commit:   {commit}")
        if installed_at:
            lines.append(f"  安装时间: {installed_at}")
        lines += [
            "",
            f"  该 {self.config.project_name} 由上述仓库与 git ref 的源码编译而成。",
        ]
        return "\n".join(lines)
