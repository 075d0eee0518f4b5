"""构建参数解析

优先级（高到低）：
  1. 环境变量覆盖 REFPIN_REPO / REFPIN_REF / REFPIN_VERSION_OVERRIDE
  2. 配置中的默认仓库 / 默认 ref
  3. 版本号: 覆盖值 > 从上游描述文件探测 > 配置中的默认版本

版本探测的任何异常都在这里吞掉并回退到默认版本，解析本身永不失败。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from refpin.core.config import (
    ENV_REF,
    ENV_REPO,
    ENV_VERSION,
    Config,
    debug_enabled,
    env_value,
    failure_level,
    get_config,
)
from refpin.core.fetcher import DescriptorFetcher
from refpin.core.models import BuildParams, ResolvedVersion

logger = logging.getLogger(__name__)


class VersionResolver:
    """仓库 / ref / 版本解析器"""

    def __init__(
        self,
        config: Config | None = None,
        fetcher: DescriptorFetcher | None = None,
    ) -> None:
        self.config = config or get_config()
        self.fetcher = fetcher or DescriptorFetcher(self.config)

    def resolve(self, env: Mapping[str, str] | None = None) -> BuildParams:
        if env is None:
            env = os.environ

        repo = env_value(env, ENV_REPO) or self.config.default_repo
        ref = env_value(env, ENV_REF) or self.config.default_ref

        override = env_value(env, ENV_VERSION)
        if override:
            version = ResolvedVersion(override, source="override")
        else:
            version = self._detect_or_default(repo, ref, debug=debug_enabled(env))

        logger.debug("构建参数: repo=%s ref=%s version=%s (%s)", repo, ref, version, version.source)
        return BuildParams(repo=repo, ref=ref, version=version)

    def _detect_or_default(self, repo: str, ref: str, *, debug: bool) -> ResolvedVersion:
        try:
            detected = self.fetcher.detect_version(repo, ref, debug=debug)
        except Exception as e:  # noqa: BLE001
            logger.log(failure_level(debug), "版本探测失败: %s", e)
            detected = None
        if detected:
            return ResolvedVersion(detected, source="detected")
        logger.info("未探测到上游版本，使用默认版本 %s", self.config.default_version)
        return ResolvedVersion(self.config.default_version, source="default")


def resolve_build_params(
    env_overrides: Mapping[str, str] | None = None,
    *,
    resolver: VersionResolver | None = None,
) -> BuildParams:
    """解析 (repo, ref, version)；env_overrides 缺省时读取 os.environ"""
    return (resolver or VersionResolver()).resolve(env_overrides)


def describe_build(repo: str, ref: str, version: str) -> str:
    """人类可读的构建描述

    >>> describe_build("https://git.code.sf.net/p/zsh/code", "master", "5.9")
    '5.9 (from zsh/code @ master)'
    """
    tail = "/".join(repo.rstrip("/").split("/")[-2:])
    return f"{version} (from {tail} @ {ref})"
