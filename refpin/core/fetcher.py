"""远程版本描述文件拉取

按仓库托管类型选择拉取策略（构造时匹配一次，之后每次调用复用）：
  1. github.com      -> raw.githubusercontent.com 直链
  2. gitlab.com      -> /-/raw/ 直链
  3. git.code.sf.net -> sourceforge.net 网页端 ?format=raw
  4. 其他            -> git archive --remote，失败再浅克隆到临时目录

所有策略在网络失败时返回 None，不抛异常；不重试，不缓存。
"""

from __future__ import annotations

import abc
import functools
import logging
import re
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from refpin.core.config import Config, failure_level, get_config
from refpin.core.exceptions import ExecutionError, ValidationError
from refpin.utils.git import CliGit, GitRemote
from refpin.utils.net import http_get_text

logger = logging.getLogger(__name__)

HttpGet = Callable[[str], str | None]


class DescriptorSource(Protocol):
    """某个仓库的描述文件拉取策略"""

    def fetch(self, reference: str) -> str | None:
        ...


# =========================================================================
# HTTP 直链类策略
# =========================================================================

class RawHttpSource(abc.ABC):
    """通过托管平台的 raw 文件 URL 拉取"""

    def __init__(self, location: str, descriptor_path: str, http_get: HttpGet) -> None:
        self.location = location
        self.descriptor_path = descriptor_path.lstrip("/")
        self.http_get = http_get

    @abc.abstractmethod
    def url_for(self, reference: str) -> str | None:
        """构造 raw 文件 URL；无法从仓库地址提取路径时返回 None"""

    def fetch(self, reference: str) -> str | None:
        url = self.url_for(reference)
        if url is None:
            logger.debug("无法从仓库地址构造 raw URL: %s", self.location)
            return None
        logger.debug("拉取描述文件: %s", url)
        return self.http_get(url)


class GitHubRawSource(RawHttpSource):
    """GitHub: https://raw.githubusercontent.com/<owner>/<repo>/<ref>/<path>"""

    _path_re = re.compile(r"github\.com[:/]([^/]+/[^/]+?)(?:\.git)?/?$")

    def url_for(self, reference: str) -> str | None:
        m = self._path_re.search(self.location)
        if not m:
            return None
        return (
            f"https://raw.githubusercontent.com/{m.group(1)}/"
            f"{quote(reference, safe='/')}/{self.descriptor_path}"
        )


class GitLabRawSource(RawHttpSource):
    """GitLab: https://gitlab.com/<group/.../project>/-/raw/<ref>/<path>"""

    _path_re = re.compile(r"gitlab\.com[:/](.+?)(?:\.git)?/?$")

    def url_for(self, reference: str) -> str | None:
        m = self._path_re.search(self.location)
        if not m:
            return None
        return (
            f"https://gitlab.com/{m.group(1)}/-/raw/"
            f"{quote(reference, safe='/')}/{self.descriptor_path}"
        )


class SourceForgeSource(RawHttpSource):
    """SourceForge: git.code.sf.net 改写为 sourceforge.net 网页端"""

    def url_for(self, reference: str) -> str | None:
        web_url = self.location.replace("git.code.sf.net", "sourceforge.net").rstrip("/")
        if not web_url.startswith(("http://", "https://")):
            web_url = f"https://{web_url.split('://', 1)[-1]}"
        return (
            f"{web_url}/ci/{quote(reference, safe='/')}/tree/"
            f"{self.descriptor_path}?format=raw"
        )


# =========================================================================
# 通用 git 策略（自建/其他托管）
# =========================================================================

class GenericGitSource:
    """先 git archive --remote 取单文件，失败再浅克隆

    浅克隆是最贵的路径，放在最后；临时目录在任何退出路径上都会删除。
    """

    def __init__(self, location: str, descriptor_path: str, git: GitRemote) -> None:
        self.location = location
        self.descriptor_path = descriptor_path.lstrip("/")
        self.git = git

    def fetch(self, reference: str) -> str | None:
        content = self._from_archive(reference)
        if content and content.strip():
            return content
        logger.debug("git archive 无结果，尝试浅克隆: %s@%s", self.location, reference)
        return self._from_shallow_clone(reference)

    def _from_archive(self, reference: str) -> str | None:
        try:
            return self.git.archive_file(self.location, reference, self.descriptor_path)
        except (ExecutionError, ValidationError) as e:
            logger.debug("git archive 失败: %s", e)
            return None

    def _from_shallow_clone(self, reference: str) -> str | None:
        with tempfile.TemporaryDirectory(prefix="refpin-clone-") as tmp:
            dest = Path(tmp) / "src"
            try:
                self.git.shallow_clone(self.location, reference, dest)
            except (ExecutionError, ValidationError) as e:
                logger.debug("浅克隆失败: %s", e)
                return None
            target = dest / self.descriptor_path
            if not target.is_file():
                logger.debug("克隆结果中没有 %s", self.descriptor_path)
                return None
            try:
                return target.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("读取 %s 失败: %s", target, e)
                return None


# 按顺序匹配，第一个命中的生效
_HTTP_SOURCES: list[tuple[re.Pattern[str], type[RawHttpSource]]] = [
    (re.compile(r"github\.com"), GitHubRawSource),
    (re.compile(r"gitlab\.com"), GitLabRawSource),
    (re.compile(r"git\.code\.sf\.net"), SourceForgeSource),
]


def select_source(
    location: str,
    descriptor_path: str,
    *,
    http_get: HttpGet,
    git: GitRemote,
) -> DescriptorSource:
    """按仓库地址选择拉取策略"""
    for pattern, source_cls in _HTTP_SOURCES:
        if pattern.search(location):
            return source_cls(location, descriptor_path, http_get)
    return GenericGitSource(location, descriptor_path, git)


def parse_descriptor(text: str | None, key: str = "VERSION") -> str | None:
    """取第一行 'KEY=' 开头的值，去空白；没有或为空返回 None

    >>> parse_descriptor("VERSION=5.9.0.1-dev\\nMAJOR=5")
    '5.9.0.1-dev'
    """
    if not text or not text.strip():
        return None
    prefix = f"{key}="
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(prefix):
            value = stripped.split("=", 1)[1].strip()
            return value or None
    return None


class DescriptorFetcher:
    """描述文件拉取器"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        http_get: HttpGet | None = None,
        git: GitRemote | None = None,
    ) -> None:
        self.config = config or get_config()
        self.http_get = http_get or functools.partial(
            http_get_text, timeout=self.config.http_timeout,
        )
        self.git = git or CliGit(timeout=self.config.git_timeout)

    def source_for(self, location: str) -> DescriptorSource:
        return select_source(
            location, self.config.descriptor_path,
            http_get=self.http_get, git=self.git,
        )

    def fetch_descriptor(
        self, location: str, reference: str, *, debug: bool | None = None,
    ) -> str | None:
        """拉取 location@reference 的描述文件文本，任何失败都返回 None

        debug 为 True 时失败以 WARNING 输出；None 表示读 REFPIN_DEBUG。
        """
        try:
            text = self.source_for(location).fetch(reference)
        except Exception as e:  # noqa: BLE001
            logger.log(failure_level(debug), "描述文件拉取失败 %s@%s: %s", location, reference, e)
            return None
        if text is None or not text.strip():
            return None
        return text

    def detect_version(
        self, location: str, reference: str, *, debug: bool | None = None,
    ) -> str | None:
        """拉取并解析版本号"""
        text = self.fetch_descriptor(location, reference, debug=debug)
        version = parse_descriptor(text, self.config.descriptor_key)
        if version:
            logger.info("探测到上游版本: %s (%s@%s)", version, location, reference)
        return version


def fetch_descriptor(location: str, reference: str) -> str | None:
    """使用全局配置拉取描述文件"""
    return DescriptorFetcher().fetch_descriptor(location, reference)
