"""核心数据模型

- RepositorySpec: 仓库地址 + ref
- ResolvedVersion: 解析出的版本号（永不为空）
- BuildParams: 解析结果三元组
- BuildIdentity: 版本号 + 可选 commit 后缀
- InstalledBuildRecord: 构建完成后落盘的安装记录
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime

from refpin.core.exceptions import ValidationError

_COMMIT_RE = re.compile(r"[0-9a-f]{40}")

# 记录文件中的键，顺序即写出顺序
RECORD_KEYS = ("REPO", "REF", "VERSION", "COMMIT", "INSTALLED_AT", "IS_COMMIT_REF")

SHORT_HASH_LEN = 8


def is_commit_reference(ref: str) -> bool:
    """ref 是否为 40 位小写十六进制 commit hash

    这是全系统区分"不可变 ref"和"移动分支"的唯一依据；
    其他任何字符串（含大写、39/41 位）都按分支名处理。
    """
    return isinstance(ref, str) and _COMMIT_RE.fullmatch(ref) is not None


@dataclass(frozen=True)
class RepositorySpec:
    """仓库位置 + ref（分支/tag 名，或 commit hash）"""

    location: str
    reference: str

    @property
    def is_commit(self) -> bool:
        return is_commit_reference(self.reference)


@dataclass(frozen=True)
class ResolvedVersion:
    """解析出的版本号

    source: override | detected | default
    """

    raw: str
    source: str = "default"

    def __post_init__(self) -> None:
        if not self.raw or not self.raw.strip():
            raise ValidationError("版本号不能为空")

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class BuildParams:
    """resolve_build_params 的返回值，可直接解包为 (repo, ref, version)"""

    repo: str
    ref: str
    version: ResolvedVersion

    def __iter__(self) -> Iterator[str]:
        return iter((self.repo, self.ref, self.version.raw))

    @property
    def spec(self) -> RepositorySpec:
        return RepositorySpec(location=self.repo, reference=self.ref)


@dataclass(frozen=True)
class BuildIdentity:
    """构建标识：展示版本号 = version[-commit_suffix]"""

    version: str
    commit_suffix: str | None = None

    @property
    def label(self) -> str:
        if self.commit_suffix:
            return f"{self.version}-{self.commit_suffix}"
        return self.version

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class InstalledBuildRecord:
    """安装记录，对应 <prefix>/COMMIT_INFO"""

    repo: str
    reference: str
    version: str
    resolved_commit: str
    installed_at: datetime
    is_commit_ref: bool

    def to_fields(self) -> dict[str, str]:
        return {
            "REPO": self.repo,
            "REF": self.reference,
            "VERSION": self.version,
            "COMMIT": self.resolved_commit,
            "INSTALLED_AT": self.installed_at.isoformat(),
            "IS_COMMIT_REF": "true" if self.is_commit_ref else "false",
        }

    @classmethod
    def from_fields(cls, data: Mapping[str, str]) -> InstalledBuildRecord:
        """从记录文件字段构造；缺字段或时间戳非法抛 ValidationError"""
        missing = [k for k in RECORD_KEYS if not data.get(k)]
        if missing:
            raise ValidationError(f"安装记录缺少字段: {', '.join(missing)}", details=missing)
        try:
            installed_at = datetime.fromisoformat(data["INSTALLED_AT"])
        except ValueError as e:
            raise ValidationError(f"INSTALLED_AT 不是 ISO-8601 时间: {data['INSTALLED_AT']}") from e
        return cls(
            repo=data["REPO"],
            reference=data["REF"],
            version=data["VERSION"],
            resolved_commit=data["COMMIT"],
            installed_at=installed_at,
            is_commit_ref=data["IS_COMMIT_REF"] == "true",
        )
