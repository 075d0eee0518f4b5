"""安装记录与过期检测

构建成功后在安装目录写 COMMIT_INFO（每行 KEY=value），升级前读它判断上游是否前进。
过期检测遇到任何不确定情况都判为"未过期"，宁可漏报也不误报。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from refpin.core.config import Config, failure_level, get_config
from refpin.core.exceptions import ValidationError
from refpin.core.identity import IdentityResolver
from refpin.core.models import InstalledBuildRecord, is_commit_reference
from refpin.utils.fileio import read_kv_file, write_kv_file

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now().astimezone().replace(microsecond=0)


class BuildRecordStore:
    """<prefix>/COMMIT_INFO 的读写与过期判断"""

    def __init__(
        self,
        prefix: str | Path | None = None,
        config: Config | None = None,
        identity: IdentityResolver | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self.config = config or get_config()
        self.prefix = Path(prefix or self.config.install_prefix)
        self.identity = identity or IdentityResolver(self.config)
        self.clock = clock

    @property
    def path(self) -> Path:
        return self.prefix / self.config.record_file

    def record_build(
        self, repo: str, reference: str, version: str, actual_commit: str,
    ) -> Path | None:
        """写入安装记录，整体覆盖旧记录

        actual_commit 为空时不写（之后没有可比较的基准），返回 None。
        """
        actual_commit = (actual_commit or "").strip()
        if not actual_commit:
            logger.warning("未取得实际构建 commit，跳过安装记录: %s", self.path)
            return None

        record = InstalledBuildRecord(
            repo=repo,
            reference=reference,
            version=version,
            resolved_commit=actual_commit,
            installed_at=self.clock(),
            is_commit_ref=is_commit_reference(reference),
        )
        write_kv_file(self.path, record.to_fields())
        logger.info("安装记录已写入: %s (commit=%s)", self.path, actual_commit[:8])
        return self.path

    def read_fields(self) -> dict[str, str] | None:
        """原始字段，记录不存在返回 None"""
        return read_kv_file(self.path)

    def read_record(self) -> InstalledBuildRecord | None:
        """解析安装记录；不存在或不完整返回 None"""
        fields = self.read_fields()
        if fields is None:
            return None
        try:
            return InstalledBuildRecord.from_fields(fields)
        except ValidationError as e:
            logger.warning("安装记录无效 %s: %s", self.path, e)
            return None

    def is_outdated(self, *, debug: bool | None = None) -> bool:
        """上游分支是否已前进；任何异常都视为未过期"""
        try:
            return self._evaluate_outdated(debug)
        except Exception as e:  # noqa: BLE001
            logger.log(failure_level(debug), "过期检测失败，按未过期处理: %s", e)
            return False

    def _evaluate_outdated(self, debug: bool | None) -> bool:
        fields = self.read_fields()
        if fields is None:
            return False

        # commit ref 不会移动
        if fields.get("IS_COMMIT_REF") == "true":
            return False

        repo = fields.get("REPO")
        ref = fields.get("REF")
        installed_commit = fields.get("COMMIT")
        if not repo or not ref or not installed_commit:
            return False

        remote_commit = self.identity.remote_head(repo, ref, debug=debug)
        if not remote_commit:
            # 远程不可达时不报过期
            return False

        outdated = remote_commit != installed_commit
        if outdated:
            logger.info(
                "上游已更新: %s@%s %s -> %s",
                repo, ref, installed_commit[:8], remote_commit[:8],
            )
        return outdated


def record_build(
    repo: str, reference: str, version: str, actual_commit: str,
    *, prefix: str | Path | None = None,
) -> Path | None:
    return BuildRecordStore(prefix).record_build(repo, reference, version, actual_commit)


def is_outdated(prefix: str | Path | None = None) -> bool:
    return BuildRecordStore(prefix).is_outdated()
