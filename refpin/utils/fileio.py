"""文件读写工具

- YAML 配置读取（空值保护、大小限制）
- KEY=value 纯文本记录读写
- 原子写入
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件最大 1MB
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写同目录临时文件再 rename

    读方要么看到旧文件，要么看到完整的新文件。
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    返回:
        dict: 解析后的字典。文件不存在、为空或顶层不是字典时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        OSError: 读取失败
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"YAML 文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_YAML_SIZE} 字节"
        )

    with open(p, encoding="utf-8") as f:
        result = yaml.safe_load(f)

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，忽略", path, type(result).__name__,
        )
        return {}
    return result


def parse_kv(text: str) -> dict[str, str]:
    """解析 KEY=value 文本，每行一对

    只按第一个 '=' 切分，值里可以再含 '='；没有 '=' 的行忽略。
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or not key:
            continue
        fields[key.strip()] = value.strip()
    return fields


def read_kv_file(path: str | Path) -> dict[str, str] | None:
    """读取 KEY=value 文件，不存在返回 None"""
    p = Path(path)
    if not p.is_file():
        return None
    return parse_kv(p.read_text(encoding="utf-8"))


def write_kv_file(path: str | Path, fields: Mapping[str, str]) -> None:
    """按给定顺序原子写入 KEY=value 文件，整体替换旧文件"""
    lines = []
    for key, value in fields.items():
        if "\n" in value or "\r" in value:
            raise ValueError(f"字段 {key} 的值不能包含换行")
        lines.append(f"{key}={value}\n")
    atomic_write(Path(path), "".join(lines))
