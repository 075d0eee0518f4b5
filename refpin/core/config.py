"""集中配置管理

内置默认值 + YAML 文件 + 环境变量覆盖三层：
- Config: 默认仓库/ref/版本、描述文件位置、超时等，可由 YAML 文件覆盖
- 环境变量: 单次构建的仓库/ref/版本覆盖与调试开关，每次解析时读取
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields

import yaml

from refpin.core.exceptions import ConfigError
from refpin.utils.fileio import load_yaml

logger = logging.getLogger(__name__)

# 单次构建覆盖
ENV_REPO = "REFPIN_REPO"
ENV_REF = "REFPIN_REF"
ENV_VERSION = "REFPIN_VERSION_OVERRIDE"
ENV_DEBUG = "REFPIN_DEBUG"

# 日志 / 配置文件
ENV_LOG_LEVEL = "REFPIN_LOG_LEVEL"
ENV_LOG_JSON = "REFPIN_LOG_JSON"
ENV_CONFIG = "REFPIN_CONFIG"

DEFAULT_CONFIG_FILE = "refpin.yml"

_TRUTHY = frozenset(("1", "true", "yes", "on"))


@dataclass
class Config:
    """全局配置"""

    # 构建目标
    project_name: str = "zsh"
    default_repo: str = "https://git.code.sf.net/p/zsh/code"
    default_ref: str = "master"
    default_version: str = "5.9"

    # 版本描述文件
    descriptor_path: str = "Config/version.mk"
    descriptor_key: str = "VERSION"

    # 安装记录
    install_prefix: str = "build/install"
    record_file: str = "COMMIT_INFO"

    # 远程操作超时（秒）
    http_timeout: int = 30
    git_timeout: int = 300

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，文件不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"配置文件读取失败 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in fields(cls)} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件内容无效 {path}: {e}") from e
        cfg.extra = extra
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """必填项不能为空，默认版本是版本号非空的最后保障"""
        for name in ("default_repo", "default_ref", "default_version", "descriptor_key"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"配置项 {name} 不能为空")
        for name in ("http_timeout", "git_timeout"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"配置项 {name} 必须是正整数: {value!r}")


def env_value(env: Mapping[str, str], key: str) -> str:
    """读取环境变量，去掉首尾空白；未设置或全空白返回空串"""
    return (env.get(key) or "").strip()


def debug_enabled(env: Mapping[str, str] | None = None) -> bool:
    """调试开关：打开后，被吞掉的内部失败以 WARNING 输出"""
    if env is None:
        env = os.environ
    return env_value(env, ENV_DEBUG).lower() in _TRUTHY


def failure_level(debug: bool | None = None) -> int:
    """被吞掉的内部失败的日志级别；debug 为 None 时读 os.environ"""
    if debug is None:
        debug = debug_enabled()
    return logging.WARNING if debug else logging.DEBUG


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current


def reset_config() -> None:
    """恢复为未初始化状态（测试用）"""
    global _current  # noqa: PLW0603
    _current = None
