"""refpin 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from refpin import __version__
from refpin.core.config import (
    DEFAULT_CONFIG_FILE,
    ENV_CONFIG,
    ENV_LOG_JSON,
    ENV_LOG_LEVEL,
    debug_enabled,
    init_config,
)
from refpin.core.exceptions import ConfigError
from refpin.services.build_info_service import BuildInfoService
from refpin.utils.logger import setup_logging


def _svc() -> BuildInfoService:
    """按当前全局配置创建服务"""
    return BuildInfoService()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", envvar=ENV_CONFIG, default=DEFAULT_CONFIG_FILE,
    show_default=True, help="YAML 配置文件路径",
)
def main(config_path: str) -> None:
    """refpin - 源码构建版本解析与过期检测"""
    level = "DEBUG" if debug_enabled() else os.getenv(ENV_LOG_LEVEL, "WARNING")
    setup_logging(level=level, json_output=os.getenv(ENV_LOG_JSON, "") == "1")
    try:
        init_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


# 注册各领域子命令
from refpin.cli.cmd_resolve import register as _reg_resolve  # noqa: E402
from refpin.cli.cmd_record import register as _reg_record  # noqa: E402

_reg_resolve(main)
_reg_record(main)
