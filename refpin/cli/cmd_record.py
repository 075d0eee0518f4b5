"""CLI: 安装记录与过期检测命令"""

from __future__ import annotations

import sys

import click


def register(group: click.Group) -> None:
    group.add_command(record)
    group.add_command(outdated)
    group.add_command(info)


@click.command()
@click.argument("prefix", type=click.Path(file_okay=False))
@click.option("--workdir", default=".", type=click.Path(exists=True, file_okay=False), help="构建源码目录")
def record(prefix: str, workdir: str) -> None:
    """构建完成后写入安装记录"""
    from refpin.cli import _svc
    path = _svc().record_after_build(prefix, workdir)
    if path is None:
        click.echo("未写入安装记录（无法确定构建 commit）", err=True)
        sys.exit(1)
    click.echo(f"安装记录: {path}")


@click.command()
@click.argument("prefix", type=click.Path(file_okay=False))
def outdated(prefix: str) -> None:
    """检查已安装构建是否落后于上游，过期时退出码为 1"""
    from refpin.cli import _svc
    if _svc().is_outdated(prefix):
        click.echo("outdated")
        sys.exit(1)
    click.echo("up-to-date")


@click.command()
@click.argument("prefix", type=click.Path(file_okay=False))
def info(prefix: str) -> None:
    """显示构建信息"""
    from refpin.cli import _svc
    click.echo(_svc().build_info(prefix))
