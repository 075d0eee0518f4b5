"""CLI: 构建前解析命令"""

from __future__ import annotations

import sys

import click

from refpin.core.models import BuildParams, ResolvedVersion


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(identity)
    group.add_command(detect_version)


@click.command()
def resolve() -> None:
    """解析仓库 / ref / 版本（环境变量覆盖 > 默认值 > 上游探测）"""
    from refpin.cli import _svc
    svc = _svc()
    params = svc.resolve()
    click.echo(f"REPO={params.repo}")
    click.echo(f"REF={params.ref}")
    click.echo(f"VERSION={params.version}")
    click.echo(f"VERSION_SOURCE={params.version.source}")
    click.echo(f"DESCRIPTION={svc.describe(params)}")


@click.command()
@click.option("--repo", default="", help="仓库地址（不指定则按环境解析）")
@click.option("--ref", default="", help="分支/tag/commit")
@click.option("--version", "version", default="", help="版本号")
def identity(repo: str, ref: str, version: str) -> None:
    """计算构建标识与下载缓存名"""
    from refpin.cli import _svc
    svc = _svc()
    resolved = svc.resolve() if not (repo and ref and version) else None
    params = BuildParams(
        repo=repo or resolved.repo,
        ref=ref or resolved.ref,
        version=ResolvedVersion(version, source="override") if version else resolved.version,
    )
    ident = svc.identity(params)
    click.echo(f"VERSION={ident.label}")
    click.echo(f"DOWNLOAD_NAME={svc.download_name(params.repo)}")


@click.command(name="detect-version")
@click.argument("repo")
@click.argument("ref")
def detect_version(repo: str, ref: str) -> None:
    """只从上游描述文件探测版本，探测不到时退出码为 1"""
    from refpin.cli import _svc
    version = _svc().detect_version(repo, ref)
    if not version:
        click.echo(f"未探测到版本: {repo}@{ref}", err=True)
        sys.exit(1)
    click.echo(version)
