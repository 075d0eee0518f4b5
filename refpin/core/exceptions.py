"""统一异常体系

所有业务异常继承 RefpinError。
远程拉取、版本探测、过期检测等边界一律降级为 None/False，不抛出这些异常；
只有配置加载和显式校验会把异常交给调用方。
"""

from __future__ import annotations


class RefpinError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(RefpinError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(RefpinError, ValueError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ExecutionError(RefpinError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"
