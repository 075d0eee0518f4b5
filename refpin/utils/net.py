"""网络工具：URL 校验与文本下载"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from urllib.parse import urlparse

from refpin import __version__
from refpin.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

DEFAULT_HTTP_TIMEOUT = 30


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def http_get_text(url: str, *, timeout: float = DEFAULT_HTTP_TIMEOUT) -> str | None:
    """GET 一个 URL 并以 UTF-8 文本返回响应体

    非 2xx 状态、网络错误、超时、非法协议或无法解码的响应一律返回 None。
    不重试，不缓存。
    """
    try:
        validate_url_scheme(url, context="http get")
    except ValidationError as e:
        logger.debug("%s", e)
        return None

    req = urllib.request.Request(url, headers={"User-Agent": f"refpin/{__version__}"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            status = getattr(resp, "status", 200)
            if not 200 <= status < 300:
                logger.debug("HTTP %s: %s", status, url)
                return None
            body = resp.read()
    except (urllib.error.URLError, OSError, ValueError) as e:
        # HTTPError 是 URLError 子类，4xx/5xx 也走这里
        logger.debug("HTTP 请求失败 %s: %s", url, e)
        return None

    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("响应不是 UTF-8 文本: %s", url)
        return None
