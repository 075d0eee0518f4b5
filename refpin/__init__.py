"""refpin - 源码构建版本解析与过期检测"""

__version__ = "0.1.0"
