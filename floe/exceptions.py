"""
Floe 异常定义

所有自定义异常都继承自FloeError基类
"""

from typing import Any, Dict, List, Optional


class FloeError(Exception):
    """Floe基础异常类"""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


class ConfigError(FloeError):
    """配置错误异常（如：无法解析目标索引）"""

    pass


class StorageError(FloeError):
    """存储层异常"""

    pass


class BulkWriteError(StorageError):
    """批量写入部分失败异常"""

    def __init__(
        self,
        message: str,
        index: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.index = index
        self.errors = errors or []
        super().__init__(message)


class CacheError(StorageError):
    """缓存异常"""

    pass


class ScrollError(FloeError):
    """滚动查询异常"""

    pass


class ScrollStateError(ScrollError):
    """游标状态非法（如：对已关闭的游标继续滚动）"""

    pass


class ReservedIndexError(FloeError):
    """尝试操作系统保留索引"""

    pass
