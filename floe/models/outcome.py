"""
查找结果类型

显式区分 找到 / 未找到 / 后端错误，而不是通过异常表达“未找到”
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    """找到文档"""

    document: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """文档不存在"""

    doc_id: str

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class BackendError:
    """后端返回错误或调用异常"""

    reason: str

    @property
    def ok(self) -> bool:
        return False


FindOutcome = Union[Found[Any], NotFound, BackendError]
