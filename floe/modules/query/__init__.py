"""
查询组合模块

将声明式参数组合为不可变的查询描述
"""

from floe.modules.query.composer import DEFAULT_TIMESTAMP_FIELD, compose, compose_sort
from floe.modules.query.models import (
    MatchClause,
    QueryDescription,
    RangeClause,
    SortClause,
    SortDirection,
    TermClause,
    TimeUnit,
    TimeWindow,
)

__all__ = [
    "compose",
    "compose_sort",
    "DEFAULT_TIMESTAMP_FIELD",
    "QueryDescription",
    "MatchClause",
    "TermClause",
    "RangeClause",
    "SortClause",
    "SortDirection",
    "TimeUnit",
    "TimeWindow",
]
