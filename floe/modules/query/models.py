"""
查询描述模型

不可变的查询子句树，构造后不再修改，通过 elasticsearch-dsl 渲染为查询DSL
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from elasticsearch_dsl import Q


class TimeUnit(str, Enum):
    """时间窗口单位"""

    HOURS = "hours"
    DAYS = "days"

    def __str__(self) -> str:
        return self.value


class SortDirection(str, Enum):
    """
    排序方向

    - ASC: 升序（"asc"）
    - DESC: 降序（"des"）
    """

    ASC = "asc"
    DESC = "des"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TimeWindow:
    """最近N小时/N天的时间窗口"""

    unit: TimeUnit
    amount: float

    @property
    def normalized_amount(self) -> float:
        # 0 宽度窗口没有意义，按 1 处理
        return 1 if self.amount == 0 else self.amount

    def to_timedelta(self) -> timedelta:
        if TimeUnit(self.unit) == TimeUnit.HOURS:
            return timedelta(hours=self.normalized_amount)
        return timedelta(days=self.normalized_amount)

    @classmethod
    def hours(cls, amount: float) -> "TimeWindow":
        return cls(TimeUnit.HOURS, amount)

    @classmethod
    def days(cls, amount: float) -> "TimeWindow":
        return cls(TimeUnit.DAYS, amount)


@dataclass(frozen=True)
class MatchClause:
    field: str
    value: str


@dataclass(frozen=True)
class TermClause:
    field: str
    value: Any


@dataclass(frozen=True)
class RangeClause:
    """时间范围子句：field >= gte，没有上界"""

    field: str
    gte: datetime


@dataclass(frozen=True)
class SortClause:
    field: str
    direction: SortDirection

    def to_dict(self) -> Dict[str, Any]:
        order = "asc" if self.direction == SortDirection.ASC else "desc"
        return {self.field: {"order": order}}


@dataclass(frozen=True)
class QueryDescription:
    """
    查询描述

    - match: 0或1个全文匹配子句
    - filters: 0或多个精确过滤子句（逻辑与）
    - time_range: 0或1个时间范围子句
    - sort: 0或1个排序子句
    """

    match: Optional[MatchClause] = None
    filters: Tuple[TermClause, ...] = ()
    time_range: Optional[RangeClause] = None
    sort: Optional[SortClause] = None

    def to_query(self) -> Dict[str, Any]:
        """渲染为ES查询DSL"""
        main = Q("match", **{self.match.field: self.match.value}) if self.match else None

        constraints = [Q("term", **{term.field: term.value}) for term in self.filters]
        if self.time_range is not None:
            constraints.append(
                Q("range", **{self.time_range.field: {"gte": self.time_range.gte.isoformat()}})
            )

        if not constraints:
            return (main or Q("match_all")).to_dict()

        # 过滤条件是额外的必要约束：must 匹配主查询（或全部），filter 全部满足
        return Q("bool", must=[main or Q("match_all")], filter=constraints).to_dict()

    def to_sort(self) -> Optional[List[Dict[str, Any]]]:
        """渲染为ES排序参数"""
        if self.sort is None:
            return None
        return [self.sort.to_dict()]

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"query": self.to_query()}
        sort = self.to_sort()
        if sort:
            body["sort"] = sort
        return body
