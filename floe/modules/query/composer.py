"""
查询组合器

将声明式的 匹配/过滤/时间窗口/排序 参数组合为 QueryDescription。
纯函数：不做任何I/O，也不抛出领域异常。
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

from floe.modules.query.models import (
    MatchClause,
    QueryDescription,
    RangeClause,
    SortClause,
    SortDirection,
    TermClause,
    TimeWindow,
)
from floe.utils.time import get_utc_now

DEFAULT_TIMESTAMP_FIELD = "timeStamp"

_DIRECTIONS = {
    "asc": SortDirection.ASC,
    "des": SortDirection.DESC,
}


def _backend_field(field: str, field_map: Optional[Mapping[str, str]]) -> str:
    """按调用方提供的映射转换为后端字段名，未映射的字段原样使用"""
    if field_map and field in field_map:
        return field_map[field]
    return field


def compose_sort(
    sort: Optional[Tuple[str, str]],
    field_map: Optional[Mapping[str, str]] = None,
) -> Optional[SortClause]:
    """
    构造排序子句

    方向只接受 "asc" / "des"，其他值忽略（不报错）。
    """
    if not sort:
        return None

    field, direction = sort
    order = _DIRECTIONS.get(direction)
    if order is None or not field:
        return None
    return SortClause(field=_backend_field(field, field_map), direction=order)


def compose(
    match_field: Optional[str] = None,
    match_value: Any = None,
    filters: Optional[Sequence[Tuple[str, Any]]] = None,
    time_window: Optional[TimeWindow] = None,
    sort: Optional[Tuple[str, str]] = None,
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD,
    field_map: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> QueryDescription:
    """
    组合查询描述

    Args:
        match_field: 全文匹配字段（如 "customerId" 或 "animal.name"）
        match_value: 匹配值（使用其字符串表示）
        filters: 精确过滤条件 [(field, value), ...]，全部满足
        time_window: 时间窗口，下界为 当前UTC时间 - 窗口，无上界
        sort: 排序 (field, "asc" | "des")
        timestamp_field: 时间戳字段名
        field_map: 字段名映射（调用方字段名 -> 后端字段名，如 {"name": "name.keyword"}）
        now: 当前时间（默认UTC当前时间）

    Returns:
        QueryDescription
    """
    match = None
    if match_field is not None and match_value is not None:
        match = MatchClause(field=_backend_field(match_field, field_map), value=str(match_value))

    terms = tuple(
        TermClause(field=_backend_field(field, field_map), value=value)
        for field, value in (filters or ())
    )

    time_range = None
    if time_window is not None:
        lower_bound = (now or get_utc_now()) - time_window.to_timedelta()
        time_range = RangeClause(
            field=_backend_field(timestamp_field or DEFAULT_TIMESTAMP_FIELD, field_map),
            gte=lower_bound,
        )

    return QueryDescription(
        match=match,
        filters=terms,
        time_range=time_range,
        sort=compose_sort(sort, field_map),
    )
