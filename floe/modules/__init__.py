"""
功能模块

- query: 查询组合
- write: 缓冲批量写入
- scroll: 游标滚动查询
"""
