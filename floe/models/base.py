"""
数据模型基类

所有Pydantic配置模型的基类
"""

from pydantic import BaseModel, ConfigDict


class FloeBaseModel(BaseModel):
    """Floe基础模型（构造后不可修改）"""

    model_config = ConfigDict(
        # 构造后冻结，配置不可变更
        frozen=True,
        # 使用枚举值而非枚举对象
        use_enum_values=True,
        populate_by_name=True,
    )
