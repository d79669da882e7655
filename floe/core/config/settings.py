"""
配置管理模块

使用pydantic-settings管理配置，支持从环境变量和.env文件读取
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ======================
    # Elasticsearch配置
    # ======================
    es_host: str = Field(default="localhost", description="ES主机")
    es_port: int = Field(default=9200, description="ES端口")
    es_scheme: str = Field(default="http", description="ES协议")
    es_username: Optional[str] = Field(default="elastic", description="ES用户名")
    es_password: Optional[str] = Field(
        default=None,
        description="ES密码",
        validation_alias="ELASTIC_PASSWORD"
    )
    es_timeout: int = Field(default=30, ge=1, description="ES请求超时(秒)")
    es_max_retries: int = Field(default=3, ge=0, description="ES最大重试次数")
    es_verify_certs: bool = Field(default=False, description="是否校验证书")

    # ======================
    # 批量写入配置
    # ======================
    default_index: Optional[str] = Field(default=None, description="默认读写索引")
    bulk_size: int = Field(
        default=5, ge=0, description="每次批量写入的文档数（0表示每次写入立即提交）"
    )
    rolling_date: bool = Field(default=False, description="是否按日期滚动索引")
    rolling_date_position: str = Field(
        default="suffix", description="滚动日期位置（suffix/prefix）"
    )

    # ======================
    # 滚动查询配置
    # ======================
    scroll_time: str = Field(default="60s", description="游标存活时间")
    scroll_page_size: int = Field(default=1000, ge=1, description="每页文档数")
    timestamp_field: str = Field(default="timeStamp", description="时间戳字段名")
    reserved_index_prefix: str = Field(default=".", description="系统保留索引前缀")

    # ======================
    # Redis配置
    # ======================
    redis_host: str = Field(default="localhost", description="Redis主机")
    redis_port: int = Field(default=6379, description="Redis端口")
    redis_password: Optional[str] = Field(default=None, description="Redis密码")
    redis_db: int = Field(default=0, description="Redis数据库")

    # 结果缓存
    cache_prefix: str = Field(default="floe-cache", description="缓存键前缀")
    cache_ttl: int = Field(default=900, ge=1, description="缓存滑动过期时间(秒)")

    # ======================
    # 日志配置
    # ======================
    log_level: str = Field(default="INFO", description="日志级别")
    log_format: str = Field(default="json", description="日志格式")

    @property
    def es_url(self) -> str:
        """Elasticsearch连接URL"""
        return f"{self.es_scheme}://{self.es_host}:{self.es_port}"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"日志级别必须是: {', '.join(allowed)}")
        return v.upper()

    @field_validator("rolling_date_position")
    @classmethod
    def validate_rolling_date_position(cls, v: str) -> str:
        """验证滚动日期位置"""
        if v.lower() not in ("suffix", "prefix"):
            raise ValueError("滚动日期位置必须是: suffix, prefix")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
