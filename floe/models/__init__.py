"""
数据模型
"""

from floe.models.base import FloeBaseModel
from floe.models.outcome import BackendError, FindOutcome, Found, NotFound

__all__ = [
    "FloeBaseModel",
    "Found",
    "NotFound",
    "BackendError",
    "FindOutcome",
]
