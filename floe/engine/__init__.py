"""
Floe 引擎入口
"""

from floe.engine.floe import Floe

__all__ = ["Floe"]
