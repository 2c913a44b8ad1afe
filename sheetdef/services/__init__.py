"""
服务层模块 - 提供业务逻辑实现
"""

from .registry import SchemaRegistry
from .import_service import ImportService

__all__ = [
    "SchemaRegistry",
    "ImportService",
]
