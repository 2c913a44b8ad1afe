"""
sheetdef - 声明式 Excel 表格 Schema，负责表格数据与结构化记录之间的双向转换
"""

from .services.excel import (
    ColumnType,
    ColumnEnum,
    ColumnDef,
    SheetDef,
    WorkbookDef,
)
from .services.base import (
    ServiceException,
    ValidationError,
    SchemaError,
    FileReadError,
)

__all__ = [
    "ColumnType",
    "ColumnEnum",
    "ColumnDef",
    "SheetDef",
    "WorkbookDef",
    "ServiceException",
    "ValidationError",
    "SchemaError",
    "FileReadError",
]
