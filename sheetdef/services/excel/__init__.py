"""
Excel 表格定义模块 - 负责表格数据与结构化记录之间的双向转换
"""

from .column import ColumnType, ColumnEnum, ColumnDef
from .sheet import SheetDef
from .workbook import WorkbookDef
from .codec import XLSX_MEDIA_TYPE

__all__ = [
    "ColumnType",
    "ColumnEnum",
    "ColumnDef",
    "SheetDef",
    "WorkbookDef",
    "XLSX_MEDIA_TYPE",
]
