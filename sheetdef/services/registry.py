"""
Schema 注册表 - 管理具名的工作簿定义，支持从字典、JSON 或 YAML 文件加载
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional
import json
import os

import yaml

from sheetdef.services.base import BaseService, SchemaError, SchemaNotFoundError
from sheetdef.services.excel import ColumnDef, SheetDef, WorkbookDef
from sheetdef.services.excel.column import build_enums


def column_from_dict(config: Mapping[str, Any]) -> ColumnDef:
    """
    从列配置字典创建列定义

    配置形如 {"label": "编号", "field": "no", "required": True, "type": "string",
    "enums": [{"label": "是", "value": 1}]}，表头文字也可以写作 "name"。
    """
    name = config.get("label", config.get("name"))
    field = config.get("field")
    if not name or not field:
        raise SchemaError(
            f"列配置缺少 label 或 field: {dict(config)}",
            code="INVALID_COLUMN_CONFIG",
        )
    try:
        return ColumnDef(
            name=str(name),
            field=str(field),
            required=bool(config.get("required", True)),
            type=config.get("type") or "string",
            enums=build_enums(config.get("enums") or []),
        )
    except (ValueError, KeyError, TypeError) as e:
        raise SchemaError(
            f'列 "{name}" 配置无效: {e}',
            code="INVALID_COLUMN_CONFIG",
            details={"column": str(name)},
        ) from e


def sheet_from_dict(config: Mapping[str, Any], row_handler=None) -> SheetDef:
    """从表配置字典创建表定义：{"name", "max_row_count", "columns": [...]}"""
    name = config.get("name")
    if not name:
        raise SchemaError("表配置缺少 name", code="INVALID_SHEET_CONFIG")
    return SheetDef(
        name=str(name),
        columns=[column_from_dict(c) for c in config.get("columns") or []],
        row_handler=row_handler,
        max_row_count=config.get("max_row_count"),
    )


class SchemaRegistry(BaseService):
    """工作簿 Schema 注册表"""

    def __init__(self):
        super().__init__("SchemaRegistry")
        self.workbooks: Dict[str, WorkbookDef] = {}

    def register(self, name: str, workbook_def: WorkbookDef) -> None:
        """注册一个工作簿定义"""
        self.workbooks[name] = workbook_def
        self.log_info(f"注册工作簿定义: {name}")

    def register_from_dict(self, name: str, config: Mapping[str, Any]) -> WorkbookDef:
        """
        从字典注册工作簿定义

        Args:
            name: 工作簿名称
            config: {"sheets": [{"name": ..., "columns": [...]}]}

        Returns:
            创建的工作簿定义
        """
        sheets = config.get("sheets") or []
        if not sheets:
            raise SchemaError(
                f"工作簿 {name} 没有任何表定义",
                code="INVALID_WORKBOOK_CONFIG",
                details={"workbook": name},
            )
        workbook_def = WorkbookDef(sheet_from_dict(s) for s in sheets)
        self.register(name, workbook_def)
        return workbook_def

    def register_many(self, workbooks: Mapping[str, Mapping[str, Any]]) -> List[str]:
        """批量注册，返回注册的名称列表"""
        for name, config in workbooks.items():
            self.register_from_dict(name, config)
        return list(workbooks.keys())

    def get_workbook_def(self, name: str) -> WorkbookDef:
        """获取工作簿定义，不存在则抛出异常"""
        workbook_def = self.workbooks.get(name)
        if workbook_def is None:
            raise SchemaNotFoundError(
                f"未找到 {name} 的表格定义",
                code="SCHEMA_NOT_FOUND",
                details={"workbook": name, "available": self.list_workbooks()},
            )
        return workbook_def

    def list_workbooks(self) -> List[str]:
        """列出所有已注册的工作簿"""
        return list(self.workbooks.keys())

    def describe(self, name: str) -> Dict[str, Any]:
        """返回工作簿定义的可序列化描述"""
        workbook_def = self.get_workbook_def(name)
        return {
            "name": name,
            "sheets": [
                {
                    "name": sheet_def.name,
                    "max_row_count": sheet_def.max_row_count,
                    "columns": [
                        {
                            "label": column.name,
                            "field": column.field,
                            "required": column.required,
                            "type": column.type.value,
                            "enums": [{"label": e.label, "value": e.value} for e in column.enums],
                        }
                        for column in sheet_def.columns.values()
                    ],
                }
                for sheet_def in workbook_def.sheets.values()
            ],
        }

    def load_from_file(self, file_path: str) -> List[str]:
        """
        从 JSON 或 YAML 文件加载工作簿定义

        文件结构：{"workbooks": {名称: {"sheets": [...]}}}

        Returns:
            加载的工作簿名称列表；文件不存在时返回空列表
        """
        if not os.path.exists(file_path):
            self.log_warning(f"Schema 文件不存在: {file_path}")
            return []

        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        names = self.register_many(data.get("workbooks", {}) or {})
        self.log_info(f"从 {file_path} 加载了 {len(names)} 个工作簿定义")
        self.record_metric("workbooks_loaded", len(names))
        return names
