"""
表定义 - 按列定义读取工作表为记录列表，或将记录列表写为工作表
"""
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional

from sheetdef.services.base import SchemaError, ServiceException, ValidationError
from .codec import RawSheet, check_cell_value, sheet_to_rows
from .column import ColumnDef, is_empty


logger = logging.getLogger("sheetdef.excel")

# 行处理函数以关键字参数 data / raw / index 调用
RowHandler = Callable[..., Any]

# 表头占一行，且行号从 1 开始
HEADER_ROW_OFFSET = 2


class SheetDef:
    """表定义"""

    def __init__(
        self,
        name: str,
        columns: Iterable[ColumnDef],
        row_handler: Optional[RowHandler] = None,
        max_row_count: Optional[int] = None,
    ):
        """
        Args:
            name: Sheet 名称
            columns: 列声明，顺序即写出时的列顺序
            row_handler: 行的值处理器。返回 False 表示值无效，返回字典时合并到行数据
            max_row_count: 最多读取的数据行数
        """
        columns_by_name: Dict[str, ColumnDef] = {}
        for column in columns:
            if column.name in columns_by_name:
                raise SchemaError(
                    f'表 "{name}" 中列 "{column.name}" 重复定义',
                    code="DUPLICATE_COLUMN",
                    details={"sheet": name, "column": column.name},
                )
            columns_by_name[column.name] = column

        self._name = name
        self._columns = MappingProxyType(columns_by_name)
        self._row_handler = row_handler
        self._max_row_count = max_row_count

    @property
    def name(self) -> str:
        return self._name

    @property
    def columns(self) -> Mapping:
        """列名到列定义的只读映射（保持声明顺序）"""
        return self._columns

    @property
    def row_handler(self) -> Optional[RowHandler]:
        return self._row_handler

    @property
    def max_row_count(self) -> Optional[int]:
        return self._max_row_count

    def __repr__(self) -> str:
        return f"SheetDef(name={self._name!r}, columns={list(self._columns)!r})"

    def read(self, sheet: RawSheet) -> List[Dict[str, Any]]:
        """
        读取工作表数据

        Args:
            sheet: openpyxl 工作表，或首行为表头的二维数组

        Returns:
            校验后的记录列表 [{field: value}]
        """
        return self.read_rows(sheet_to_rows(sheet))

    def read_rows(self, rows: Iterable[Mapping]) -> List[Dict[str, Any]]:
        """
        读取已按表头转换好的行字典

        Raises:
            SchemaError: 缺少声明的列，或行处理函数返回了不支持的类型
            ValidationError: 单元格值无效，或行处理函数判定该行无效
        """
        data: List[Dict[str, Any]] = []
        skipped = 0

        for index, row in enumerate(rows):
            if self._max_row_count and index >= self._max_row_count:
                break

            # 行的所有值都为空时跳过此行
            if all(is_empty(value) for value in row.values()):
                skipped += 1
                continue

            row_no = index + HEADER_ROW_OFFSET
            row_data: Dict[str, Any] = {}
            for name, column in self._columns.items():
                if name not in row:
                    raise SchemaError(
                        f'在表 "{self._name}" 中找不到列 "{name}"',
                        code="COLUMN_NOT_FOUND",
                        details={"sheet": self._name, "column": name},
                    )
                try:
                    row_data[column.field] = column.parse_read_value(row[name])
                except ServiceException as e:
                    raise e.with_context(
                        f'表 "{self._name}" 第 {row_no} 行 "{name}"',
                        sheet=self._name, row=row_no, column=name,
                    ) from e
                except Exception as e:
                    # 自定义读处理函数抛出的异常
                    raise ValidationError(
                        f'表 "{self._name}" 第 {row_no} 行 "{name}" {e}',
                        code="READ_PARSER_FAILED",
                        details={"sheet": self._name, "row": row_no, "column": name},
                    ) from e

            if self._row_handler:
                self._apply_row_handler(row_data, row, index)

            data.append(row_data)

        logger.debug(f'表 "{self._name}" 读取 {len(data)} 行，跳过空行 {skipped} 行')
        return data

    def _apply_row_handler(self, row_data: Dict[str, Any], raw: Mapping, index: int) -> None:
        result = self._row_handler(data=row_data, raw=raw, index=index)
        row_no = index + HEADER_ROW_OFFSET
        if result is False:
            raise ValidationError(
                f'表 "{self._name}" 第 {row_no} 行值无效',
                code="ROW_INVALID",
                details={"sheet": self._name, "row": row_no},
            )
        if result is None:
            return
        if not isinstance(result, Mapping):
            type_name = type(result).__name__
            raise SchemaError(
                f'表 "{self._name}" 的行处理函数返回值类型 "{type_name}" 无效：仅支持返回 dict/False',
                code="INVALID_ROW_HANDLER_RESULT",
                details={"sheet": self._name, "row": row_no, "type": type_name},
            )
        row_data.update(result)

    def write(self, rows: Iterable[Mapping]) -> List[List[Any]]:
        """
        将数据写为工作表

        Args:
            rows: 记录列表 [{field: value}]

        Returns:
            首行为表头的二维数组

        Raises:
            ValidationError: 某个值无法写出（如枚举不匹配、类型无法写入单元格）
        """
        result: List[List[Any]] = [list(self._columns)]
        for index, row in enumerate(rows):
            values: List[Any] = []
            for column in self._columns.values():
                try:
                    values.append(check_cell_value(column.parse_write_value(row.get(column.field))))
                except ServiceException as e:
                    raise e.with_context(
                        f'表 "{self._name}" 的数据第 {index + 1} 条 "{column.name}"',
                        sheet=self._name, row=index + 1, column=column.name,
                    ) from e
                except Exception as e:
                    # 自定义写处理函数抛出的异常
                    raise ValidationError(
                        f'表 "{self._name}" 的数据第 {index + 1} 条 "{column.name}" {e}',
                        code="WRITE_PARSER_FAILED",
                        details={"sheet": self._name, "row": index + 1, "column": column.name},
                    ) from e
            result.append(values)

        logger.debug(f'表 "{self._name}" 写入 {len(result) - 1} 行')
        return result
