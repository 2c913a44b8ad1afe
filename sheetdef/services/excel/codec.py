"""
表格编解码 - 基于 openpyxl 在 xlsx 字节、二维数组与行字典之间转换
"""
import io
import zipfile
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, KNOWN_TYPES
from openpyxl.utils.datetime import to_excel
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet._read_only import ReadOnlyWorksheet
from openpyxl.worksheet.worksheet import Worksheet

from sheetdef.services.base import FileReadError, SchemaError, ValidationError


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EMPTY_HEADER = "__EMPTY"

RawSheet = Union[Worksheet, ReadOnlyWorksheet, Sequence[Sequence[Any]]]


def load_workbook_bytes(data: bytes) -> Workbook:
    """
    解析 xlsx 字节为只读工作簿，调用方负责 close()

    Raises:
        FileReadError: 内容不是有效的 xlsx 文件
    """
    try:
        return openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, KeyError, ValueError, OSError, SyntaxError) as e:
        raise FileReadError(
            f"解析 Excel 文件失败: {e}",
            code="WORKBOOK_PARSE_FAILED",
            details={"size": len(data)},
        ) from e


def cell_value(value: Any) -> Any:
    """单元格取值：日期时间统一换算为 1900 纪元序列号"""
    if isinstance(value, (datetime, date, time, timedelta)):
        return to_excel(value)
    return value


def check_cell_value(value: Any) -> Any:
    """
    检查值能否写入单元格

    Raises:
        ValidationError: 类型不受支持（如 dict、list），或字符串含有非法控制字符
    """
    if not isinstance(value, KNOWN_TYPES):
        raise ValidationError(
            f'无法写入单元格的值类型 "{type(value).__name__}"',
            code="INVALID_CELL_VALUE",
        )
    if isinstance(value, str) and ILLEGAL_CHARACTERS_RE.search(value):
        raise ValidationError(f"值中含有非法字符 {value!r}", code="INVALID_CELL_VALUE")
    return value


def worksheet_values(sheet: RawSheet) -> List[List[Any]]:
    """将工作表或二维数组统一为二维数组"""
    if isinstance(sheet, (Worksheet, ReadOnlyWorksheet)):
        return [
            [cell_value(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    return [list(row) for row in sheet]


def _header_keys(header: Sequence[Any], width: int) -> List[str]:
    """生成表头键：空表头记为 __EMPTY、__EMPTY_1…，重复表头追加 _1、_2…"""
    keys: List[str] = []
    used = set()
    counters: Dict[str, int] = {}
    for idx in range(width):
        raw = header[idx] if idx < len(header) else None
        base = EMPTY_HEADER if raw is None or raw == "" else str(raw)
        key = base
        n = counters.get(base, 0)
        while key in used:
            n += 1
            key = f"{base}_{n}"
        counters[base] = n
        used.add(key)
        keys.append(key)
    return keys


def sheet_to_rows(sheet: RawSheet) -> List[Dict[str, Any]]:
    """
    将工作表转换为行字典列表

    首行作为表头（字典的键），其余每行一个字典，缺失的单元格为 None。
    空行同样保留，保证行序号与表格中的行号一一对应。

    Args:
        sheet: openpyxl 工作表或二维数组

    Returns:
        行字典列表
    """
    values = worksheet_values(sheet)
    if not values:
        return []

    width = max(len(row) for row in values)
    keys = _header_keys(values[0], width)

    rows: List[Dict[str, Any]] = []
    for row in values[1:]:
        rows.append({
            key: (row[idx] if idx < len(row) else None)
            for idx, key in enumerate(keys)
        })
    return rows


def read_sheet_rows(workbook: Workbook, name: str) -> List[Dict[str, Any]]:
    """
    读取工作簿中指定表的行字典

    只读模式下表内容在遍历时才解析，损坏的表在这里才会暴露。

    Raises:
        FileReadError: 表内容无法解析
    """
    try:
        return sheet_to_rows(workbook[name])
    except (zipfile.BadZipFile, KeyError, ValueError, OSError, SyntaxError) as e:
        raise FileReadError(
            f'解析表 "{name}" 失败: {e}',
            code="WORKBOOK_PARSE_FAILED",
            details={"sheet": name},
        ) from e


def dump_workbook(sheets: Iterable[Tuple[str, Sequence[Sequence[Any]]]]) -> bytes:
    """
    将 (表名, 二维数组) 序列写为 xlsx 字节，表顺序与输入一致

    Raises:
        SchemaError: 没有任何表，或表名不合法
        ValidationError: 某个单元格的值无法写入
    """
    workbook = Workbook(write_only=True)
    count = 0
    for name, rows in sheets:
        try:
            worksheet = workbook.create_sheet(title=name)
        except ValueError as e:
            raise SchemaError(
                f'表名 "{name}" 无效: {e}',
                code="INVALID_SHEET_NAME",
                details={"sheet": name},
            ) from e
        for index, row in enumerate(rows):
            try:
                worksheet.append(list(row))
            except (ValueError, IllegalCharacterError) as e:
                # 行号含表头，与表格中的行号一致
                raise ValidationError(
                    f'表 "{name}" 第 {index + 1} 行无法写入: {e}',
                    code="INVALID_CELL_VALUE",
                    details={"sheet": name, "row": index + 1},
                ) from e
        count += 1

    if count == 0:
        raise SchemaError("工作簿中没有任何表定义", code="EMPTY_WORKBOOK")

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
