"""
工作簿定义 - 按表定义读取 xlsx 文件，或将结构化数据写为 xlsx 文件
"""
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional

from sheetdef.services.base import SchemaError
from .codec import dump_workbook, load_workbook_bytes, read_sheet_rows
from .file_io import read_file, save_download
from .sheet import SheetDef


logger = logging.getLogger("sheetdef.excel")


class WorkbookDef:
    """工作簿定义"""

    def __init__(self, defs: Iterable[SheetDef]):
        """
        Args:
            defs: 此工作簿中要使用的表定义，顺序即写出时的表顺序
        """
        sheets: Dict[str, SheetDef] = {}
        for sheet_def in defs:
            if sheet_def.name in sheets:
                raise SchemaError(
                    f'表 "{sheet_def.name}" 重复定义',
                    code="DUPLICATE_SHEET",
                    details={"sheet": sheet_def.name},
                )
            sheets[sheet_def.name] = sheet_def
        self._sheets = MappingProxyType(sheets)

    @property
    def sheets(self) -> Mapping:
        """表名到表定义的只读映射（保持声明顺序）"""
        return self._sheets

    def __repr__(self) -> str:
        return f"WorkbookDef(sheets={list(self._sheets)!r})"

    async def read(self, file: Any) -> List[Dict[str, Any]]:
        """
        从文件对象读取数据

        Args:
            file: 文件内容、路径或文件对象，见 read_file

        Returns:
            [{"name": 表名, "rows": [记录]}]，顺序与表定义一致
        """
        data = await read_file(file)
        return self.parse(data)

    def parse(self, data: bytes) -> List[Dict[str, Any]]:
        """
        解析 xlsx 字节

        Raises:
            FileReadError: 内容不是有效的 xlsx，或某个表的内容已损坏
            SchemaError: 缺少声明的表（在处理任何表之前检查）或列
            ValidationError: 数据无效
        """
        workbook = load_workbook_bytes(data)
        try:
            available = list(workbook.sheetnames)
            for sheet_name in self._sheets:
                if sheet_name not in available:
                    raise SchemaError(
                        f'找不到名称为 "{sheet_name}" 的表',
                        code="SHEET_NOT_FOUND",
                        details={"sheet": sheet_name, "available_sheets": available},
                    )

            result = []
            for sheet_name, sheet_def in self._sheets.items():
                result.append({
                    "name": sheet_name,
                    "rows": sheet_def.read_rows(read_sheet_rows(workbook, sheet_name)),
                })
        finally:
            workbook.close()

        logger.info(
            f"读取工作簿完成: {len(result)} 个表，共 {sum(len(item['rows']) for item in result)} 行"
        )
        return result

    def write(
        self,
        data: Optional[Iterable[Mapping]] = None,
        save_as: Optional[str] = None,
    ) -> Optional[bytes]:
        """
        将数据写入文件

        未在定义中声明的表会被忽略；声明了但没有数据的表只写表头。

        Args:
            data: [{"name": 表名, "rows": [记录]}]
            save_as: 另存为文件名（会自动添加 xlsx 扩展名）

        Returns:
            未指定 save_as 时返回文件字节，否则写入下载目录并返回 None
        """
        rows_by_name: Dict[str, Any] = {}
        for item in data or ():
            rows_by_name[item["name"]] = item.get("rows")

        ignored = [name for name in rows_by_name if name not in self._sheets]
        if ignored:
            logger.debug(f"忽略未定义的表: {ignored}")

        sheets = [
            (name, sheet_def.write(rows_by_name.get(name) or []))
            for name, sheet_def in self._sheets.items()
        ]
        output = dump_workbook(sheets)

        if not save_as:
            return output

        save_download(output, save_as)
        return None
