"""
导入导出服务 - 数据导入模板下载、导入数据读取与数据导出
"""
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sheetdef.core.config import settings
from sheetdef.services.base import BaseService, ServiceException
from sheetdef.services.excel import WorkbookDef
from sheetdef.services.excel.file_io import save_download
from sheetdef.services.registry import sheet_from_dict


class ImportService(BaseService):
    """基于列配置的导入导出服务"""

    def __init__(self, output_dir: Optional[str] = None):
        """
        Args:
            output_dir: 模板与导出文件的保存目录，默认取 settings.excel.output_dir
        """
        super().__init__("ImportService")
        self.output_dir = output_dir or settings.excel.output_dir

    def build_workbook_def(
        self,
        columns: Sequence[Mapping[str, Any]],
        data_name: str,
        row_handler=None,
    ) -> WorkbookDef:
        """
        根据列配置创建单表工作簿定义

        Args:
            columns: 列配置，如 [{"label": "编号", "field": "no", "required": True}]，
                label 用于 Excel 表头，field 用于记录字段名
            data_name: 数据名称，多级名称中的 "/" 替换为 "_" 后作为表名
            row_handler: 行的值处理器
        """
        self.log_debug(f"创建工作簿定义: {data_name}（{len(columns)} 列）")
        sheet_def = sheet_from_dict(
            {"name": self.sheet_name(data_name), "columns": list(columns)},
            row_handler=row_handler,
        )
        return WorkbookDef([sheet_def])

    @staticmethod
    def sheet_name(data_name: str) -> str:
        """多级名称写法如 服务器/国产化服务器，表名中不允许出现 "/" """
        return data_name.replace("/", "_")

    @classmethod
    def template_filename(cls, data_name: str) -> str:
        """模板文件名（不含扩展名）"""
        return cls.sheet_name(data_name) + settings.excel.template_suffix

    def download_template(
        self,
        columns: Sequence[Mapping[str, Any]],
        data_name: str,
        save_as: bool = True,
    ) -> Union[Path, bytes]:
        """
        生成导入模板（只有表头的空表）

        Returns:
            save_as 为 True 时返回保存的文件路径，否则返回文件字节
        """
        output = self.build_workbook_def(columns, data_name).write([])
        if not save_as:
            return output

        path = save_download(output, self.template_filename(data_name), self.output_dir)
        self.log_info(f"生成导入模板: {path}")
        return path

    async def read_data(
        self,
        columns: Sequence[Mapping[str, Any]],
        data_name: str,
        file: Any,
        row_handler=None,
    ) -> List[Dict[str, Any]]:
        """
        读取导入文件

        Returns:
            [{"name": data_name, "rows": [记录]}]
        """
        workbook_def = self.build_workbook_def(columns, data_name, row_handler)
        try:
            result = await workbook_def.read(file)
        except ServiceException as e:
            self.log_error(f"导入 {data_name} 失败: {e.message}", code=e.code, details=e.details)
            raise
        row_count = sum(len(item["rows"]) for item in result)
        self.log_info(f"导入 {data_name}: {row_count} 行")
        self.record_metric("rows_imported", row_count)
        return result

    def export(
        self,
        columns: Sequence[Mapping[str, Any]],
        data_name: str,
        data: Sequence[Mapping[str, Any]],
        save_as: bool = False,
    ) -> Union[Path, bytes]:
        """
        导出数据

        Args:
            columns: 列配置
            data_name: 表名，同时作为导出文件名
            data: [{"name": data_name, "rows": [记录]}]，name 按 sheet_name 规则匹配表名
            save_as: 为 True 时写入输出目录并返回路径，否则返回文件字节
        """
        sheet_name = self.sheet_name(data_name)
        data = [{**item, "name": self.sheet_name(item["name"])} for item in data]
        output = self.build_workbook_def(columns, data_name).write(data)
        row_count = sum(len(item.get("rows") or []) for item in data if item["name"] == sheet_name)
        self.record_metric("rows_exported", row_count)
        if not save_as:
            return output

        path = save_download(output, sheet_name, self.output_dir)
        self.log_info(f"导出 {data_name}: {row_count} 行 -> {path}")
        return path
