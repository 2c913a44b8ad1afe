import io

import openpyxl
import pytest

from sheetdef.core.config import settings
from sheetdef.services.excel import ColumnDef, ColumnEnum, ColumnType, SheetDef


def make_xlsx(sheets):
    """sheets: [(表名, 二维数组)] -> xlsx 字节"""
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets:
        worksheet = workbook.create_sheet(title=name)
        for row in rows:
            worksheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    workbook.close()
    return buffer.getvalue()


def load_values(content):
    """xlsx 字节 -> {表名: 二维数组}"""
    workbook = openpyxl.load_workbook(io.BytesIO(content))
    try:
        return {
            ws.title: [list(row) for row in ws.iter_rows(values_only=True)]
            for ws in workbook.worksheets
        }
    finally:
        workbook.close()


STATUS_ENUMS = [ColumnEnum("在用", 1), ColumnEnum("停用", 0)]


@pytest.fixture
def people_sheet():
    return SheetDef(
        "人员",
        [
            ColumnDef("编号", "no"),
            ColumnDef("姓名", "name", required=False),
            ColumnDef("年龄", "age", required=False, type=ColumnType.NUMBER),
            ColumnDef("入职日期", "joined", required=False, type=ColumnType.DATE),
            ColumnDef("状态", "status", required=False, enums=STATUS_ENUMS),
        ],
    )


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings.excel, "output_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
def xlsx():
    """构造 xlsx 字节的工厂"""
    return make_xlsx


@pytest.fixture
def read_xlsx():
    """读取 xlsx 字节为 {表名: 二维数组}"""
    return load_values
