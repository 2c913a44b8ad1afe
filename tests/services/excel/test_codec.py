from datetime import datetime

import openpyxl
import pytest

from sheetdef.services.base import FileReadError, SchemaError, ValidationError
from sheetdef.services.excel.codec import (
    check_cell_value,
    dump_workbook,
    load_workbook_bytes,
    sheet_to_rows,
    worksheet_values,
)


def test_sheet_to_rows_uses_header_as_keys():
    rows = sheet_to_rows([["编号", "姓名"], ["A001", "张三"], ["A002"]])
    assert rows == [
        {"编号": "A001", "姓名": "张三"},
        {"编号": "A002", "姓名": None},
    ]


def test_sheet_to_rows_keeps_blank_rows_for_row_numbers():
    rows = sheet_to_rows([["编号"], [None], ["A002"]])
    assert rows == [{"编号": None}, {"编号": "A002"}]


def test_sheet_to_rows_names_empty_and_duplicate_headers():
    rows = sheet_to_rows([["A", "A", None, None], [1, 2, 3, 4]])
    assert rows == [{"A": 1, "A_1": 2, "__EMPTY": 3, "__EMPTY_1": 4}]


def test_sheet_to_rows_empty_sheet():
    assert sheet_to_rows([]) == []
    assert sheet_to_rows([["编号"]]) == []


def test_dump_workbook_preserves_sheet_order(read_xlsx):
    content = dump_workbook([("乙", [["b"], [2]]), ("甲", [["a"], [1]])])
    values = read_xlsx(content)
    assert list(values) == ["乙", "甲"]
    assert values["甲"] == [["a"], [1]]


def test_dump_workbook_without_sheets_fails():
    with pytest.raises(SchemaError):
        dump_workbook([])


def test_load_workbook_bytes_rejects_garbage():
    with pytest.raises(FileReadError) as exc:
        load_workbook_bytes(b"not a zip file")
    assert exc.value.code == "WORKBOOK_PARSE_FAILED"


def test_worksheet_values_converts_dates_to_serials(xlsx):
    content = xlsx([("表", [["日期"], [datetime(2023, 1, 1)]])])
    workbook = load_workbook_bytes(content)
    try:
        values = worksheet_values(workbook["表"])
    finally:
        workbook.close()
    assert values[0] == ["日期"]
    assert values[1] == [44927]


def test_worksheet_values_accepts_regular_worksheet():
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.append(["x", "y"])
    worksheet.append([1, None])
    assert worksheet_values(worksheet) == [["x", "y"], [1, None]]


def test_check_cell_value_accepts_plain_values():
    for value in ["文本\n换行", 1, 1.5, True, None, datetime(2023, 1, 1)]:
        assert check_cell_value(value) == value


@pytest.mark.parametrize("value", ["A\x01", {"k": 1}, [1, 2], object()])
def test_check_cell_value_rejects_unwritable_values(value):
    with pytest.raises(ValidationError) as exc:
        check_cell_value(value)
    assert exc.value.code == "INVALID_CELL_VALUE"


@pytest.mark.parametrize("value", ["A\x01", {"k": 1}])
def test_dump_workbook_reports_unwritable_row(value):
    with pytest.raises(ValidationError) as exc:
        dump_workbook([("表", [["编号"], ["A"], [value]])])
    assert exc.value.code == "INVALID_CELL_VALUE"
    assert exc.value.details == {"sheet": "表", "row": 3}
