from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from sheetdef.main import app
from sheetdef.services.dependencies import get_schema_registry
from sheetdef.services.excel import XLSX_MEDIA_TYPE
from sheetdef.services.registry import SchemaRegistry


ASSETS = {
    "sheets": [
        {
            "name": "资产",
            "columns": [
                {"label": "编号", "field": "no"},
                {"label": "数量", "field": "count", "type": "number"},
                {"label": "状态", "field": "status", "required": False, "enums": [
                    {"label": "在用", "value": 1},
                    {"label": "停用", "value": 0},
                ]},
            ],
        }
    ]
}


@pytest.fixture
def client():
    registry = SchemaRegistry()
    registry.register_from_dict("assets", ASSETS)
    app.dependency_overrides[get_schema_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_ping(client):
    resp = client.get("/api/v1/ping")
    assert resp.status_code == 200
    assert resp.json()["pong"] is True


def test_list_schemas(client):
    body = client.get("/api/v1/excel/schemas").json()
    assert body["total"] == 1
    assert body["schemas"][0]["name"] == "assets"
    assert [c["label"] for c in body["schemas"][0]["sheets"][0]["columns"]] == ["编号", "数量", "状态"]


def test_download_template(client, read_xlsx):
    resp = client.get("/api/v1/excel/assets/template")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX_MEDIA_TYPE
    assert quote("assets-数据导入模板.xlsx") in resp.headers["content-disposition"]
    assert read_xlsx(resp.content) == {"资产": [["编号", "数量", "状态"]]}


def test_unknown_schema_is_404(client):
    resp = client.get("/api/v1/excel/nothing/template")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "SCHEMA_NOT_FOUND"


def test_build_template_from_columns(client, read_xlsx):
    resp = client.post("/api/v1/excel/template", json={
        "data_name": "服务器/国产化服务器",
        "columns": [{"label": "编号", "field": "no"}],
    })
    assert resp.status_code == 200
    assert quote("服务器_国产化服务器-数据导入模板.xlsx") in resp.headers["content-disposition"]
    assert read_xlsx(resp.content) == {"服务器_国产化服务器": [["编号"]]}


def test_import(client, xlsx):
    content = xlsx([("资产", [["编号", "数量", "状态"], ["Z1", 3, "在用"], ["Z2", "7", None]])])
    resp = client.post(
        "/api/v1/excel/assets/import",
        files={"file": ("assets.xlsx", content, XLSX_MEDIA_TYPE)},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"] == [{"name": "资产", "rows": [
        {"no": "Z1", "count": 3, "status": 1},
        {"no": "Z2", "count": 7, "status": None},
    ]}]
    assert body["metadata"] == {"filename": "assets.xlsx", "row_count": 2}


def test_import_invalid_cell_is_422(client, xlsx):
    content = xlsx([("资产", [["编号", "数量", "状态"], ["Z1", 3, "报废"]])])
    resp = client.post(
        "/api/v1/excel/assets/import",
        files={"file": ("assets.xlsx", content, XLSX_MEDIA_TYPE)},
    )
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_ENUM"
    assert detail["details"] == {"sheet": "资产", "row": 2, "column": "状态"}


def test_import_missing_sheet_is_422(client, xlsx):
    content = xlsx([("其他", [["编号"], ["Z1"]])])
    resp = client.post(
        "/api/v1/excel/assets/import",
        files={"file": ("assets.xlsx", content, XLSX_MEDIA_TYPE)},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "SHEET_NOT_FOUND"


def test_import_garbage_is_400(client):
    resp = client.post(
        "/api/v1/excel/assets/import",
        files={"file": ("assets.xlsx", b"not xlsx", XLSX_MEDIA_TYPE)},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "WORKBOOK_PARSE_FAILED"


def test_export(client, read_xlsx):
    resp = client.post("/api/v1/excel/assets/export", json={
        "data": [
            {"name": "资产", "rows": [{"no": "Z1", "count": 2, "status": 0}]},
            {"name": "多余", "rows": [{"x": 1}]},
        ],
        "filename": "资产导出",
    })
    assert resp.status_code == 200
    assert quote("资产导出.xlsx") in resp.headers["content-disposition"]
    assert read_xlsx(resp.content) == {"资产": [["编号", "数量", "状态"], ["Z1", 2, "停用"]]}


def test_export_invalid_enum_is_422(client):
    resp = client.post("/api/v1/excel/assets/export", json={
        "data": [{"name": "资产", "rows": [{"no": "Z1", "count": 2, "status": 5}]}],
    })
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_ENUM"


def test_export_control_character_is_422(client):
    resp = client.post("/api/v1/excel/assets/export", json={
        "data": [{"name": "资产", "rows": [{"no": "Z\u0001", "count": 2}]}],
    })
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_CELL_VALUE"
    assert detail["details"] == {"sheet": "资产", "row": 1, "column": "编号"}
