"""
Excel 导入导出 API 端点
"""
from typing import Dict, Any, Optional, List
from urllib.parse import quote
from fastapi import APIRouter, HTTPException, File, UploadFile, Path
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sheetdef.core.config import settings
from sheetdef.services.base import (
    FileReadError,
    SchemaError,
    SchemaNotFoundError,
    ServiceException,
    ValidationError,
)
from sheetdef.services.dependencies import ImportServiceDep, SchemaRegistryDep
from sheetdef.services.excel import XLSX_MEDIA_TYPE
from sheetdef.services.excel.file_io import download_filename

router = APIRouter()


class SheetData(BaseModel):
    """单个表的数据"""
    name: str
    rows: List[Dict[str, Any]] = []


class DataResponse(BaseModel):
    """统一的数据响应格式"""
    success: bool
    data: Optional[List[SheetData]] = None
    message: str = ""
    metadata: Optional[Dict[str, Any]] = None


class SchemaListResponse(BaseModel):
    """已注册的工作簿定义"""
    total: int
    schemas: List[Dict[str, Any]] = []


class ExportRequest(BaseModel):
    """导出请求"""
    data: List[SheetData] = []
    filename: Optional[str] = Field(default=None, description="下载文件名（不含扩展名）")


class ColumnConfig(BaseModel):
    """列配置：label 为表头，field 为字段名"""
    label: str
    field: str
    required: bool = True
    type: str = "string"
    enums: List[Dict[str, Any]] = []


class TemplateRequest(BaseModel):
    """按列配置生成导入模板"""
    data_name: str
    columns: List[ColumnConfig]


def _xlsx_response(content: bytes, save_as: str) -> Response:
    filename = download_filename(save_as)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


def _http_error(error: ServiceException) -> HTTPException:
    """将服务层异常映射为 HTTP 错误"""
    if isinstance(error, SchemaNotFoundError):
        status_code = 404
    elif isinstance(error, FileReadError):
        status_code = 400
    elif isinstance(error, (ValidationError, SchemaError)):
        status_code = 422
    else:
        status_code = 500
    return HTTPException(
        status_code=status_code,
        detail={"message": error.message, "code": error.code, "details": error.details},
    )


@router.get("/schemas", response_model=SchemaListResponse, summary="列出已注册的表格定义")
def list_schemas(registry: SchemaRegistryDep = None) -> SchemaListResponse:
    names = registry.list_workbooks()
    return SchemaListResponse(
        total=len(names),
        schemas=[registry.describe(name) for name in names],
    )


@router.get("/{schema_name}/template", summary="下载导入模板")
def download_template(
    schema_name: str = Path(..., description="工作簿定义名称"),
    registry: SchemaRegistryDep = None,
    import_service: ImportServiceDep = None,
) -> Response:
    try:
        workbook_def = registry.get_workbook_def(schema_name)
        content = workbook_def.write([])
    except ServiceException as e:
        raise _http_error(e) from e
    return _xlsx_response(content, import_service.template_filename(schema_name))


@router.post("/template", summary="按列配置生成导入模板")
def build_template(
    request: TemplateRequest,
    import_service: ImportServiceDep = None,
) -> Response:
    columns = [c.model_dump() for c in request.columns]
    try:
        content = import_service.download_template(columns, request.data_name, save_as=False)
    except ServiceException as e:
        raise _http_error(e) from e
    return _xlsx_response(content, import_service.template_filename(request.data_name))


@router.post("/{schema_name}/import", response_model=DataResponse, summary="导入 Excel 数据")
async def import_data(
    schema_name: str = Path(..., description="工作簿定义名称"),
    file: UploadFile = File(..., description="xlsx 文件"),
    registry: SchemaRegistryDep = None,
) -> DataResponse:
    if file.size is not None and file.size > settings.excel.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"文件过大: {file.size} > {settings.excel.max_upload_bytes} bytes",
        )
    try:
        workbook_def = registry.get_workbook_def(schema_name)
        result = await workbook_def.read(file)
    except ServiceException as e:
        registry.log_warning(f"导入 {schema_name} 失败: {e.message}")
        raise _http_error(e) from e
    finally:
        await file.close()

    return DataResponse(
        success=True,
        data=[SheetData(**item) for item in result],
        message="导入完成",
        metadata={
            "filename": file.filename,
            "row_count": sum(len(item["rows"]) for item in result),
        },
    )


@router.post("/{schema_name}/export", summary="导出 Excel 数据")
def export_data(
    request: ExportRequest,
    schema_name: str = Path(..., description="工作簿定义名称"),
    registry: SchemaRegistryDep = None,
) -> Response:
    try:
        workbook_def = registry.get_workbook_def(schema_name)
        content = workbook_def.write([item.model_dump() for item in request.data])
    except ServiceException as e:
        raise _http_error(e) from e
    return _xlsx_response(content, (request.filename or schema_name).replace("/", "_"))
