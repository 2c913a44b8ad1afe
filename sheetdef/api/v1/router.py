from fastapi import APIRouter

from .endpoints import health, excel

api_v1_router = APIRouter()
api_v1_router.include_router(health.router, tags=["健康检查"])
api_v1_router.include_router(excel.router, prefix="/excel", tags=["Excel 导入导出"])
