"""
服务依赖注入模块
"""
from typing import Annotated
from fastapi import Depends
from sheetdef.core.config import settings
from sheetdef.services.registry import SchemaRegistry
from sheetdef.services.import_service import ImportService


# 全局服务实例
_schema_registry = None
_import_service = None


def get_schema_registry() -> SchemaRegistry:
    """获取 Schema 注册表"""
    global _schema_registry
    if _schema_registry is None:
        _schema_registry = SchemaRegistry()
        # 尝试加载配置的 Schema 文件
        if settings.schemas.path:
            _schema_registry.load_from_file(settings.schemas.path)
    return _schema_registry


def get_import_service() -> ImportService:
    """获取导入导出服务"""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service


# 类型别名，方便在端点中使用
SchemaRegistryDep = Annotated[SchemaRegistry, Depends(get_schema_registry)]
ImportServiceDep = Annotated[ImportService, Depends(get_import_service)]
