from fastapi import APIRouter

from sheetdef.core.config import settings

router = APIRouter()


@router.get("/ping", summary="Ping")
def ping():
	return {"pong": True, "app": settings.app_name}
