from fastapi import FastAPI

from sheetdef.core.config import settings
from sheetdef.api.v1.router import api_v1_router

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
def read_root():
	return {"message": f"Hello from {settings.app_name}"}
