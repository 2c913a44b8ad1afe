from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExcelSettings(BaseModel):
	"""Excel 读写配置。支持嵌套环境变量：
	- SDF_EXCEL__OUTPUT_DIR
	- SDF_EXCEL__FILE_EXTENSION
	- SDF_EXCEL__TEMPLATE_SUFFIX
	- SDF_EXCEL__MAX_UPLOAD_BYTES
	"""

	output_dir: str = Field(default="downloads", description="另存为文件的输出目录")
	file_extension: str = Field(default=".xlsx", description="生成文件的扩展名")
	template_suffix: str = Field(default="-数据导入模板", description="导入模板文件名后缀")
	max_upload_bytes: int = Field(
		default=10 * 1024 * 1024, ge=1, description="导入接口允许的最大文件大小（字节）"
	)

	@field_validator("file_extension", mode="before")
	@classmethod
	def _normalize_extension(cls, v):
		if isinstance(v, str) and v and not v.startswith("."):
			return f".{v}"
		return v


class SchemaFileSettings(BaseModel):
	"""表格 Schema 文件配置。支持：
	- SDF_SCHEMAS__PATH：JSON 或 YAML 文件路径
	"""

	path: Optional[str] = Field(default=None, description="启动时加载的 Schema 文件")


class Settings(BaseSettings):

	app_name: str = "SheetDef API"
	debug: bool = False

	# 嵌套配置
	excel: ExcelSettings = Field(default_factory=ExcelSettings)
	schemas: SchemaFileSettings = Field(default_factory=SchemaFileSettings)

	model_config = SettingsConfigDict(
		env_prefix="SDF_",
		case_sensitive=False,
		env_nested_delimiter="__",
		env_file=".env",
		env_file_encoding="utf-8",
	)


settings = Settings()
