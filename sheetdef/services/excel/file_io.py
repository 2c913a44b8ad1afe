"""
文件读写胶水 - 异步读取用户提供的文件，并将生成的文件交付为下载
"""
import asyncio
import inspect
import logging
import os
from pathlib import Path
from typing import Any, Optional

from sheetdef.core.config import settings
from sheetdef.services.base import FileReadError


logger = logging.getLogger("sheetdef.excel")


async def read_file(source: Any) -> bytes:
    """
    读取文件的全部内容

    支持的来源：
    - bytes / bytearray / memoryview
    - 文件路径（str 或 PathLike），在默认线程池中读取
    - 带异步 read() 的上传文件对象（如 Starlette UploadFile）
    - 带同步 read() 的文件对象，在默认线程池中读取

    Raises:
        FileReadError: 来源不受支持或读取失败
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    # 使用 asyncio 在异步上下文中调用同步方法
    loop = asyncio.get_running_loop()

    try:
        if isinstance(source, (str, os.PathLike)):
            data = await loop.run_in_executor(None, Path(source).read_bytes)
        else:
            reader = getattr(source, "read", None)
            if reader is None:
                raise FileReadError(
                    f"不支持的文件对象: {type(source).__name__}",
                    code="UNSUPPORTED_SOURCE",
                )
            if inspect.iscoroutinefunction(reader):
                data = await reader()
            else:
                data = await loop.run_in_executor(None, reader)
    except FileReadError:
        raise
    except (OSError, ValueError) as e:
        logger.error(f"读取文件失败: {e}")
        raise FileReadError(
            f"读取文件失败: {e}",
            code="FILE_READ_FAILED",
            details={"source": str(getattr(source, "filename", source))},
        ) from e

    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise FileReadError("文件内容不是二进制数据", code="FILE_READ_FAILED")
    return bytes(data)


def download_filename(save_as: str, extension: Optional[str] = None) -> str:
    """另存为文件名（自动添加扩展名）"""
    return f"{save_as}{extension or settings.excel.file_extension}"


def save_download(data: bytes, save_as: str, output_dir: Optional[str] = None) -> Path:
    """
    将生成的文件写入下载目录

    Args:
        data: 文件内容
        save_as: 另存为文件名（不含扩展名）
        output_dir: 输出目录，默认取 settings.excel.output_dir

    Returns:
        写入的文件路径
    """
    directory = Path(output_dir or settings.excel.output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / download_filename(save_as)
    path.write_bytes(data)
    logger.info(f"已保存文件: {path} ({len(data)} bytes)")
    return path
