"""업로드 전 로컬 이미지 검증.

네트워크 호출 전에 싼 검사부터 순서대로 하고, 첫 실패에서 멈춘다.
1. 파일 존재
2. 크기: 0 < size <= max_size_bytes (기본 5MB)
3. 확장자: png, jpg, jpeg, gif (대소문자 무시)
4. 앞 4바이트 시그니처: PNG / JPEG / GIF, 확장자와 같은 형식이어야 한다
"""

import os
from datetime import UTC, datetime

import aiofiles
import aiofiles.os
from loguru import logger

MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024
# 확장자 → 기대하는 MIME 타입
EXTENSION_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}
ALLOWED_EXTENSIONS = set(EXTENSION_TYPES)

# (시그니처 접두사, MIME 타입)
_SIGNATURES = [
    (bytes.fromhex("89504e47"), "image/png"),
    (bytes.fromhex("ffd8"), "image/jpeg"),
    (bytes.fromhex("47494638"), "image/gif"),
]


def detect_image_type(header: bytes) -> str | None:
    """파일 앞부분 바이트로 이미지 MIME 타입을 판별한다. 모르면 None."""
    for signature, mime in _SIGNATURES:
        if header.startswith(signature):
            return mime
    return None


def file_extension(filepath: str) -> str:
    return os.path.splitext(filepath)[1].lstrip(".").lower()


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f}MB"


async def read_header(filepath: str, n: int = 4) -> bytes:
    async with aiofiles.open(filepath, "rb") as f:
        return await f.read(n)


async def validate_image(filepath: str, max_size_bytes: int = MAX_IMAGE_SIZE_BYTES) -> bool:
    """업로드 가능한 이미지면 True. 예외를 올리지 않고 실패는 로그 + False."""
    try:
        logger.info(f"Starting image validation for: {filepath}")

        if not await aiofiles.os.path.isfile(filepath):
            logger.error(f"Image file does not exist: {filepath}")
            return False

        stats = await aiofiles.os.stat(filepath)
        logger.debug(
            f"Image file stats: size={_mb(stats.st_size)}, "
            f"modified={datetime.fromtimestamp(stats.st_mtime, UTC).isoformat()}"
        )

        if stats.st_size == 0:
            logger.error("Image file is empty")
            return False

        if stats.st_size > max_size_bytes:
            logger.error(f"Image file is too large: {_mb(stats.st_size)}")
            return False

        ext = file_extension(filepath)
        if ext not in ALLOWED_EXTENSIONS:
            logger.error(f"Invalid image file extension: {ext or '(none)'}")
            return False

        header = await read_header(filepath)
        detected = detect_image_type(header)
        if detected is None:
            logger.error("File does not appear to be a valid image")
            return False
        if detected != EXTENSION_TYPES[ext]:
            logger.error(f"File content ({detected}) does not match its extension: .{ext}")
            return False

        logger.info("Image validation successful")
        return True
    except Exception as e:
        logger.error(f"Image validation failed with error: {e!r}")
        return False
