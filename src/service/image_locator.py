"""게시할 이미지를 찾는 헬퍼.

- 로컬 생성 이미지 디렉토리(GENERATED_IMAGES_PATH)에서 가장 최근 파일
- 백엔드에서 가장 최근 completed 레코드의 URL
"""

import os
import re

from loguru import logger

from core.config import Settings

IMAGE_FILE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)


def generated_images_path(settings: Settings) -> str:
    """생성 이미지 디렉토리 절대 경로. 없으면 만든다."""
    path = os.path.join(os.getcwd(), settings.GENERATED_IMAGES_PATH)
    os.makedirs(path, exist_ok=True)
    return path


def latest_local_image(directory: str) -> str | None:
    """디렉토리에서 수정 시각이 가장 최근인 이미지 파일 경로."""
    try:
        logger.debug(f"Looking for images in: {directory}")
        candidates = [
            os.path.join(directory, name)
            for name in os.listdir(directory)
            if IMAGE_FILE_PATTERN.search(name)
        ]
        candidates = [p for p in candidates if os.path.isfile(p)]
        if not candidates:
            logger.warning(f"No image files found in {directory}")
            return None

        latest = max(candidates, key=os.path.getmtime)
        logger.info(f"Found latest image: {latest}")
        return latest
    except OSError as e:
        logger.error(f"Error getting latest image from {directory}: {e!r}")
        return None


async def resolve_image_for_post(uploader, settings: Settings) -> str | None:
    """백엔드의 최근 업로드 URL을 우선하고, 없으면 로컬 최신 파일로 대체한다."""
    if uploader is not None:
        record = await uploader.get_latest()
        if record and record.storage_path:
            logger.info(f"Found image in backend: {record.storage_path}")
            return record.storage_path

    local = latest_local_image(generated_images_path(settings))
    if local:
        return local

    logger.info("No recent image found in backend or local directory")
    return None
