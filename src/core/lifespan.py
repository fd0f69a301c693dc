from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from core.config import settings
from service.upload_service import ImageUploader
from social.image_post import ImagePostService
from social.twitter_poster import TwitterImagePoster
from storage.factory import create_backend
from utility.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    setup_logger(settings.LOG_LEVEL)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")

    # 자격 증명이 없으면 여기서 MissingCredentials → 앱 시작 실패
    records, blobs = await create_backend(settings)
    uploader = ImageUploader(records, blobs, settings)
    poster = TwitterImagePoster(settings)
    if not poster.has_credentials():
        logger.warning("Twitter credentials not configured; image tweets will fail")

    app.state.settings = settings
    app.state.uploader = uploader
    # 이미지 생성기는 앱을 띄우는 쪽이 시작 전에 app.state.image_generator로 등록한다
    generator = getattr(app.state, "image_generator", None)
    if generator is None:
        logger.info("No image generator registered; generate/create requests use existing images")
    app.state.post_service = ImagePostService(poster, uploader, settings, generator=generator)

    yield

    # === 종료 ===
    logger.info("Shutting down")
