import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.error_handlers import app_exception_handler
from core.exceptions import AppException
from core.lifespan import lifespan
from core.middleware import RequestLoggingMiddleware
from router.image_router import router as image_router
from router.tweet_router import router as tweet_router

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="생성 이미지 업로드(재시도 + 상태 추적) 및 이미지 트윗 게시",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(AppException, app_exception_handler)

app.include_router(image_router)
app.include_router(tweet_router)

# local 백엔드가 쓴 파일을 공개 URL로 서빙 (PUBLIC_BASE_URL/files/<key>)
app.mount(
    "/files",
    StaticFiles(directory=settings.LOCAL_STORAGE_DIR, check_dir=False),
    name="files",
)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "backend": settings.STORAGE_BACKEND,
        "dry_run": settings.TWITTER_DRY_RUN,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )
