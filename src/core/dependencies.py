from fastapi import Request

from service.upload_service import ImageUploader
from social.image_post import ImagePostService


# lifespan에서 app.state에 올려둔 인스턴스를 꺼낸다.
# 테스트에서는 app.dependency_overrides로 가짜 백엔드를 쓰는 인스턴스로 바꾼다.


def get_uploader(request: Request) -> ImageUploader:
    return request.app.state.uploader


def get_post_service(request: Request) -> ImagePostService:
    return request.app.state.post_service
