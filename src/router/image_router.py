from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.dependencies import get_uploader
from core.exceptions import ImageNotFound, UploadFailed
from model.image import GeneratedImageRecord
from service.upload_service import ImageUploader

router = APIRouter(prefix="/api/images", tags=["images"])


class UploadRequest(BaseModel):
    filepath: str
    prompt: str = ""


class AccessResponse(BaseModel):
    id: str
    url: str
    accessible: bool


@router.post("/upload", response_model=GeneratedImageRecord)
async def upload_image(req: UploadRequest, uploader: ImageUploader = Depends(get_uploader)):
    """서버 로컬 경로의 생성 이미지를 백엔드에 올린다. 실패 원인은 서버 로그에만 남는다."""
    record = await uploader.upload(req.filepath, req.prompt)
    if record is None:
        raise UploadFailed
    return record


@router.get("/latest", response_model=GeneratedImageRecord)
async def get_latest_image(uploader: ImageUploader = Depends(get_uploader)):
    record = await uploader.get_latest()
    if record is None:
        raise ImageNotFound("완료된 이미지가 없습니다")
    return record


@router.get("/{image_id}", response_model=GeneratedImageRecord)
async def get_image(image_id: str, uploader: ImageUploader = Depends(get_uploader)):
    record = await uploader.get_by_id(image_id)
    if record is None:
        raise ImageNotFound
    return record


@router.get("/{image_id}/access", response_model=AccessResponse)
async def verify_image_access(image_id: str, uploader: ImageUploader = Depends(get_uploader)):
    record = await uploader.get_by_id(image_id)
    if record is None:
        raise ImageNotFound
    accessible = await uploader.verify_access(record)
    return AccessResponse(id=record.id, url=record.storage_path, accessible=accessible)
