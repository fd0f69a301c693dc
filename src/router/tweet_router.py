from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.dependencies import get_post_service
from core.exceptions import EmptyTweet, NoImageAvailable, TweetFailed
from social.image_post import ImagePostService

router = APIRouter(prefix="/api/tweets", tags=["tweets"])


class ImageTweetRequest(BaseModel):
    text: str
    image_path: str | None = None
    prompt: str | None = None  # 생성기를 쓸 때의 프롬프트 (없으면 text)


class ImageTweetResponse(BaseModel):
    posted: bool
    image: str
    dry_run: bool


# PostResult.reason → 에러 응답
_FAILURES = {
    "no_image": NoImageAvailable,
    "empty_text": EmptyTweet,
    "post_failed": TweetFailed,
}


@router.post("/image", response_model=ImageTweetResponse)
async def post_image_tweet(
    req: ImageTweetRequest,
    service: ImagePostService = Depends(get_post_service),
):
    """이미지 트윗 게시. image_path가 없으면 생성 요청(generate/create)은 등록된 생성기로,
    그 외에는 최근 업로드/생성 이미지를 쓴다."""
    result = await service.post(req.text, image_path=req.image_path, prompt=req.prompt)
    if not result.posted:
        raise _FAILURES.get(result.reason, TweetFailed)()
    return ImageTweetResponse(posted=True, image=result.image, dry_run=result.dry_run)
