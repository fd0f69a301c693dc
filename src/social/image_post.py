"""이미지 트윗 게시 흐름.

1. 이미지 선택: 명시한 경로 → 생성기(타임아웃) → 백엔드 최신 URL / 로컬 최신 파일
   본문에 generate / create가 있으면 등록된 생성기를 본문을 프롬프트로 호출한다
2. 본문 확인 (비어 있으면 중단)
3. TWITTER_DRY_RUN이면 로그만 남기고 성공 처리
4. TwitterImagePoster로 게시

트윗 본문 작성(LLM/템플릿)과 이미지 생성 자체는 호출자 몫이다. 생성기는
ImagePostService(generator=...) 또는 app.state.image_generator로 등록한다.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from loguru import logger

from core.config import Settings
from core.config import settings as default_settings
from service.image_locator import resolve_image_for_post
from social.twitter_poster import TwitterImagePoster

# prompt → 생성된 이미지 경로 (실패 시 None)
ImageGenerator = Callable[[str], Awaitable[str | None]]

_GENERATE_KEYWORDS = ("generate", "create")


def wants_new_image(text: str) -> bool:
    """메시지가 새 이미지 생성을 요청하는지 (generate / create 포함 여부)."""
    lowered = text.lower()
    return any(word in lowered for word in _GENERATE_KEYWORDS)


async def wait_for_generation(
    generator: ImageGenerator, prompt: str, timeout: float
) -> str | None:
    """생성기를 timeout초까지 기다린다. 시간 초과나 실패는 None."""
    try:
        result = await asyncio.wait_for(generator(prompt), timeout=timeout)
    except TimeoutError:
        logger.error(f"Image generation timed out after {timeout:.0f}s")
        return None
    except Exception as e:
        logger.error(f"Error generating image: {e!r}")
        return None

    if not result:
        logger.error("Image generation returned no image")
        return None
    logger.info(f"Image generation completed successfully: {result}")
    return result


@dataclass
class PostResult:
    posted: bool
    image: str | None = None
    dry_run: bool = False
    reason: str | None = None  # no_image | empty_text | post_failed


class ImagePostService:
    def __init__(
        self,
        poster: TwitterImagePoster,
        uploader=None,
        settings: Settings = default_settings,
        generator: ImageGenerator | None = None,
    ):
        self.poster = poster
        self.uploader = uploader
        self.settings = settings
        # 등록된 생성기는 본문이 생성을 요청할 때(wants_new_image)만 쓴다
        self.generator = generator

    async def pick_image(
        self,
        image_path: str | None = None,
        generator: ImageGenerator | None = None,
        prompt: str | None = None,
    ) -> str | None:
        if image_path:
            return image_path
        if generator is not None:
            logger.info("Starting image generation process")
            return await wait_for_generation(
                generator, prompt or "", self.settings.IMAGE_GENERATION_TIMEOUT
            )
        return await resolve_image_for_post(self.uploader, self.settings)

    async def post(
        self,
        text: str,
        image_path: str | None = None,
        generator: ImageGenerator | None = None,
        prompt: str | None = None,
    ) -> PostResult:
        if not image_path and generator is None and self.generator and wants_new_image(text or ""):
            logger.info("Message asks for a new image; using registered generator")
            generator = self.generator
            prompt = prompt or text

        image = await self.pick_image(image_path, generator, prompt)
        if not image:
            logger.error("No image found to post")
            return PostResult(posted=False, reason="no_image")

        text = (text or "").strip()
        if not text:
            logger.error("Tweet content is empty")
            return PostResult(posted=False, image=image, reason="empty_text")

        if self.settings.TWITTER_DRY_RUN:
            logger.info(f"Dry run: would have posted image tweet: {image} with text: {text}")
            return PostResult(posted=True, image=image, dry_run=True)

        if not await self.poster.post_image(image, text):
            return PostResult(posted=False, image=image, reason="post_failed")
        return PostResult(posted=True, image=image)
