"""tweepy로 이미지 트윗을 게시한다.

미디어 업로드는 v1.1 API(tweepy.API.media_upload), 트윗 생성은 v2
(tweepy.Client.create_tweet)만 지원해서 두 클라이언트를 함께 쓴다.
tweepy는 동기 라이브러리라 asyncio.to_thread로 호출한다.
"""

import asyncio
import io
import os
from urllib.parse import urlparse

import aiofiles
import httpx
import tweepy
from loguru import logger

from core.config import Settings
from core.config import settings as default_settings


def is_url(image: str) -> bool:
    return urlparse(image).scheme in ("http", "https")


class TwitterImagePoster:
    def __init__(
        self,
        settings: Settings = default_settings,
        api: tweepy.API | None = None,
        client: tweepy.Client | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self._api = api
        self._client = client
        self.http_client = http_client

    def has_credentials(self) -> bool:
        s = self.settings
        return all(
            [s.TWITTER_API_KEY, s.TWITTER_API_SECRET, s.TWITTER_ACCESS_TOKEN, s.TWITTER_ACCESS_TOKEN_SECRET]
        )

    def _clients(self) -> tuple[tweepy.API, tweepy.Client]:
        s = self.settings
        if self._api is None:
            auth = tweepy.OAuth1UserHandler(
                s.TWITTER_API_KEY,
                s.TWITTER_API_SECRET,
                s.TWITTER_ACCESS_TOKEN,
                s.TWITTER_ACCESS_TOKEN_SECRET,
            )
            self._api = tweepy.API(auth)
        if self._client is None:
            self._client = tweepy.Client(
                consumer_key=s.TWITTER_API_KEY,
                consumer_secret=s.TWITTER_API_SECRET,
                access_token=s.TWITTER_ACCESS_TOKEN,
                access_token_secret=s.TWITTER_ACCESS_TOKEN_SECRET,
            )
        return self._api, self._client

    async def _read_image(self, image: str) -> bytes:
        """로컬 경로면 파일을 읽고, URL이면 내려받는다."""
        if not is_url(image):
            async with aiofiles.open(image, "rb") as f:
                return await f.read()

        if self.http_client is not None:
            response = await self.http_client.get(image, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=self.settings.VERIFY_TIMEOUT) as client:
                response = await client.get(image, follow_redirects=True)
        response.raise_for_status()
        return response.content

    async def post_image(self, image: str, text: str) -> bool:
        """이미지 한 장을 붙여 트윗한다. 실패는 로그 + False."""
        if (self._api is None or self._client is None) and not self.has_credentials():
            logger.error("Twitter credentials not configured in environment")
            return False

        try:
            logger.info(f"Attempting to send tweet with image: {image}")
            logger.debug(f"Tweet content: {text}")

            data = await self._read_image(image)
            filename = os.path.basename(urlparse(image).path) or "image.png"
            api, client = self._clients()

            media = await asyncio.to_thread(api.media_upload, filename=filename, file=io.BytesIO(data))
            media_id = getattr(media, "media_id", None)
            if not media_id:
                logger.error("Failed to upload media")
                return False

            response = await asyncio.to_thread(client.create_tweet, text=text, media_ids=[media_id])
            if response.errors:
                error = response.errors[0]
                logger.error(f"Twitter API error: {error}")
                return False

            tweet_id = (response.data or {}).get("id")
            logger.info(f"Successfully posted tweet with image (tweet_id={tweet_id})")
            return True
        except Exception as e:
            logger.error(f"Error posting image tweet: {e!r}")
            return False
