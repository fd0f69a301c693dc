"""생성 이미지 업로드 파이프라인 + 조회.

upload() 흐름:
1. 로컬 검증 (실패 시 네트워크 호출 없이 중단)
2. 추적 레코드 생성 (status=uploading), 재시도
3. 파일 업로드 (키: <id>_<filename>), 재시도, 공개 URL 조회
4. 레코드 갱신 (status=completed, storage_path=URL), 재시도

어느 단계에서든 실패하면:
- 실패 정보를 먼저 정리하고 (capture_failure, 순수 함수)
- 레코드 id가 있을 때만 status=error로 갱신을 시도한다 (실패해도 로그만)
- 호출자에게는 예외 대신 None을 돌려준다

조회(get_latest, get_by_id, verify_access)도 같은 규칙: 실패는 로그 + None/False.
"""

import asyncio
import os
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

import aiofiles
import httpx
from loguru import logger

from core.config import Settings
from core.config import settings as default_settings
from core.exceptions import ImageValidationError
from model.image import GeneratedImageRecord, ImageStatus
from service.retry import retry
from service.validation import detect_image_type, validate_image
from storage.ports import BlobStorage, RecordStore
from utility.timer import elapsed_ms, timer

T = TypeVar("T")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class FailureContext:
    """실패 시점에 수집한 진단 정보. 외부 호출 없이 만든다."""

    error_name: str
    error_message: str
    timestamp: str
    elapsed_ms: int

    def error_patch(self, base_metadata: dict[str, Any]) -> dict[str, Any]:
        """레코드를 error 상태로 바꾸는 update patch."""
        return {
            "status": ImageStatus.ERROR.value,
            "storage_path": "",
            "error_message": self.error_message,
            "metadata": {
                **base_metadata,
                "errorTimestamp": self.timestamp,
                "processingTime": self.elapsed_ms,
                "errorDetails": {
                    "name": self.error_name,
                    "message": self.error_message,
                },
            },
        }


def capture_failure(error: BaseException, elapsed: int) -> FailureContext:
    return FailureContext(
        error_name=type(error).__name__,
        error_message=str(error) or type(error).__name__,
        timestamp=_now_iso(),
        elapsed_ms=elapsed,
    )


def to_record(row: dict[str, Any]) -> GeneratedImageRecord:
    return GeneratedImageRecord.model_validate({**row, "metadata": row.get("metadata") or {}})


class ImageUploader:
    """업로드 파이프라인. 저장소 어댑터는 생성자에서 주입받는다."""

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStorage,
        settings: Settings = default_settings,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.records = records
        self.blobs = blobs
        self.settings = settings
        self.http_client = http_client
        self._sleep = sleep

    async def _retry(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        return await retry(
            operation,
            max_attempts=self.settings.RETRY_MAX_ATTEMPTS,
            initial_delay=self.settings.RETRY_INITIAL_DELAY,
            sleep=self._sleep,
            label=label,
        )

    def storage_key(self, record_id: str, filename: str) -> str:
        key = f"{record_id}_{filename}"
        prefix = self.settings.STORAGE_PREFIX.strip("/")
        return f"{prefix}/{key}" if prefix else key

    # ------------------------------- 업로드 -------------------------------

    async def upload(self, filepath: str, prompt: str) -> GeneratedImageRecord | None:
        record_id: str | None = None
        base_metadata: dict[str, Any] = {}
        start = time.perf_counter()

        try:
            logger.info(f"Starting image upload process for: {filepath}")
            logger.debug(f"Upload details: prompt_length={len(prompt)}, started={_now_iso()}")

            if not await validate_image(filepath, self.settings.MAX_IMAGE_SIZE_BYTES):
                raise ImageValidationError("Image validation failed - check previous logs for details")

            filename = os.path.basename(filepath)
            if not filename:
                raise ImageValidationError("Invalid filepath - no filename found")

            created = to_record(
                await self._retry(
                    lambda: self.records.insert(
                        {
                            "original_filepath": filepath,
                            "prompt": prompt,
                            "status": ImageStatus.UPLOADING.value,
                            "storage_path": "",
                            "metadata": {
                                "uploadStarted": _now_iso(),
                                "originalFilename": filename,
                                "attempts": 1,
                            },
                        }
                    ),
                    label="Create record",
                )
            )
            record_id = created.id
            base_metadata = created.metadata
            logger.info(f"Created database record: id={record_id}, status=uploading")

            async with aiofiles.open(filepath, "rb") as f:
                data = await f.read()

            key = self.storage_key(record_id, filename)
            content_type = detect_image_type(data[:4]) or "image/png"
            logger.info(f"Attempting storage upload: key={key}, size={len(data)}, type={content_type}")

            await self._retry(
                lambda: self.blobs.upload(key, data, content_type=content_type, upsert=True),
                label="Storage upload",
            )
            public_url = await self.blobs.get_public_url(key)
            logger.info(f"Storage upload successful: {public_url}")

            updated = to_record(
                await self._retry(
                    lambda: self.records.update(
                        record_id,
                        {
                            "status": ImageStatus.COMPLETED.value,
                            "storage_path": public_url,
                            "metadata": {
                                **base_metadata,
                                "uploadCompleted": _now_iso(),
                                "processingTime": elapsed_ms(start),
                            },
                        },
                    ),
                    label="Update record",
                )
            )

            logger.info(
                f"Upload process completed successfully: id={updated.id}, "
                f"url={public_url}, processing_time={elapsed_ms(start)}ms"
            )
            return updated

        except Exception as e:
            failure = capture_failure(e, elapsed_ms(start))
            logger.error(
                f"Error in upload: {failure.error_name}: {failure.error_message} "
                f"(filepath={filepath}, record_id={record_id}, processing_time={failure.elapsed_ms}ms)"
            )
            if record_id is not None:
                await self._record_failure(record_id, base_metadata, failure)
            return None

    async def _record_failure(
        self, record_id: str, base_metadata: dict[str, Any], failure: FailureContext
    ) -> bool:
        """레코드를 error 상태로 갱신한다. 이 갱신이 실패해도 예외를 올리지 않는다."""
        try:
            await self._retry(
                lambda: self.records.update(record_id, failure.error_patch(base_metadata)),
                label="Update record with error status",
            )
            logger.info(f"Marked record {record_id} as error")
            return True
        except Exception as e:
            logger.error(f"Failed to update record with error status: id={record_id}, {e!r}")
            return False

    # ------------------------------- 조회 -------------------------------

    async def _fetch_one(
        self, label: str, operation: Callable[[], Awaitable[list[dict[str, Any]]]]
    ) -> GeneratedImageRecord | None:
        error: Exception | None = None
        record = None
        with timer(label) as t:
            try:
                rows = await self._retry(operation, label=label)
                record = to_record(rows[0]) if rows else None
            except Exception as e:
                error = e
        if error is not None:
            logger.error(f"{label} failed: {error!r} (processing_time={t.elapsed_ms:.0f}ms)")
            return None
        return record

    async def get_latest(self) -> GeneratedImageRecord | None:
        """가장 최근에 completed 된 레코드. 없거나 실패하면 None."""
        logger.info("Fetching latest generated image")
        record = await self._fetch_one(
            "Fetch latest image",
            lambda: self.records.select(
                {"status": ImageStatus.COMPLETED.value},
                order_by="created_at",
                descending=True,
                limit=1,
            ),
        )
        if record is None:
            logger.warning("No completed images found in database")
            return None
        logger.info(f"Retrieved latest image: id={record.id}, url={record.storage_path}")
        return record

    async def get_by_id(self, record_id: str) -> GeneratedImageRecord | None:
        logger.info(f"Fetching image by ID: {record_id}")
        record = await self._fetch_one(
            "Fetch image by ID",
            lambda: self.records.select({"id": record_id}, limit=1),
        )
        if record is None:
            logger.warning(f"No image found with ID: {record_id}")
            return None
        logger.info(f"Retrieved image by ID: id={record.id}, status={record.status.value}")
        return record

    async def verify_access(self, record: GeneratedImageRecord) -> bool:
        """storage_path에 HEAD 요청을 보내 이미지로 접근 가능한지 확인한다."""
        url = record.storage_path
        if not url:
            logger.warning(f"Image has no storage path yet: id={record.id}, status={record.status.value}")
            return False
        logger.info(f"Verifying image access: {url}")
        try:
            if self.http_client is not None:
                response = await self.http_client.head(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.settings.VERIFY_TIMEOUT) as client:
                    response = await client.head(url, follow_redirects=True)
        except Exception as e:
            logger.error(f"Error verifying image access: url={url}, {e!r}")
            return False

        content_type = response.headers.get("content-type", "")
        accessible = response.is_success and content_type.startswith("image/")
        logger.info(
            f"Image access verification: url={url}, status={response.status_code}, "
            f"content_type={content_type or '-'}, accessible={accessible}"
        )
        return accessible
