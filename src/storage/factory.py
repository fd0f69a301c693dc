"""설정값으로 레코드 저장소/블롭 저장소 쌍을 만든다.

앱 시작(lifespan)과 CLI에서 한 번 호출하고, 결과를 ImageUploader에 주입한다.
"""

from pathlib import Path

from loguru import logger
from supabase import acreate_client

from core.config import Settings
from core.exceptions import MissingCredentials, UnknownBackend
from storage.local_backend import LocalBlobStorage, SQLModelRecordStore
from storage.ports import BlobStorage, RecordStore
from storage.supabase_backend import SupabaseBlobStorage, SupabaseRecordStore


async def create_backend(settings: Settings) -> tuple[RecordStore, BlobStorage]:
    """STORAGE_BACKEND에 맞는 어댑터를 만든다.

    - supabase: SUPABASE_URL / SUPABASE_ANON_KEY가 없으면 MissingCredentials (시작 실패)
    - local: DATABASE_URL의 SQLite + LOCAL_STORAGE_DIR
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "supabase":
        if not settings.has_supabase_credentials:
            raise MissingCredentials
        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        logger.info(
            f"Supabase backend ready (table={settings.RECORD_TABLE}, bucket={settings.STORAGE_BUCKET})"
        )
        return (
            SupabaseRecordStore(client, settings.RECORD_TABLE),
            SupabaseBlobStorage(client, settings.STORAGE_BUCKET),
        )

    if backend == "local":
        from model.database import create_db_and_tables, engine

        create_db_and_tables()
        Path(settings.LOCAL_STORAGE_DIR).mkdir(parents=True, exist_ok=True)
        logger.info(
            f"Local backend ready ({settings.DATABASE_URL}, files={settings.LOCAL_STORAGE_DIR})"
        )
        return (
            SQLModelRecordStore(engine),
            LocalBlobStorage(settings.LOCAL_STORAGE_DIR, settings.PUBLIC_BASE_URL),
        )

    raise UnknownBackend(f"지원하지 않는 저장소 백엔드입니다: {settings.STORAGE_BACKEND}")
