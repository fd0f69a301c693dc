"""Supabase 백엔드 어댑터 (async supabase 클라이언트).

- 레코드: PostgREST 테이블 (기본 generated_images)
- 파일: Storage 버킷 (기본 generated-images)

PostgREST/Storage 오류는 SDK가 예외로 올리므로 그대로 전파한다.
재시도는 호출하는 쪽(service.retry)이 담당한다.
"""

from supabase import AsyncClient

from core.exceptions import BackendError
from storage.ports import Row


class SupabaseRecordStore:
    def __init__(self, client: AsyncClient, table: str = "generated_images"):
        self.client = client
        self.table = table

    async def insert(self, row: Row) -> Row:
        result = await self.client.table(self.table).insert(row).execute()
        if not result.data:
            raise BackendError(f"Insert into {self.table} returned no rows")
        return result.data[0]

    async def update(self, record_id: str, patch: Row) -> Row:
        result = (
            await self.client.table(self.table)
            .update(patch)
            .eq("id", record_id)
            .execute()
        )
        if not result.data:
            raise BackendError(f"Update of {self.table}/{record_id} matched no rows")
        return result.data[0]

    async def select(
        self,
        filters: Row,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        query = self.client.table(self.table).select("*")
        for key, value in filters.items():
            query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        result = await query.execute()
        return list(result.data or [])


class SupabaseBlobStorage:
    def __init__(self, client: AsyncClient, bucket: str = "generated-images"):
        self.client = client
        self.bucket = bucket

    async def upload(
        self, key: str, data: bytes, *, content_type: str, upsert: bool = True
    ) -> None:
        await self.client.storage.from_(self.bucket).upload(
            path=key,
            file=data,
            file_options={
                "content-type": content_type,
                "upsert": "true" if upsert else "false",
            },
        )

    async def get_public_url(self, key: str) -> str:
        return await self.client.storage.from_(self.bucket).get_public_url(key)
