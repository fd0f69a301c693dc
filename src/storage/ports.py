"""업로드 파이프라인이 의존하는 외부 저장소 계약.

레코드는 테이블 컬럼명을 키로 갖는 dict(row)로 주고받는다.
어댑터: storage.supabase_backend (운영), storage.local_backend (로컬/테스트)
"""

from typing import Any, Protocol

Row = dict[str, Any]


class RecordStore(Protocol):
    async def insert(self, row: Row) -> Row:
        """레코드를 생성하고 백엔드가 채운 id, created_at을 포함한 row를 반환한다."""
        ...

    async def update(self, record_id: str, patch: Row) -> Row:
        """id로 레코드를 찾아 patch를 적용하고 갱신된 row를 반환한다."""
        ...

    async def select(
        self,
        filters: Row,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """filters의 모든 컬럼이 일치하는 row 목록."""
        ...


class BlobStorage(Protocol):
    async def upload(
        self, key: str, data: bytes, *, content_type: str, upsert: bool = True
    ) -> None:
        ...

    async def get_public_url(self, key: str) -> str:
        ...
