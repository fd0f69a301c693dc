"""로컬 개발/테스트용 백엔드.

- SQLModelRecordStore: SQLModel 세션 위의 generated_images 테이블
- LocalBlobStorage: 디렉토리에 파일을 쓰고, 앱이 /files 로 서빙하는 URL을 돌려준다

SQLModel 세션은 동기 API라서 asyncio.to_thread로 이벤트 루프 밖에서 실행한다.
"""

import asyncio
from pathlib import Path

import aiofiles
from sqlmodel import Session, col, select

from core.exceptions import BackendError
from model.image import GeneratedImageRow
from storage.ports import Row

# 테이블 컬럼명 → 모델 속성명
_COLUMN_TO_ATTR = {"metadata": "meta"}


def _attr(column: str) -> str:
    return _COLUMN_TO_ATTR.get(column, column)


def _to_row(obj: GeneratedImageRow) -> Row:
    return {
        "id": obj.id,
        "created_at": obj.created_at,
        "storage_path": obj.storage_path,
        "original_filepath": obj.original_filepath,
        "prompt": obj.prompt,
        "status": obj.status,
        "error_message": obj.error_message,
        "metadata": dict(obj.meta or {}),
    }


class SQLModelRecordStore:
    def __init__(self, engine):
        self.engine = engine

    async def insert(self, row: Row) -> Row:
        return await asyncio.to_thread(self._insert, row)

    async def update(self, record_id: str, patch: Row) -> Row:
        return await asyncio.to_thread(self._update, record_id, patch)

    async def select(
        self,
        filters: Row,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        return await asyncio.to_thread(self._select, filters, order_by, descending, limit)

    def _insert(self, row: Row) -> Row:
        obj = GeneratedImageRow(**{_attr(k): v for k, v in row.items()})
        with Session(self.engine) as session:
            session.add(obj)
            session.commit()
            session.refresh(obj)
            return _to_row(obj)

    def _update(self, record_id: str, patch: Row) -> Row:
        with Session(self.engine) as session:
            obj = session.get(GeneratedImageRow, record_id)
            if not obj:
                raise BackendError(f"Record not found: {record_id}")
            for key, value in patch.items():
                setattr(obj, _attr(key), value)
            session.add(obj)
            session.commit()
            session.refresh(obj)
            return _to_row(obj)

    def _select(self, filters, order_by, descending, limit) -> list[Row]:
        stmt = select(GeneratedImageRow)
        for key, value in filters.items():
            stmt = stmt.where(getattr(GeneratedImageRow, _attr(key)) == value)
        if order_by:
            column = col(getattr(GeneratedImageRow, _attr(order_by)))
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with Session(self.engine) as session:
            return [_to_row(obj) for obj in session.exec(stmt).all()]


class LocalBlobStorage:
    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(
        self, key: str, data: bytes, *, content_type: str, upsert: bool = True
    ) -> None:
        path = self.root / key
        if path.exists() and not upsert:
            raise BackendError(f"Object already exists: {key}")
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as out_file:
            await out_file.write(data)

    async def get_public_url(self, key: str) -> str:
        return f"{self.public_base_url}/files/{key}"
