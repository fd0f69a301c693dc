"""
생성 이미지 한 장을 백엔드에 업로드하는 CLI.

사용법:
    cd src && python -m scripts.upload_image ../generatedImages/sunset.png --prompt "a sunset"
    cd src && STORAGE_BACKEND=local python -m scripts.upload_image sunset.png --verify

성공하면 레코드를 JSON으로 출력하고, 실패하면 종료 코드 1.
"""

import argparse
import asyncio
import sys

from core.config import settings
from core.exceptions import AppException
from service.upload_service import ImageUploader
from storage.factory import create_backend
from utility.logger import setup_logger
from utility.timer import timer


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload a generated image")
    parser.add_argument("filepath", help="업로드할 이미지 경로")
    parser.add_argument("--prompt", default="", help="이미지 생성에 쓴 프롬프트")
    parser.add_argument("--verify", action="store_true", help="업로드 후 공개 URL 접근 확인")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    try:
        records, blobs = await create_backend(settings)
    except AppException as e:
        print(f"[{e.error_code}] {e.message}", file=sys.stderr)
        return 1

    uploader = ImageUploader(records, blobs, settings)

    with timer("upload"):
        record = await uploader.upload(args.filepath, args.prompt)
    if record is None:
        print("Upload failed - see logs above", file=sys.stderr)
        return 1

    print(record.model_dump_json(indent=2))

    if args.verify and not await uploader.verify_access(record):
        print(f"Uploaded but not accessible: {record.storage_path}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    setup_logger(settings.LOG_LEVEL)
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
