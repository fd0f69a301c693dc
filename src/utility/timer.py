"""처리 시간 측정 유틸리티."""

import time
from contextlib import contextmanager

from loguru import logger


@contextmanager
def timer(label: str = ""):
    """컨텍스트 매니저: 블록 실행 시간을 ms 단위로 측정한다.

    사용법:
        with timer("fetch latest") as t:
            ...
        logger.info(f"{t.elapsed_ms:.0f}ms")

    블록 안에서 예외가 나도 elapsed_ms는 채워진다.
    """
    t = _TimerResult()
    start = time.perf_counter()
    try:
        yield t
    finally:
        t.elapsed_ms = (time.perf_counter() - start) * 1000
        if label:
            logger.debug(f"[{label}] {t.elapsed_ms:.0f}ms")


def elapsed_ms(start: float) -> int:
    """perf_counter() 시작값으로부터 지난 시간(ms, 정수)."""
    return int((time.perf_counter() - start) * 1000)


class _TimerResult:
    elapsed_ms: float = 0.0
