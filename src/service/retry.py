"""재시도 실행기.

네트워크 호출(레코드 생성/파일 업로드/레코드 갱신/조회)마다 따로 감싸서
호출마다 새 재시도 예산을 갖는다.

    record = await retry(lambda: store.insert(row), label="create record")

지연: initial_delay, initial_delay*2, initial_delay*4 ... (지터/상한 없음)
시도를 다 쓰면 마지막 예외를 그대로 다시 올린다.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_exponential

T = TypeVar("T")


def _log_retry(label: str, max_attempts: int):
    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0
        logger.warning(
            f"{label} failed, attempt {state.attempt_number}/{max_attempts}. "
            f"Retrying in {delay:.2f}s... ({error!r})"
        )

    return before_sleep


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "Operation",
) -> T:
    """operation을 최대 max_attempts번 실행한다. 실패 사이에 지수 백오프로 대기.

    operation은 호출할 때마다 새 awaitable을 돌려주는 인자 없는 callable이다
    (async 함수든 코루틴을 만드는 lambda든 상관없다).
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        sleep=sleep,
        before_sleep=_log_retry(label, max_attempts),
        reraise=True,
    ):
        with attempt:
            return await operation()
    # reraise=True라 시도를 다 쓰면 위에서 마지막 예외가 올라온다
    raise AssertionError("unreachable")
