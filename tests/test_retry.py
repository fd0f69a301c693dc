"""재시도 실행기 테스트. 대기는 fake_sleep으로 기록만 한다."""

import pytest

from service.retry import retry


class Flaky:
    """처음 failures번은 실패하고 그 다음부터 value를 돌려주는 연산."""

    def __init__(self, failures: int, value="ok"):
        self.failures = failures
        self.value = value
        self.attempts = 0
        self.errors: list[Exception] = []

    async def __call__(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            error = RuntimeError(f"attempt {self.attempts}")
            self.errors.append(error)
            raise error
        return self.value


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_wait(fake_sleep, sleeps):
    op = Flaky(failures=0)

    assert await retry(op, sleep=fake_sleep) == "ok"
    assert op.attempts == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_recovers_after_failures_with_doubling_delay(fake_sleep, sleeps):
    """2번 실패 후 성공 → 대기는 1s, 2s (합계 = initial * (2^0 + 2^1))."""
    op = Flaky(failures=2, value={"id": "rec-1"})

    result = await retry(op, max_attempts=3, initial_delay=1.0, sleep=fake_sleep)

    assert result == {"id": "rec-1"}
    assert op.attempts == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_total_wait_is_geometric_sum(fake_sleep, sleeps):
    op = Flaky(failures=3)

    await retry(op, max_attempts=5, initial_delay=0.5, sleep=fake_sleep)

    assert sleeps == pytest.approx([0.5, 1.0, 2.0])
    assert sum(sleeps) == pytest.approx(sum(0.5 * 2**k for k in range(3)))


@pytest.mark.asyncio
async def test_always_failing_reraises_last_error(fake_sleep, sleeps):
    op = Flaky(failures=100)

    with pytest.raises(RuntimeError) as exc_info:
        await retry(op, max_attempts=3, initial_delay=1.0, sleep=fake_sleep)

    assert op.attempts == 3
    assert exc_info.value is op.errors[-1]
    assert str(exc_info.value) == "attempt 3"
    # 마지막 시도 뒤에는 기다리지 않는다
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_single_attempt_budget(fake_sleep, sleeps):
    op = Flaky(failures=1)

    with pytest.raises(RuntimeError):
        await retry(op, max_attempts=1, sleep=fake_sleep)

    assert op.attempts == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_lambda_returning_coroutine_is_awaited(fake_sleep, sleeps):
    """업로드 파이프라인처럼 lambda로 코루틴을 넘겨도 결과를 await하고 재시도한다."""
    calls = []

    async def insert(row):
        calls.append(row)
        if len(calls) == 1:
            raise RuntimeError("connection reset")
        return {"id": "rec-1", **row}

    result = await retry(lambda: insert({"prompt": "a sunset"}), sleep=fake_sleep)

    assert result == {"id": "rec-1", "prompt": "a sunset"}
    assert len(calls) == 2
    assert sleeps == [1.0]


@pytest.mark.asyncio
async def test_lambda_always_failing_reraises(fake_sleep, sleeps):
    op = Flaky(failures=100)

    with pytest.raises(RuntimeError, match="attempt 3"):
        await retry(lambda: op(), max_attempts=3, sleep=fake_sleep)

    assert op.attempts == 3
    assert sleeps == [1.0, 2.0]
