import asyncio
import time

import pytest

from app.core.executors import gather_guarded, run_guarded


async def sleeper(duration: float, value: str):
    await asyncio.sleep(duration)
    return value


async def boom():
    raise ValueError("Boom")


@pytest.mark.asyncio
async def test_run_guarded_success():
    result = await run_guarded("ok", sleeper(0.01, "done"), timeout=1.0)

    assert result.ok is True
    assert result.value == "done"


@pytest.mark.asyncio
async def test_run_guarded_converts_errors():
    result = await run_guarded("boom", boom(), timeout=1.0)

    assert result.ok is False
    assert result.value is None
    assert "Boom" in result.error


@pytest.mark.asyncio
async def test_run_guarded_timeout():
    result = await run_guarded("slow", sleeper(1.0, "late"), timeout=0.05)

    assert result.ok is False
    assert result.error == "timeout"


@pytest.mark.asyncio
async def test_gather_guarded_runs_concurrently_and_isolates_failures():
    start = time.monotonic()
    results = await gather_guarded(
        {
            "a": sleeper(0.1, "A"),
            "b": sleeper(0.1, "B"),
            "c": boom(),
            "d": sleeper(2.0, "D"),
        },
        timeout=0.3,
    )
    elapsed = time.monotonic() - start

    assert results["a"].value == "A"
    assert results["b"].value == "B"
    assert results["c"].ok is False
    assert results["d"].error == "timeout"
    # Bounded by the timeout, not the sum of the reads
    assert elapsed < 1.0
