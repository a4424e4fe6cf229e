import asyncio
import logging
from typing import Any, Awaitable, Dict, NamedTuple, Optional

logger = logging.getLogger("Concurrency")


class GuardedResult(NamedTuple):
    ok: bool
    value: Any = None
    error: Optional[str] = None


async def run_guarded(name: str, awaitable: Awaitable[Any], timeout: Optional[float]) -> GuardedResult:
    """
    Awaits one upstream read with its own timeout.
    A timeout or error becomes a failed GuardedResult instead of an exception,
    so sibling reads are never cancelled by it.
    """
    try:
        if timeout is None:
            value = await awaitable
        else:
            value = await asyncio.wait_for(awaitable, timeout=timeout)
        return GuardedResult(ok=True, value=value)
    except asyncio.TimeoutError:
        logger.warning(f"⏱️ [{name}] timed out after {timeout}s")
        return GuardedResult(ok=False, error="timeout")
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"⚠️ [{name}] failed: {e}")
        return GuardedResult(ok=False, error=str(e) or type(e).__name__)


async def gather_guarded(reads: Dict[str, Awaitable[Any]], timeout: Optional[float]) -> Dict[str, GuardedResult]:
    """Runs named reads concurrently; every key is present in the result."""
    names = list(reads)
    results = await asyncio.gather(*(run_guarded(n, reads[n], timeout) for n in names))
    return dict(zip(names, results))
