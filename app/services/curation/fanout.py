import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator
from typing import TypeVar

from loguru import logger

from app.core.constants import CHUNK_GROUP_WIDTH
from app.core.exceptions import AuthExpiredError, UpstreamUnavailableError

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: list[T], size: int) -> Iterator[list[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def gather_settled(calls: Iterable[Awaitable[R]], stage: str) -> tuple[list[R], int]:
    """
    Await a group of upstream calls concurrently.

    Returns the successful results in call order and the number of failures.
    A failed call counts as an empty result; an AuthExpiredError is re-raised
    because no sibling call can succeed with the same credentials.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    succeeded: list[R] = []
    failures = 0
    for result in results:
        if isinstance(result, AuthExpiredError):
            raise result
        if isinstance(result, Exception):
            failures += 1
            logger.warning(f"[{stage}] request failed, continuing without it: {result}")
            continue
        if isinstance(result, BaseException):
            raise result
        succeeded.append(result)
    return succeeded, failures


async def run_chunked(
    fetch: Callable[[list[T]], Awaitable[R]],
    items: list[T],
    chunk_size: int,
    stage: str,
    width: int = CHUNK_GROUP_WIDTH,
) -> list[R]:
    """
    Split ``items`` into upstream-sized chunks and fetch them in waves of ``width``.

    Individual chunk failures are dropped. Raises UpstreamUnavailableError only
    when every chunk failed.
    """
    chunks = list(chunked(items, chunk_size))
    if not chunks:
        return []

    results: list[R] = []
    failures = 0
    for wave in chunked(chunks, width):
        succeeded, failed = await gather_settled((fetch(chunk) for chunk in wave), stage)
        results.extend(succeeded)
        failures += failed

    if failures == len(chunks):
        raise UpstreamUnavailableError(stage)
    if failures:
        logger.info(f"[{stage}] {failures}/{len(chunks)} chunks failed")
    return results
