"""Run independent read-only lookups concurrently."""

import concurrent.futures
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def fan_out(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = 8,
) -> list[R | BaseException]:
    """Call fn on every item in parallel and wait for all of them.

    Results come back in input order. An exception raised for one item is
    returned in that item's slot; siblings keep running.
    """
    if not items:
        return []
    workers = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures: list[Future[R]] = [executor.submit(fn, item) for item in items]
        concurrent.futures.wait(futures)
    results: list[R | BaseException] = []
    for future in futures:
        exc = future.exception()
        results.append(exc if exc is not None else future.result())
    return results
