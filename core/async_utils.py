"""
WikiSubmission SDK - Async Utilities

Small asyncio building blocks used by the client:
- Chunked gathering with a hard ceiling on in-flight work
- Racing a task against an external cancel event

All utilities integrate with OpenTelemetry for observability.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from opentelemetry import trace

T = TypeVar("T")
R = TypeVar("R")

tracer = trace.get_tracer(__name__)


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split items into consecutive chunks of ``size`` (last one may be shorter)."""
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


async def gather_in_chunks(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    chunk_size: int,
) -> List[Union[R, BaseException]]:
    """
    Run ``worker`` over items, one chunk at a time.

    Items inside a chunk run concurrently; the next chunk starts only after
    every item of the current one has settled. Exceptions are returned in
    place of results, so the output is positionally aligned with the input.

    Usage:
        results = await gather_in_chunks(queries, client.query, chunk_size=3)
    """
    results: List[Union[R, BaseException]] = []

    with tracer.start_as_current_span("batch.process") as span:
        chunks = chunked(items, chunk_size)
        span.set_attribute("batch.total_items", len(items))
        span.set_attribute("batch.chunk_size", max(1, chunk_size))
        span.set_attribute("batch.chunk_count", len(chunks))

        for idx, chunk in enumerate(chunks):
            with tracer.start_as_current_span("batch.chunk") as chunk_span:
                chunk_span.set_attribute("batch.chunk_index", idx)
                chunk_span.set_attribute("batch.chunk_items", len(chunk))
                chunk_results = await asyncio.gather(
                    *[worker(item) for item in chunk],
                    return_exceptions=True,
                )
                results.extend(chunk_results)

    return results


async def race_event(
    task: "asyncio.Task[T]",
    event: Optional[asyncio.Event],
) -> bool:
    """
    Wait until ``task`` finishes or ``event`` is set, whichever comes first.

    Returns True when the event won; the task is cancelled in that case.
    Without an event this simply waits for the task.
    """
    if event is None:
        await asyncio.wait({task})
        return False

    waiter = asyncio.ensure_future(event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not waiter.done():
            waiter.cancel()

    if task in done:
        return False

    task.cancel()
    await asyncio.wait({task})
    return True


def cancel_task_threadsafe(task: "asyncio.Task[Any]") -> None:
    """Cancel a task from inside or outside its loop."""
    loop = task.get_loop()
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is loop:
        task.cancel()
    elif not loop.is_closed():
        loop.call_soon_threadsafe(task.cancel)
