"""Bounded-time execution for work that may never return."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, TypeVar

from chartlint.errors import RenderTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RENDER_TIMEOUT = 3.0


def run_with_timeout(
    fn: Callable[..., T],
    timeout: float,
    *args,
    chart_dir: str = "",
    **kwargs,
) -> T:
    """Run ``fn(*args, **kwargs)`` and wait at most ``timeout`` seconds for it.

    The call runs on a daemon thread bound to a Future. If the deadline passes
    the Future is abandoned and RenderTimeoutError is raised; the thread can
    never keep the process alive. Exceptions raised by ``fn`` re-raise here.
    """
    future: Future = Future()

    def _worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:  # handed to the waiting caller
            future.set_exception(e)
        else:
            future.set_result(result)

    thread = threading.Thread(target=_worker, name="chartlint-render", daemon=True)
    thread.start()
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        if future.done():
            # fn itself raised TimeoutError
            raise
        future.cancel()
        logger.warning("Rendering %s exceeded %.1fs, abandoning it", chart_dir or "chart", timeout)
        raise RenderTimeoutError(chart_dir, timeout) from None
