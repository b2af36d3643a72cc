"""
Background dispatch of engine calls.

The engine is synchronous; a driver that wants to stay responsive hands one
``simulate`` call at a time to a single worker thread and polls for the
result. Arrays are copied into the request, so the worker owns its inputs
for the whole call and the driver's own arrays stay untouched.

There is no cancellation and no progress reporting: once submitted, a
request runs to completion.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional

import numpy as np

from diffusion_engine import DiffusionEngine
from parameters import SimulationParameters

logger = logging.getLogger(__name__)


@dataclass
class DiffusionRequest:
    field: np.ndarray
    sources: np.ndarray
    sinks: np.ndarray
    params: SimulationParameters

    @classmethod
    def from_arrays(cls, field, sources, sinks, params: SimulationParameters) -> "DiffusionRequest":
        """Build a request holding private copies of the arrays."""
        return cls(
            field=np.array(field, dtype=np.float32),
            sources=np.array(sources, dtype=np.float32),
            sinks=np.array(sinks, dtype=np.float32),
            params=params,
        )


@dataclass
class DiffusionResponse:
    field: Optional[np.ndarray] = None
    steady: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DiffusionDispatcher:
    """Runs at most one engine call at a time on a dedicated worker thread."""

    def __init__(self, engine: DiffusionEngine):
        self.engine = engine
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="diffusion")
        self._lock = threading.Lock()
        self._future: Optional[Future] = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    @property
    def has_result(self) -> bool:
        with self._lock:
            return self._future is not None and self._future.done()

    def submit(self, field, sources, sinks, params: SimulationParameters) -> bool:
        """
        Dispatch one call.

        Returns:
            False (and dispatches nothing) while a previous call is pending or
            its result has not been collected yet
        """
        with self._lock:
            if self._future is not None:
                return False
            request = DiffusionRequest.from_arrays(field, sources, sinks, params)
            self._future = self._executor.submit(self._run, request)
            return True

    def poll(self) -> Optional[DiffusionResponse]:
        """Collect the finished response, or None if nothing is ready."""
        with self._lock:
            if self._future is None or not self._future.done():
                return None
            future, self._future = self._future, None
        return future.result()

    def wait(self, timeout: Optional[float] = None) -> Optional[DiffusionResponse]:
        """Block until the pending response is ready (or ``timeout`` passes)."""
        with self._lock:
            future = self._future
        if future is None:
            return None
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError:
            return None
        return self.poll()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "DiffusionDispatcher":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def _run(self, request: DiffusionRequest) -> DiffusionResponse:
        try:
            result = self.engine.simulate(request.field, request.sources, request.sinks, request.params)
        except Exception as e:
            logger.error(f"Error in diffusion worker: {e}")
            return DiffusionResponse(error=str(e))
        return DiffusionResponse(field=result.field, steady=result.steady)
