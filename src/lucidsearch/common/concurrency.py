"""lucidsearch.common.concurrency

Small thread-coordination primitives used by the pipeline.

Classes
-------
CancellationToken
    Cooperative cancellation flag threaded through every blocking stage.
EmbeddingCounter
    Process-wide, lock-protected counter of stored embeddings.
"""

from __future__ import annotations

import threading

from lucidsearch.common.errors import PipelineCancelled


class CancellationToken:
    """Cooperative cancellation flag backed by :class:`threading.Event`.

    A token is created per pipeline run and passed to every stage. Stages call
    :meth:`raise_if_cancelled` between blocking calls, and use :meth:`wait`
    instead of :func:`time.sleep` so that a pending cancel interrupts the
    sleep.
    """

    def __init__(self) -> None:
        self._flag = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "") -> None:
        self.reason = reason or "cancelled"
        self._flag.set()

    def is_cancelled(self) -> bool:
        return self._flag.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep for up to ``timeout`` seconds.

        Returns
        -------
        bool
            ``True`` if the token was cancelled before the timeout elapsed.
        """
        return self._flag.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._flag.is_set():
            raise PipelineCancelled(f"Run cancelled: {self.reason}")


def raise_if_cancelled(token: CancellationToken | None) -> None:
    """Raise :class:`PipelineCancelled` if ``token`` is set. ``None`` is a no-op."""
    if token is not None:
        token.raise_if_cancelled()


class EmbeddingCounter:
    """Thread-safe running total of embeddings written to the vector index.

    Observability only: nothing in the pipeline branches on its value.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def add(self, n: int = 1) -> int:
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


embedding_counter = EmbeddingCounter()


__all__ = [
    "CancellationToken",
    "EmbeddingCounter",
    "embedding_counter",
    "raise_if_cancelled",
]
