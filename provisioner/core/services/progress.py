"""
Progress channel — single-writer, single-reader event pipe for one attempt.

The orchestrator publishes into the channel from a worker thread; the
gateway (an SSE response generator or the CLI) consumes it.

Thread safety model
───────────────────
- ``_lock`` protects ``_seq`` and ``_closed``.
- Events go into an unbounded ``queue.Queue``: ``publish()`` never
  blocks the orchestrator, a slow reader only grows the backlog.
- ``close()`` enqueues a sentinel; iteration stops when it is reached,
  so every event published before ``close()`` is delivered, in order.

Message standard
────────────────
Every event is a :class:`ProgressEvent`; on the wire::

    {"type": "state-change", "message": "Cloning ...", "state": "cloning",
     "seq": 3, "ts": 1739648400.123}

``succeeded`` events add ``port`` and ``address``; ``error`` events add
``error_kind`` when the failure came from an attempt.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Generator, Iterator

from provisioner.core.errors import ErrorKind, ProvisionError
from provisioner.core.models.install import InstallResult, ProgressEvent
from provisioner.core.services.orchestrator import Installer

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressChannel:
    """Ordered, lossless event pipe with a monotonic sequence number."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue: queue.Queue = queue.Queue()
        self._seq = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def publish(self, event: ProgressEvent) -> ProgressEvent:
        """Stamp ``event`` with the next sequence number and enqueue it.

        Raises:
            RuntimeError: The channel was already closed.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Progress channel is closed")
            self._seq += 1
            event = event.model_copy(update={"seq": self._seq})
            self._queue.put(event)
        return event

    def close(self) -> None:
        """Mark the end of the stream (idempotent)."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item


def _terminal_event(result: InstallResult) -> ProgressEvent:
    if result.ok:
        return ProgressEvent(
            type="succeeded",
            message=f"Installation completed! Solution running at {result.address}",
            state=result.state,
            port=result.port,
            address=result.address,
        )
    return ProgressEvent(
        type="error",
        message=result.error or "Installation failed",
        state=result.state,
        error_kind=result.error_kind,
    )


def stream_install(
    solution_id: str | None,
    installer: Installer,
) -> Generator[ProgressEvent, None, None]:
    """Run one install attempt and yield its progress events.

    Yields ``connected`` first.  A missing or unknown id yields a single
    ``error`` and stops without starting an attempt.  Otherwise every
    orchestrator transition is forwarded in order, followed by exactly
    one ``succeeded`` or ``error`` event.
    """
    channel = ProgressChannel()
    channel.publish(ProgressEvent(
        type="connected",
        message="Connected to installation progress stream",
    ))

    try:
        installer.registry.lookup(solution_id)
    except ProvisionError as e:
        logger.info("Rejected install request: %s", e.message)
        channel.publish(ProgressEvent(type="error", message=e.message, error_kind=e.kind))
        channel.close()
        yield from channel
        return

    def worker() -> None:
        try:
            result = installer.install(solution_id, sink=channel.publish)
            channel.publish(_terminal_event(result))
        except Exception as e:
            logger.exception("Install worker for %s crashed", solution_id)
            channel.publish(ProgressEvent(
                type="error",
                message=str(e) or "Installation failed",
                error_kind=ErrorKind.INTERNAL,
            ))
        finally:
            channel.close()

    thread = threading.Thread(
        target=worker,
        name=f"install-{solution_id}",
        daemon=True,
    )
    thread.start()

    yield from channel
