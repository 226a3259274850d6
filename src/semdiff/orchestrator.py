"""Bounded process pool with per-task timeouts and cancellation.

Every task runs in its own OS process so that a runaway parse can be
killed without touching the rest of the batch. The parent never starts
threads: it multiplexes each worker's result pipe and process sentinel
with ``multiprocessing.connection.wait``.

A worker reports exactly one envelope:
    {"status": "success", "payload": ...}
    {"status": "error", "message": "..."}

Outcomes come back in submission order regardless of completion order.

Usage:
    pool = TaskPool(analyze_file_task, max_workers=4, timeout=120.0)
    for outcome in pool.run(tasks, key=lambda t: t.file_path):
        if outcome.ok:
            ...
"""

from __future__ import annotations

import multiprocessing
import os
import threading
import time
from dataclasses import dataclass
from multiprocessing.connection import Connection, wait
from typing import Any, Callable, Iterable, Optional, Sequence

from .exceptions import WorkerCrashError, WorkerError, WorkerTimeoutError
from .logging_config import get_logger

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Task cancelled"

# Upper bound on one wait() so cancellation requests are noticed promptly.
_POLL_INTERVAL = 0.05


class CancellationToken:
    """Cooperative cancellation flag; safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class PoolOutcome:
    """Result of one task, tagged with the key and position it was submitted under."""

    index: int
    key: str
    status: str
    payload: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_envelope(self) -> dict[str, Any]:
        if self.ok:
            return {"status": "success", "payload": self.payload}
        return {"status": "error", "message": self.error}


def _apply_memory_limit(limit_mb: int) -> None:
    try:
        import resource
    except ImportError:
        logger.debug("Memory limits are not supported on this platform")
        return
    limit = limit_mb * 1024 * 1024
    resource.setrlimit(resource.RLIMIT_AS, (limit, limit))


def _worker_main(
    handler: Callable[[Any], Any],
    task: Any,
    conn: Connection,
    memory_limit_mb: Optional[int],
) -> None:
    """Process entry point: run the handler and send one envelope."""
    try:
        if memory_limit_mb:
            _apply_memory_limit(memory_limit_mb)
        envelope = {"status": "success", "payload": handler(task)}
    except MemoryError:
        envelope = {"status": "error", "message": "Worker ran out of memory"}
    except Exception as e:
        envelope = {"status": "error", "message": str(e) or type(e).__name__}
    try:
        conn.send(envelope)
    except Exception as e:
        conn.send({"status": "error", "message": f"Unsendable result: {e}"})
    finally:
        conn.close()


@dataclass
class _Running:
    index: int
    key: str
    process: Any
    conn: Connection
    deadline: Optional[float]
    token: Optional[CancellationToken]
    envelope: Optional[dict] = None
    closed: bool = False


class TaskPool:
    """Runs ``handler(task)`` for each task, at most ``max_workers`` at a time.

    Args:
        handler: Module-level callable; it is inherited by forked workers
            and pickled under the spawn start method
        max_workers: Concurrent process limit (default: CPU count)
        timeout: Seconds a single task may run before it is terminated
        memory_limit_mb: Address-space cap applied inside each worker
    """

    def __init__(
        self,
        handler: Callable[[Any], Any],
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
        memory_limit_mb: Optional[int] = None,
    ):
        self.handler = handler
        self.max_workers = max(1, max_workers or os.cpu_count() or 1)
        self.timeout = timeout
        self.memory_limit_mb = memory_limit_mb
        methods = multiprocessing.get_all_start_methods()
        self._context = multiprocessing.get_context("fork" if "fork" in methods else "spawn")

    def _start(
        self, index: int, key: str, task: Any, token: Optional[CancellationToken]
    ) -> _Running:
        receiver, sender = self._context.Pipe(duplex=False)
        process = self._context.Process(
            target=_worker_main,
            args=(self.handler, task, sender, self.memory_limit_mb),
            daemon=True,
        )
        process.start()
        sender.close()
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        logger.debug(f"Started worker {process.pid} for {key}")
        return _Running(index, key, process, receiver, deadline, token)

    def _stop(self, running: _Running) -> None:
        if running.process.is_alive():
            running.process.terminate()
        running.process.join()
        running.conn.close()

    def _finish(self, running: _Running) -> PoolOutcome:
        """Outcome of a worker whose process has exited."""
        if running.envelope is None and not running.closed and running.conn.poll():
            try:
                running.envelope = running.conn.recv()
            except (EOFError, OSError):
                running.envelope = None
        self._stop(running)
        envelope = running.envelope
        if envelope is None:
            error = WorkerCrashError(running.key, running.process.exitcode)
            logger.debug(f"{running.key}: {error.message}")
            return PoolOutcome(running.index, running.key, "error", error=error.message)
        if envelope.get("status") == "success":
            return PoolOutcome(running.index, running.key, "success", payload=envelope.get("payload"))
        return PoolOutcome(
            running.index, running.key, "error", error=str(envelope.get("message", "Unknown error"))
        )

    def _abort(self, running: _Running, error: WorkerError) -> PoolOutcome:
        self._stop(running)
        logger.debug(str(error))
        return PoolOutcome(running.index, running.key, "error", error=error.message)

    def run(
        self,
        tasks: Iterable[Any],
        key: Optional[Callable[[Any], str]] = None,
        tokens: Optional[Sequence[Optional[CancellationToken]]] = None,
    ) -> list[PoolOutcome]:
        """Run every task; a failing task never aborts the batch.

        Args:
            tasks: Work items handed to the handler
            key: Names a task in outcomes and logs (default: its position)
            tokens: Optional cancellation token per task, aligned with ``tasks``
        """
        pending = list(enumerate(tasks))
        if not pending:
            return []
        token_list = list(tokens) if tokens is not None else []
        outcomes: dict[int, PoolOutcome] = {}
        running: list[_Running] = []
        queue = list(reversed(pending))

        try:
            while queue or running:
                while queue and len(running) < self.max_workers:
                    index, task = queue.pop()
                    task_key = key(task) if key is not None else str(index)
                    token = token_list[index] if index < len(token_list) else None
                    if token is not None and token.cancelled:
                        outcomes[index] = PoolOutcome(index, task_key, "error", error=CANCELLED_MESSAGE)
                        continue
                    running.append(self._start(index, task_key, task, token))
                if not running:
                    continue

                now = time.monotonic()
                deadlines = [r.deadline for r in running if r.deadline is not None]
                wait_for = max(0.0, min(deadlines) - now) if deadlines else None
                if any(r.token is not None for r in running):
                    wait_for = _POLL_INTERVAL if wait_for is None else min(wait_for, _POLL_INTERVAL)

                handles = [r.conn for r in running if r.envelope is None and not r.closed]
                handles += [r.process.sentinel for r in running]
                ready = set(wait(handles, timeout=wait_for))

                still_running: list[_Running] = []
                now = time.monotonic()
                for r in running:
                    if r.envelope is None and r.conn in ready:
                        try:
                            r.envelope = r.conn.recv()
                        except (EOFError, OSError):
                            r.closed = True
                    if r.process.sentinel in ready:
                        outcomes[r.index] = self._finish(r)
                    elif r.envelope is not None:
                        # Result is in; the process is exiting on its own.
                        r.process.join(timeout=_POLL_INTERVAL)
                        if r.process.exitcode is None:
                            still_running.append(r)
                        else:
                            outcomes[r.index] = self._finish(r)
                    elif r.token is not None and r.token.cancelled:
                        outcomes[r.index] = self._abort(r, WorkerError(r.key, CANCELLED_MESSAGE))
                    elif r.deadline is not None and now >= r.deadline:
                        timeout_ms = int(round((self.timeout or 0) * 1000))
                        outcomes[r.index] = self._abort(r, WorkerTimeoutError(r.key, timeout_ms))
                    else:
                        still_running.append(r)
                running = still_running
        finally:
            for r in running:
                self._stop(r)

        return [outcomes[index] for index, _ in pending]

    def map(self, tasks: Iterable[Any], key: Optional[Callable[[Any], str]] = None) -> list[dict]:
        """Like ``run`` but returns the raw envelopes."""
        return [outcome.to_envelope() for outcome in self.run(tasks, key=key)]
