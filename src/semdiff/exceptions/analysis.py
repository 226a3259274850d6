"""Analysis-related exceptions: worker failures."""

from typing import Optional

from .base import SemdiffError


class AnalysisError(SemdiffError):
    """Base class for analysis-related errors."""
    pass


class WorkerError(AnalysisError):
    """Raised when a pooled task fails outside of its own handler."""

    def __init__(self, file_path: str, reason: str, exit_code: Optional[int] = None):
        details = {"file_path": file_path, "reason": reason}
        if exit_code is not None:
            details["exit_code"] = str(exit_code)
        super().__init__(reason, details=details)
        self.file_path = file_path
        self.reason = reason
        self.exit_code = exit_code


class WorkerTimeoutError(WorkerError):
    """Raised when a pooled task exceeds its time limit."""

    def __init__(self, file_path: str, timeout_ms: int):
        super().__init__(file_path, f"Worker timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class WorkerCrashError(WorkerError):
    """Raised when a worker process exits without reporting a result."""

    def __init__(self, file_path: str, exit_code: Optional[int]):
        super().__init__(
            file_path, f"Worker stopped with exit code {exit_code}", exit_code=exit_code
        )
