"""Root of the semdiff exception hierarchy."""

from typing import Any, Mapping, Optional

# Detail keys that name the file an error is about; rendered as a prefix.
_LOCATION_KEYS = ("file_path", "path")


class SemdiffError(Exception):
    """Base exception for all semdiff errors.

    ``details`` values are stored as strings so they can be written straight
    into log lines and machine-readable output.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = {k: str(v) for k, v in (details or {}).items()}

    @property
    def location(self) -> Optional[str]:
        for key in _LOCATION_KEYS:
            if key in self.details:
                return self.details[key]
        return None

    def __str__(self) -> str:
        location = self.location
        text = f"{location}: {self.message}" if location else self.message
        # the location and any detail repeating the message are not shown again
        extra = [
            f"{k}={v}"
            for k, v in self.details.items()
            if k not in _LOCATION_KEYS and v != self.message
        ]
        if extra:
            return f"{text} ({', '.join(extra)})"
        return text
