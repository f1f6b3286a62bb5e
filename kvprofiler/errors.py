# kvprofiler/errors.py - Exception hierarchy
"""
Exceptions raised by the profiler.

Faults carried inside error events are data and never raised from here.
"""

from typing import Optional


class KvProfilerError(Exception):
    """Base exception for all profiler errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        """
        Initialize error.

        Args:
            message: Error message
            details: Optional detailed error information
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\nDetails: {self.details}"
        return self.message


class ConfigError(KvProfilerError):
    """Raised when a configuration file cannot be read or parsed."""

    pass


class CaptureFileError(KvProfilerError):
    """Raised when a JSON capture file is malformed."""

    pass


class DuplicateOperationError(KvProfilerError):
    """Raised when an operation id is registered twice on one connection."""

    pass
