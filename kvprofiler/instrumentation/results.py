# kvprofiler/instrumentation/results.py - Bucket operation results
"""
Result model returned by bucket operations and inspected by the
instrumentation wrapper.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional


class ResponseStatus(IntEnum):
    """
    Status codes reported by a key-value bucket.

    Anything above KEY_EXISTS is treated as a failed operation.
    """
    SUCCESS = 0x00
    KEY_NOT_FOUND = 0x01
    KEY_EXISTS = 0x02
    VALUE_TOO_LARGE = 0x03
    INVALID_ARGUMENTS = 0x04
    ITEM_NOT_STORED = 0x05
    AUTHENTICATION_ERROR = 0x20
    UNKNOWN_COMMAND = 0x81
    OUT_OF_MEMORY = 0x82
    BUSY = 0x85
    TEMPORARY_FAILURE = 0x86
    OPERATION_TIMEOUT = 0x0200
    CLIENT_FAILURE = 0x0201


@dataclass
class OperationResult:
    """
    Outcome of a single-key bucket operation.
    """
    success: bool
    status: ResponseStatus = ResponseStatus.SUCCESS
    value: Any = None
    message: Optional[str] = None
    exception: Optional[BaseException] = None

    @property
    def is_completed(self) -> bool:
        """True if the call reached the server and got a definite answer"""
        return self.success or self.status <= ResponseStatus.KEY_EXISTS

    @property
    def key_found(self) -> bool:
        return self.status != ResponseStatus.KEY_NOT_FOUND
