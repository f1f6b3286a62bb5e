# kvprofiler/instrumentation/bucket.py - Instrumented bucket wrapper
"""
Wraps a key-value bucket so each supported call publishes started,
completed and error events to a message broker.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import uuid
import logging

from kvprofiler.collector.broker import MessageBroker
from kvprofiler.collector.events import (
    OperationCompleted,
    OperationError,
    OperationStarted,
)
from kvprofiler.collector.timer import ExecutionTimer
from kvprofiler.instrumentation.results import OperationResult


class InstrumentedBucket:
    """
    Bucket proxy that times calls and reports them to a broker.

    When no timer is given, instrumentation is disabled and every call
    goes straight to the wrapped bucket. Attributes that are not
    instrumented are delegated unchanged.
    """

    def __init__(self, bucket, broker: MessageBroker,
                 timer: Optional[ExecutionTimer] = None):
        """
        Initialize the wrapper.

        Args:
            bucket: Real bucket to wrap
            broker: Broker that receives lifecycle events
            timer: Timer used to measure calls (None disables instrumentation)
        """
        self.bucket = bucket
        self.broker = broker
        self.timer = timer
        self.logger = logging.getLogger(__name__)

    def __getattr__(self, name: str):
        # Only reached for attributes not defined on the wrapper
        if name == "bucket":
            raise AttributeError(name)
        return getattr(self.bucket, name)

    @property
    def name(self) -> str:
        return self.bucket.name

    @property
    def enabled(self) -> bool:
        return self.timer is not None

    def log_operation_start(self, operation_id: str, offset: float,
                            keys: Sequence[str], operation_type: str,
                            check_dupes: bool, is_async: bool):
        """
        Publish the start of an operation.

        Args:
            operation_id: ID of the operation
            offset: Offset returned by the timer
            keys: Keys involved in the operation
            operation_type: Name for the type of operation
            check_dupes: True to check for duplicate operations
            is_async: True if called through the async API
        """
        self.broker.publish(OperationStarted(
            connection_id=self.name,
            operation_id=operation_id,
            offset=offset,
            captured_at=self.timer.wall_time(offset),
            type=operation_type,
            keys=tuple(keys),
            check_dupes=check_dupes,
            is_async=is_async
        ))

    def log_operation_end(self, operation_id: str, offset: float,
                          keys_found: Sequence[bool], operation_type: str,
                          is_async: bool):
        """
        Publish the successful completion of an operation.

        Args:
            operation_id: ID of the operation
            offset: Offset returned by the timer
            keys_found: Found flag per key
            operation_type: Name for the type of operation
            is_async: True if called through the async API
        """
        timing = self.timer.stop(offset)
        self.broker.publish(OperationCompleted(
            connection_id=self.name,
            operation_id=operation_id,
            offset=timing.offset,
            captured_at=timing.start_time,
            keys_found=tuple(keys_found),
            is_async=is_async,
            duration=timing.duration
        ))
        self.logger.debug(f"{operation_type} on {self.name} took {timing.duration_ms:.2f}ms")

    def log_operation_error(self, operation_id: str, offset: float,
                            messages: Sequence[str], faults: Sequence[BaseException],
                            operation_type: str, is_async: bool):
        """
        Publish the failure of an operation.

        Args:
            operation_id: ID of the operation
            offset: Offset returned by the timer
            messages: Messages explaining the error
            faults: Exceptions that occurred, if any
            operation_type: Name for the type of operation
            is_async: True if called through the async API
        """
        timing = self.timer.stop(offset)
        self.broker.publish(OperationError(
            connection_id=self.name,
            operation_id=operation_id,
            offset=timing.offset,
            captured_at=timing.start_time,
            messages=tuple(messages),
            faults=tuple(faults),
            is_async=is_async,
            duration=timing.duration
        ))
        self.logger.debug(f"{operation_type} on {self.name} failed after {timing.duration_ms:.2f}ms")

    def _log_result(self, operation_id: str, offset: float, result: OperationResult,
                    operation_type: str, is_async: bool):
        if result.is_completed:
            self.log_operation_end(operation_id, offset, [result.key_found], operation_type, is_async)
        else:
            messages = [result.message] if result.message else []
            faults = [result.exception] if result.exception else []
            self.log_operation_error(operation_id, offset, messages, faults, operation_type, is_async)

    def _instrument(self, operation_type: str, keys: Sequence[str], check_dupes: bool,
                    call: Callable[[], OperationResult]) -> OperationResult:
        if not self.enabled:
            return call()

        operation_id = uuid.uuid4().hex
        offset = self.timer.start()
        self.log_operation_start(operation_id, offset, keys, operation_type, check_dupes, False)

        try:
            result = call()
        except Exception as e:
            self.log_operation_error(operation_id, offset, [str(e)], [e], operation_type, False)
            raise

        self._log_result(operation_id, offset, result, operation_type, False)
        return result

    async def _instrument_async(self, operation_type: str, keys: Sequence[str],
                                check_dupes: bool,
                                call: Callable[[], Awaitable[OperationResult]]) -> OperationResult:
        if not self.enabled:
            return await call()

        operation_id = uuid.uuid4().hex
        offset = self.timer.start()
        self.log_operation_start(operation_id, offset, keys, operation_type, check_dupes, True)

        try:
            result = await call()
        except Exception as e:
            self.log_operation_error(operation_id, offset, [str(e)], [e], operation_type, True)
            raise

        self._log_result(operation_id, offset, result, operation_type, True)
        return result

    def get(self, key: str) -> OperationResult:
        return self._instrument("Get", [key], True, lambda: self.bucket.get(key))

    async def get_async(self, key: str) -> OperationResult:
        return await self._instrument_async("Get", [key], True, lambda: self.bucket.get_async(key))

    def get_multi(self, keys: List[str]) -> Dict[str, OperationResult]:
        """
        Get several keys in one call.

        The call is reported as completed only if every key completed;
        otherwise all messages and exceptions are collected into one
        error event. Found flags follow the order of ``keys``, repeats
        included; a key missing from the results counts as not found.

        Args:
            keys: Keys to fetch

        Returns:
            Results keyed by document key
        """
        if not self.enabled:
            return self.bucket.get_multi(keys)

        operation_id = uuid.uuid4().hex
        offset = self.timer.start()
        self.log_operation_start(operation_id, offset, keys, "GetMulti", True, False)

        try:
            results = self.bucket.get_multi(keys)
        except Exception as e:
            self.log_operation_error(operation_id, offset, [str(e)], [e], "GetMulti", False)
            raise

        if all(r.is_completed for r in results.values()):
            keys_found = [key in results and results[key].key_found for key in keys]
            self.log_operation_end(operation_id, offset, keys_found, "GetMulti", False)
        else:
            messages = [r.message for r in results.values() if r.message is not None]
            faults = [r.exception for r in results.values() if r.exception is not None]
            self.log_operation_error(operation_id, offset, messages, faults, "GetMulti", False)

        return results

    def upsert(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return self._instrument("Upsert", [key], False,
                                lambda: self.bucket.upsert(key, value, expiration))

    async def upsert_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return await self._instrument_async("Upsert", [key], False,
                                            lambda: self.bucket.upsert_async(key, value, expiration))

    def insert(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return self._instrument("Insert", [key], False,
                                lambda: self.bucket.insert(key, value, expiration))

    async def insert_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return await self._instrument_async("Insert", [key], False,
                                            lambda: self.bucket.insert_async(key, value, expiration))

    def replace(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return self._instrument("Replace", [key], False,
                                lambda: self.bucket.replace(key, value, expiration))

    async def replace_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        return await self._instrument_async("Replace", [key], False,
                                            lambda: self.bucket.replace_async(key, value, expiration))

    def remove(self, key: str) -> OperationResult:
        return self._instrument("Remove", [key], False, lambda: self.bucket.remove(key))

    async def remove_async(self, key: str) -> OperationResult:
        return await self._instrument_async("Remove", [key], False,
                                            lambda: self.bucket.remove_async(key))
