# kvprofiler/instrumentation/memory_bucket.py - In-memory bucket
"""
Dictionary-backed bucket with the same call surface as a remote
key-value bucket. Used by the demo command and the tests.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import time
import logging

from kvprofiler.instrumentation.results import OperationResult, ResponseStatus


class InMemoryBucket:
    """
    Key-value bucket that keeps documents in a dictionary.

    Keys listed in ``failures`` answer with that status instead of
    touching the store, which lets callers simulate server errors.
    """

    def __init__(self, name: str = "default",
                 failures: Optional[Dict[str, ResponseStatus]] = None,
                 latency: float = 0.0,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the bucket.

        Args:
            name: Bucket name
            failures: Keys mapped to the failure status they return
            latency: Simulated latency per call in seconds
            clock: Clock used for document expiration
        """
        self.name = name
        self.failures: Dict[str, ResponseStatus] = dict(failures or {})
        self.latency = latency
        self.clock = clock

        # key -> (value, expires_at); expires_at 0 means never
        self._documents: Dict[str, Tuple[Any, float]] = {}
        self.logger = logging.getLogger(__name__)

    def _failure_for(self, key: str) -> Optional[OperationResult]:
        status = self.failures.get(key)
        if status is None:
            return None

        message = f"{status.name} for key '{key}'"
        self.logger.debug(f"Simulating {status.name} on {self.name}")
        return OperationResult(
            success=False,
            status=status,
            message=message,
            exception=RuntimeError(message)
        )

    def _lookup(self, key: str) -> Optional[Tuple[Any, float]]:
        entry = self._documents.get(key)
        if entry is None:
            return None

        _, expires_at = entry
        if expires_at and expires_at <= self.clock():
            del self._documents[key]
            return None
        return entry

    def _expires_at(self, expiration: int) -> float:
        return self.clock() + expiration if expiration else 0.0

    def _pause(self):
        if self.latency:
            time.sleep(self.latency)

    def exists(self, key: str) -> bool:
        return self._lookup(key) is not None

    def get(self, key: str) -> OperationResult:
        self._pause()
        failure = self._failure_for(key)
        if failure:
            return failure

        entry = self._lookup(key)
        if entry is None:
            return OperationResult(
                success=False,
                status=ResponseStatus.KEY_NOT_FOUND,
                message="Not found"
            )
        return OperationResult(success=True, value=entry[0])

    def get_multi(self, keys: List[str]) -> Dict[str, OperationResult]:
        return {key: self.get(key) for key in keys}

    def upsert(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        self._pause()
        failure = self._failure_for(key)
        if failure:
            return failure

        self._documents[key] = (value, self._expires_at(expiration))
        return OperationResult(success=True, value=value)

    def insert(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        self._pause()
        failure = self._failure_for(key)
        if failure:
            return failure

        if self._lookup(key) is not None:
            return OperationResult(
                success=False,
                status=ResponseStatus.KEY_EXISTS,
                message="Key exists"
            )

        self._documents[key] = (value, self._expires_at(expiration))
        return OperationResult(success=True, value=value)

    def replace(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        self._pause()
        failure = self._failure_for(key)
        if failure:
            return failure

        if self._lookup(key) is None:
            return OperationResult(
                success=False,
                status=ResponseStatus.KEY_NOT_FOUND,
                message="Not found"
            )

        self._documents[key] = (value, self._expires_at(expiration))
        return OperationResult(success=True, value=value)

    def remove(self, key: str) -> OperationResult:
        self._pause()
        failure = self._failure_for(key)
        if failure:
            return failure

        if self._lookup(key) is None:
            return OperationResult(
                success=False,
                status=ResponseStatus.KEY_NOT_FOUND,
                message="Not found"
            )

        del self._documents[key]
        return OperationResult(success=True)

    async def get_async(self, key: str) -> OperationResult:
        await asyncio.sleep(0)
        return self.get(key)

    async def upsert_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        await asyncio.sleep(0)
        return self.upsert(key, value, expiration)

    async def insert_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        await asyncio.sleep(0)
        return self.insert(key, value, expiration)

    async def replace_async(self, key: str, value: Any, expiration: int = 0) -> OperationResult:
        await asyncio.sleep(0)
        return self.replace(key, value, expiration)

    async def remove_async(self, key: str) -> OperationResult:
        await asyncio.sleep(0)
        return self.remove(key)
