import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator

from loguru import logger


class OperationClass(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    LIST = "list"


class AdmissionController:
    """Caps concurrently running operations, independently per operation class.

    Each class owns its own semaphore; waiting for an upload slot never depends
    on downloads or lists. Waiters have no timeout.
    """

    def __init__(self, upload_limit: int, download_limit: int, list_limit: int):
        limits = {
            OperationClass.UPLOAD: upload_limit,
            OperationClass.DOWNLOAD: download_limit,
            OperationClass.LIST: list_limit,
        }
        for op_class, limit in limits.items():
            if limit <= 0:
                raise ValueError(
                    f"{op_class.value} limit must be positive, got {limit}"
                )

        self._capacity = limits
        self._semaphores = {
            op_class: asyncio.Semaphore(limit) for op_class, limit in limits.items()
        }
        self._in_flight = {op_class: 0 for op_class in limits}

    def capacity(self, op_class: OperationClass) -> int:
        return self._capacity[op_class]

    def in_flight(self, op_class: OperationClass) -> int:
        return self._in_flight[op_class]

    async def acquire(self, op_class: OperationClass) -> None:
        await self._semaphores[op_class].acquire()
        self._in_flight[op_class] += 1

    def release(self, op_class: OperationClass) -> None:
        if self._in_flight[op_class] == 0:
            raise RuntimeError(f"release() without acquire() for {op_class.value}")
        self._in_flight[op_class] -= 1
        self._semaphores[op_class].release()

    @asynccontextmanager
    async def slot(self, op_class: OperationClass) -> AsyncIterator[None]:
        await self.acquire(op_class)
        logger.debug(
            f"Acquired {op_class.value} slot "
            f"({self.in_flight(op_class)}/{self.capacity(op_class)} in flight)"
        )
        try:
            yield
        finally:
            self.release(op_class)
