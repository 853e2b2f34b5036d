"""Identifier generation for new hierarchical tags."""

import threading
import time
from typing import Protocol, runtime_checkable

# 2024-01-01T00:00:00Z in milliseconds
EPOCH_MS = 1704067200000

WORKER_BITS = 10
SEQUENCE_BITS = 12
MAX_WORKER_ID = (1 << WORKER_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


@runtime_checkable
class IdGenerator(Protocol):
    """
    Источник уникальных ID для новых тегов.

    Любой вызываемый объект без аргументов, возвращающий строку,
    подходит как IdGenerator (например, в тестах - счётчик).
    """

    def __call__(self) -> str: ...


class SnowflakeIdGenerator:
    """
    Генератор числовых ID, упорядоченных по времени.

    Структура 63-битного ID:
        [41 бит: мс с EPOCH_MS][10 бит: worker_id][12 бит: номер в пределах мс]

    ID возвращается строкой, т.к. колонка hierarchical_tag.id строковая.
    Потокобезопасен: один экземпляр на процесс.
    """

    def __init__(self, worker_id: int = 1, clock=time.time):
        if not 0 <= worker_id <= MAX_WORKER_ID:
            raise ValueError(f"worker_id must be between 0 and {MAX_WORKER_ID}")
        self.worker_id = worker_id
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def _now_ms(self) -> int:
        return int(self._clock() * 1000) - EPOCH_MS

    def __call__(self) -> str:
        with self._lock:
            # never step back in time, even if the system clock does
            now = max(self._now_ms(), self._last_ms)
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    # sequence exhausted for this millisecond, borrow the next one
                    now += 1
            else:
                self._sequence = 0

            self._last_ms = now
            value = (
                (now << (WORKER_BITS + SEQUENCE_BITS))
                | (self.worker_id << SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)
