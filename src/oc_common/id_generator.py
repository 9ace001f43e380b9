"""Identifier generation for orders and line items.

Snowflake-style ids back the opaque ``ord_``/``item_`` tokens.
Order numbers (``ORD-<year>-<NNNN>``) are human-facing labels drawn at random;
uniqueness is enforced by the caller (collision check + DB UNIQUE constraint).
"""

import random
import threading
import time

from src.oc_common.datetime_utils import utc_now


class SnowflakeIdGenerator:
    """Simple snowflake ID generator.

    Layout (64 bits):
      - 41 bits: millisecond timestamp (since custom epoch)
      - 10 bits: machine_id (0-1023)
      - 12 bits: sequence (0-4095 per millisecond)
    """

    _EPOCH_MS = 1_700_000_000_000  # 2023-11-14 approx
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_timestamp_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            ts = self._current_ms()
            if ts == self._last_timestamp_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    ts = self._wait_next_ms(ts)
            else:
                self._sequence = 0

            self._last_timestamp_ms = ts
            id_int = (
                ((ts - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(id_int)

    def _current_ms(self) -> int:
        return int(time.time() * 1000)

    def _wait_next_ms(self, last_ts: int) -> int:
        ts = self._current_ms()
        while ts <= last_ts:
            ts = self._current_ms()
        return ts


class OrderNumberGenerator:
    """Draws ``ORD-<year>-<NNNN>`` labels with a random 4-digit suffix (1000-9999)."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def next_number(self, year: int | None = None) -> str:
        year = year if year is not None else utc_now().year
        return f"ORD-{year}-{self._rng.randint(1000, 9999)}"


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Generate a unique snowflake-style string ID using the module-level default generator."""
    return _default_generator.next_id()


def generate_order_id() -> str:
    return f"ord_{generate_id()}"


def generate_item_id() -> str:
    return f"item_{generate_id()}"


def generate_conversation_id() -> str:
    return f"conv_{generate_id()}"


def generate_message_id() -> str:
    return f"msg_{generate_id()}"
