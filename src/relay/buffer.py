"""Growable buffer for reading response bodies of unknown length.

The buffer starts at a fixed capacity and doubles whenever it fills up
before the stream ends. A full buffer cannot tell whether the stream has
ended, so a single probe byte is read before committing to a resize.

The read loop is an explicit state machine::

    FILLING --chunk--> FILLING
    FILLING --full---> PROBING
    FILLING --eof----> DONE
    PROBING --eof----> DONE
    PROBING --byte---> GROWING
    GROWING ---------> FILLING (or PROBING when the grown buffer is full)

``filled`` never exceeds ``capacity``, and the final value holds exactly
``filled`` bytes.
"""

from enum import Enum
from typing import Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)

INITIAL_CAPACITY = 32 * 1024


class ReadState(str, Enum):
    """States of the buffer read loop."""

    FILLING = "filling"
    PROBING = "probing"
    GROWING = "growing"
    DONE = "done"


class InvalidTransitionError(RuntimeError):
    """Raised when a transition is attempted from the wrong state."""


class AsyncByteReader(Protocol):
    """Byte stream that returns at most ``size`` bytes per read, b"" at EOF."""

    async def read(self, size: int) -> bytes:
        ...


class GrowableBuffer:
    """Byte buffer that doubles its capacity as a stream is read into it."""

    def __init__(self, initial_capacity: int = INITIAL_CAPACITY) -> None:
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be positive")
        self._buffer = bytearray(initial_capacity)
        self._probe: Optional[int] = None
        self.filled = 0
        self.state = ReadState.FILLING

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    @property
    def remaining(self) -> int:
        """Free space left before the buffer is full."""
        return self.capacity - self.filled

    def feed(self, chunk: bytes) -> ReadState:
        """Append a chunk read while filling; an empty chunk is end of stream."""
        self._expect(ReadState.FILLING)

        if not chunk:
            self.state = ReadState.DONE
            return self.state

        size = len(chunk)
        if size > self.remaining:
            raise ValueError(
                f"chunk of {size} bytes exceeds remaining capacity {self.remaining}"
            )

        self._buffer[self.filled:self.filled + size] = chunk
        self.filled += size
        if self.filled == self.capacity:
            self.state = ReadState.PROBING
        return self.state

    def probe(self, data: bytes) -> ReadState:
        """Record the result of the one-byte probe of a full buffer."""
        self._expect(ReadState.PROBING)

        if not data:
            self.state = ReadState.DONE
            return self.state
        if len(data) != 1:
            raise ValueError(f"probe must be a single byte, got {len(data)}")

        self._probe = data[0]
        self.state = ReadState.GROWING
        return self.state

    def grow(self) -> ReadState:
        """Double the capacity and append the probed byte."""
        self._expect(ReadState.GROWING)

        grown = bytearray(self.capacity * 2)
        grown[:self.filled] = self._buffer
        grown[self.filled] = self._probe
        self._buffer = grown
        self._probe = None
        self.filled += 1

        self.state = ReadState.PROBING if self.filled == self.capacity else ReadState.FILLING
        return self.state

    def getvalue(self) -> bytes:
        """Return exactly the bytes read, without the unused capacity."""
        self._expect(ReadState.DONE)
        return bytes(memoryview(self._buffer)[:self.filled])

    def _expect(self, state: ReadState) -> None:
        if self.state is not state:
            raise InvalidTransitionError(
                f"expected state {state.value}, buffer is {self.state.value}"
            )


async def read_body(stream: AsyncByteReader, initial_capacity: int = INITIAL_CAPACITY) -> bytes:
    """Read a stream to its end through a growable buffer.

    Args:
        stream: Stream to drain.
        initial_capacity: Starting buffer capacity in bytes.

    Returns:
        bytes: Every byte the stream yielded, in order.
    """
    buffer = GrowableBuffer(initial_capacity)
    resizes = 0

    while buffer.state is not ReadState.DONE:
        if buffer.state is ReadState.FILLING:
            buffer.feed(await stream.read(buffer.remaining))
        elif buffer.state is ReadState.PROBING:
            buffer.probe(await stream.read(1))
        else:
            buffer.grow()
            resizes += 1

    logger.debug(
        "Response body read",
        size=buffer.filled,
        capacity=buffer.capacity,
        resizes=resizes,
    )
    return buffer.getvalue()
