import random

import pytest

from relay.buffer import (
    INITIAL_CAPACITY,
    GrowableBuffer,
    InvalidTransitionError,
    ReadState,
    read_body,
)


class ScriptedStream:
    """Byte stream returning chunks of random size, never more than asked."""

    def __init__(self, data: bytes, seed: int = 0, max_chunk: int = 5000) -> None:
        self._data = data
        self._offset = 0
        self._random = random.Random(seed)
        self._max_chunk = max_chunk
        self.requested = []

    async def read(self, size: int) -> bytes:
        self.requested.append(size)
        take = min(size, self._random.randint(1, self._max_chunk))
        chunk = self._data[self._offset:self._offset + take]
        self._offset += len(chunk)
        return chunk


def _payload(length: int) -> bytes:
    return bytes((i * 31 + 7) % 256 for i in range(length))


class TestGrowableBuffer:
    """Test cases for the buffer state machine."""

    def test_starts_filling_at_initial_capacity(self):
        buffer = GrowableBuffer()

        assert buffer.state is ReadState.FILLING
        assert buffer.capacity == INITIAL_CAPACITY == 32768
        assert buffer.filled == 0

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            GrowableBuffer(0)

    def test_empty_chunk_ends_filling(self):
        buffer = GrowableBuffer(8)
        buffer.feed(b"abc")

        assert buffer.feed(b"") is ReadState.DONE
        assert buffer.getvalue() == b"abc"

    def test_full_buffer_moves_to_probing(self):
        buffer = GrowableBuffer(4)

        assert buffer.feed(b"ab") is ReadState.FILLING
        assert buffer.feed(b"cd") is ReadState.PROBING
        assert buffer.remaining == 0

    def test_empty_probe_ends_at_capacity_boundary(self):
        buffer = GrowableBuffer(4)
        buffer.feed(b"abcd")

        assert buffer.probe(b"") is ReadState.DONE
        assert buffer.getvalue() == b"abcd"
        assert buffer.capacity == 4

    def test_probe_byte_then_grow_doubles_and_appends(self):
        buffer = GrowableBuffer(4)
        buffer.feed(b"abcd")

        assert buffer.probe(b"e") is ReadState.GROWING
        assert buffer.grow() is ReadState.FILLING
        assert buffer.capacity == 8
        assert buffer.filled == 5

        buffer.feed(b"")
        assert buffer.getvalue() == b"abcde"

    def test_grow_from_capacity_one_probes_again(self):
        buffer = GrowableBuffer(1)
        buffer.feed(b"a")
        buffer.probe(b"b")

        assert buffer.grow() is ReadState.PROBING
        assert buffer.capacity == 2
        assert buffer.filled == 2

    def test_getvalue_has_no_trailing_slack(self):
        buffer = GrowableBuffer(4)
        buffer.feed(b"abcd")
        buffer.probe(b"e")
        buffer.grow()
        buffer.feed(b"")

        value = buffer.getvalue()
        assert len(value) == 5
        assert buffer.capacity > len(value)

    def test_oversized_chunk_is_rejected(self):
        buffer = GrowableBuffer(4)
        buffer.feed(b"abc")

        with pytest.raises(ValueError):
            buffer.feed(b"de")
        assert buffer.filled == 3

    def test_multi_byte_probe_is_rejected(self):
        buffer = GrowableBuffer(2)
        buffer.feed(b"ab")

        with pytest.raises(ValueError):
            buffer.probe(b"cd")

    @pytest.mark.parametrize(
        "action",
        [
            lambda b: b.probe(b"x"),
            lambda b: b.grow(),
            lambda b: b.getvalue(),
        ],
    )
    def test_out_of_order_transitions_fail(self, action):
        buffer = GrowableBuffer(4)

        with pytest.raises(InvalidTransitionError):
            action(buffer)

    def test_feed_after_done_fails(self):
        buffer = GrowableBuffer(4)
        buffer.feed(b"")

        with pytest.raises(InvalidTransitionError):
            buffer.feed(b"a")


class TestReadBody:
    """Test cases for draining a stream through the buffer."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "length",
        [0, 1, 32767, 32768, 32769, 65536, 10 * 32768 + 7],
    )
    @pytest.mark.parametrize("seed", [0, 1, 2])
    async def test_returns_exactly_the_stream_contents(self, length, seed):
        data = _payload(length)
        stream = ScriptedStream(data, seed=seed)

        body = await read_body(stream)

        assert len(body) == length
        assert body == data

    @pytest.mark.asyncio
    async def test_first_read_asks_for_the_initial_capacity(self):
        stream = ScriptedStream(_payload(100))

        await read_body(stream)

        assert stream.requested[0] == INITIAL_CAPACITY

    @pytest.mark.asyncio
    async def test_exact_capacity_body_ends_with_probe(self):
        data = _payload(32768)
        stream = ScriptedStream(data, max_chunk=32768)

        await read_body(stream)

        assert stream.requested[-1] == 1

    @pytest.mark.asyncio
    async def test_small_initial_capacity(self):
        data = _payload(1000)

        body = await read_body(ScriptedStream(data, max_chunk=3), initial_capacity=1)

        assert body == data
