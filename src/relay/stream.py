"""Sized reads over an async iterator of byte chunks."""

from typing import AsyncIterable


class ChunkedStreamReader:
    """Adapts a chunk iterator to ``read(size)``.

    Chunks larger than the requested size are split and the remainder is
    served by the next read. Empty chunks are skipped, so ``b""`` is only
    returned once the iterator is exhausted.
    """

    def __init__(self, chunks: AsyncIterable[bytes]) -> None:
        self._chunks = chunks.__aiter__()
        self._pending = b""
        self._exhausted = False

    async def read(self, size: int) -> bytes:
        if size <= 0:
            return b""

        while not self._pending and not self._exhausted:
            try:
                self._pending = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True

        data = self._pending[:size]
        self._pending = self._pending[size:]
        return data
