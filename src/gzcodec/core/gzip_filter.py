"""gzip filters over binary sinks and sources.

Both filters sit on ``zlib`` with the gzip wrapper (``wbits=31``): zlib writes a
fixed header (mtime 0, no file name) so equal inputs give equal outputs, and checks
CRC32/ISIZE on the way back.

The filters do no I/O scheduling of their own: ``Deflater``/``Inflater`` are pure
state machines (bytes in, bytes out) so the blocking and asyncio copy loops can
share them. ``GzipWriter``/``GzipReader`` bind them to file-like objects.
"""

from __future__ import annotations

import zlib
from typing import BinaryIO

from gzcodec.errors import CorruptData

GZIP_WBITS = 31
GZIP_MAGIC = b"\x1f\x8b"


class Deflater:
    def __init__(self, level: int = 6):
        if not (0 <= level <= 9):
            raise ValueError(f"zlib level must be 0..9, got {level}")
        self._z = zlib.compressobj(level, zlib.DEFLATED, GZIP_WBITS)
        self.finished = False

    def feed(self, data: bytes) -> bytes:
        if self.finished:
            raise ValueError("Deflater: feed after finish")
        return self._z.compress(data)

    def finish(self) -> bytes:
        """Return the pending block plus the gzip trailer. Runs once."""
        if self.finished:
            return b""
        self.finished = True
        return self._z.flush(zlib.Z_FINISH)


class Inflater:
    """Incremental gzip decoder; concatenated members decode back to back."""

    def __init__(self) -> None:
        self._z = zlib.decompressobj(GZIP_WBITS)
        # True while a member is open (header seen, trailer not yet verified).
        self._in_member = False

    def feed(self, data: bytes) -> bytes:
        out = bytearray()
        pending = bytes(data)
        try:
            while pending:
                if self._z.eof:
                    self._z = zlib.decompressobj(GZIP_WBITS)
                self._in_member = True
                out += self._z.decompress(pending)
                if not self._z.eof:
                    break
                self._in_member = False
                pending = self._z.unused_data
        except zlib.error as e:
            raise CorruptData(f"gzip: {e}") from e
        return bytes(out)

    def feed_into(self, data: bytes, out: memoryview) -> int:
        """Decode ``data`` straight into ``out``; return the number of bytes written.

        Stops once ``out`` is full. Input left over at that point is dropped:
        callers with a fixed-size target want a prefix, not a stream.
        """
        size = len(out)
        pos = 0
        pending = bytes(data)
        try:
            while pending and pos < size:
                if self._z.eof:
                    self._z = zlib.decompressobj(GZIP_WBITS)
                self._in_member = True
                chunk = self._z.decompress(pending, size - pos)
                out[pos : pos + len(chunk)] = chunk
                pos += len(chunk)
                if not self._z.eof:
                    pending = self._z.unconsumed_tail
                    continue
                self._in_member = False
                pending = self._z.unused_data
        except zlib.error as e:
            raise CorruptData(f"gzip: {e}") from e
        return pos

    @property
    def complete(self) -> bool:
        return not self._in_member

    def finish(self) -> bytes:
        """Flush buffered output; a member left open means the input was truncated."""
        try:
            tail = self._z.flush()
        except zlib.error as e:
            raise CorruptData(f"gzip: {e}") from e
        if self._in_member and not self._z.eof:
            raise CorruptData("gzip: truncated stream")
        return tail


class GzipWriter:
    """Compressing writer over a binary sink.

    ``close()`` flushes the trailer into the sink. Leaving a ``with`` block on an
    exception abandons the stream instead: a failed copy never ends in a trailer.
    The sink itself is never closed.
    """

    def __init__(self, sink: BinaryIO, *, level: int = 6):
        self._sink = sink
        self._deflater = Deflater(level)
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("GzipWriter: write on closed writer")
        chunk = self._deflater.feed(data)
        if chunk:
            self._sink.write(chunk)
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._sink.write(self._deflater.finish())

    def abandon(self) -> None:
        self.closed = True

    def __enter__(self) -> "GzipWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abandon()


class GzipReader:
    """Decompressing reader over a binary source."""

    def __init__(self, source: BinaryIO, *, chunk_size: int = 64 * 1024):
        self._source = source
        self._inflater = Inflater()
        self._chunk_size = int(chunk_size)
        self._buf = bytearray()
        self._eof = False

    def _fill(self) -> None:
        while not self._buf and not self._eof:
            raw = self._source.read(self._chunk_size)
            if not raw:
                self._eof = True
                self._buf += self._inflater.finish()
                return
            self._buf += self._inflater.feed(raw)

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while True:
                self._fill()
                if not self._buf:
                    return b"".join(parts)
                parts.append(bytes(self._buf))
                self._buf.clear()
        self._fill()
        out = bytes(self._buf[:size])
        del self._buf[:size]
        return out

    def close(self) -> None:
        self._buf.clear()
        self._eof = True

    def __enter__(self) -> "GzipReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
