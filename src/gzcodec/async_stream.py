"""asyncio forms of the stream operations in ``gzcodec.codec``.

Sources need ``read(n)``; it may return bytes or an awaitable of bytes, so both
``asyncio.StreamReader`` and ``io.BytesIO`` work. Destinations need ``write(b)``
(plain or awaitable) and may offer a ``drain()``, plain or a coroutine like
``asyncio.StreamWriter.drain``.

Each chunk transfer yields to the event loop. The gzip trailer is written once,
after the copy loop completes; on error or cancellation nothing more is written and
the exception propagates as is.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import logging
from typing import Any, TypeVar

from gzcodec.core.gzip_filter import Deflater, Inflater
from gzcodec.errors import require_readable, require_writable
from gzcodec.options import CodecOptions, resolve_options

logger = logging.getLogger(__name__)

W = TypeVar("W")


async def _read(source: Any, n: int) -> bytes:
    chunk = source.read(n)
    if inspect.isawaitable(chunk):
        chunk = await chunk
    return chunk


async def _write(destination: Any, data: bytes) -> None:
    if not data:
        return
    res = destination.write(data)
    if inspect.isawaitable(res):
        await res
    drain = getattr(destination, "drain", None)
    if drain is not None:
        res = drain()
        if inspect.isawaitable(res):
            await res


async def _compress_into(source: Any, destination: W, opts: CodecOptions) -> W:
    deflater = Deflater(opts.level)
    n = 0
    while True:
        chunk = await _read(source, opts.chunk_size)
        if not chunk:
            break
        n += len(chunk)
        await _write(destination, deflater.feed(chunk))
        await asyncio.sleep(0)
    await _write(destination, deflater.finish())
    logger.debug("compressed %d bytes from async stream", n)
    return destination


async def _decompress_into(source: Any, destination: W, opts: CodecOptions) -> W:
    inflater = Inflater()
    n = 0
    while True:
        chunk = await _read(source, opts.chunk_size)
        if not chunk:
            break
        out = inflater.feed(chunk)
        n += len(out)
        await _write(destination, out)
        await asyncio.sleep(0)
    tail = inflater.finish()
    n += len(tail)
    await _write(destination, tail)
    logger.debug("decompressed %d bytes from async stream", n)
    return destination


async def compress_stream_async(
    source: Any, destination: W, *, options: CodecOptions | None = None
) -> W:
    """Compress ``source`` into ``destination`` without blocking the event loop."""
    require_readable(source, "source")
    require_writable(destination, "destination")
    return await _compress_into(source, destination, resolve_options(options))


async def compress_stream_to_buffer_async(
    source: Any, *, options: CodecOptions | None = None
) -> io.BytesIO:
    require_readable(source, "source")
    out = await _compress_into(source, io.BytesIO(), resolve_options(options))
    out.seek(0)
    return out


async def decompress_stream_async(
    source: Any, destination: W, *, options: CodecOptions | None = None
) -> W:
    require_readable(source, "source")
    require_writable(destination, "destination")
    return await _decompress_into(source, destination, resolve_options(options))


async def decompress_stream_to_buffer_async(
    source: Any, *, options: CodecOptions | None = None
) -> io.BytesIO:
    require_readable(source, "source")
    out = await _decompress_into(source, io.BytesIO(), resolve_options(options))
    out.seek(0)
    return out
