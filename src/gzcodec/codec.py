"""gzip compression for bytes, text and blocking streams.

Every entry point validates its arguments before doing any I/O and resolves the
default encoding here, at the call boundary, never deeper.

Text wrappers that decode *compressed* bytes as text (``compress_bytes_to_string``
and its inverse) only round-trip with byte-preserving codecs such as ``latin-1``.
Use ``gzcodec.envelope`` when compressed text has to travel as a string.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, TypeVar

from gzcodec.core.gzip_filter import GzipReader, GzipWriter
from gzcodec.errors import (
    CorruptData,
    InvalidArgument,
    require_bytes_like,
    require_readable,
    require_str,
    require_writable,
)
from gzcodec.options import CodecOptions, resolve_options

logger = logging.getLogger(__name__)

W = TypeVar("W")


def _copy(src, dst, chunk_size: int) -> int:
    n = 0
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            return n
        dst.write(chunk)
        n += len(chunk)


def encode_text(text: str, encoding: str) -> bytes:
    try:
        return text.encode(encoding)
    except UnicodeEncodeError as e:
        raise InvalidArgument("text", f"text: not encodable as {encoding}: {e}") from e


def decode_text(data: bytes, encoding: str, errors: str = "strict") -> str:
    try:
        return str(data, encoding, errors)
    except UnicodeDecodeError as e:
        raise CorruptData(f"text: not decodable as {encoding}: {e}") from e


# -----------------
# Streams (blocking)
# -----------------


def _compress_into(source: BinaryIO, destination: W, opts: CodecOptions) -> W:
    with GzipWriter(destination, level=opts.level) as gz:  # type: ignore[arg-type]
        n = _copy(source, gz, opts.chunk_size)
    logger.debug("compressed %d bytes from stream", n)
    return destination


def _decompress_into(source: BinaryIO, destination: W, opts: CodecOptions) -> W:
    with GzipReader(source, chunk_size=opts.chunk_size) as gz:
        n = _copy(gz, destination, opts.chunk_size)
    logger.debug("decompressed %d bytes from stream", n)
    return destination


def compress_stream(
    source: BinaryIO, destination: W, *, options: CodecOptions | None = None
) -> W:
    """Compress ``source`` into ``destination`` and return ``destination``.

    The gzip trailer is written before this returns. ``destination`` is not rewound.
    """
    require_readable(source, "source")
    require_writable(destination, "destination")
    return _compress_into(source, destination, resolve_options(options))


def compress_stream_to_buffer(
    source: BinaryIO, *, options: CodecOptions | None = None
) -> io.BytesIO:
    """Compress ``source`` into a fresh ``io.BytesIO``, rewound to the start."""
    require_readable(source, "source")
    out = _compress_into(source, io.BytesIO(), resolve_options(options))
    out.seek(0)
    return out


def decompress_stream(
    source: BinaryIO, destination: W, *, options: CodecOptions | None = None
) -> W:
    """Decompress ``source`` into ``destination`` and return ``destination``."""
    require_readable(source, "source")
    require_writable(destination, "destination")
    return _decompress_into(source, destination, resolve_options(options))


def decompress_stream_to_buffer(
    source: BinaryIO, *, options: CodecOptions | None = None
) -> io.BytesIO:
    require_readable(source, "source")
    out = _decompress_into(source, io.BytesIO(), resolve_options(options))
    out.seek(0)
    return out


# -----
# Bytes
# -----


def compress_bytes(data: bytes, *, options: CodecOptions | None = None) -> bytes:
    require_bytes_like(data, "data")
    opts = resolve_options(options)
    with io.BytesIO(data) as src, io.BytesIO() as dst:
        return _compress_into(src, dst, opts).getvalue()


def decompress_bytes(data: bytes, *, options: CodecOptions | None = None) -> bytes:
    require_bytes_like(data, "data")
    opts = resolve_options(options)
    with io.BytesIO(data) as src, io.BytesIO() as dst:
        return _decompress_into(src, dst, opts).getvalue()


# ----
# Text
# ----


def compress_text(
    text: str, encoding: str | None = None, *, options: CodecOptions | None = None
) -> bytes:
    require_str(text, "text")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)
    return compress_bytes(encode_text(text, enc), options=opts)


def compress_bytes_to_string(
    data: bytes, encoding: str | None = None, *, options: CodecOptions | None = None
) -> str:
    """Compress ``data`` and decode the compressed bytes as text.

    Lossy: bytes that are invalid in ``encoding`` become U+FFFD, so with UTF-8 (the
    default) the result cannot be decompressed again. Only byte-preserving codecs
    such as ``latin-1`` round-trip through ``decompress_text``.
    """
    require_bytes_like(data, "data")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)
    return decode_text(compress_bytes(data, options=opts), enc, errors="replace")


def decompress_text(
    text: str, encoding: str | None = None, *, options: CodecOptions | None = None
) -> bytes:
    """Encode ``text`` (compressed bytes carried as text) and decompress it."""
    require_str(text, "text")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)
    return decompress_bytes(encode_text(text, enc), options=opts)


def decompress_bytes_to_string(
    data: bytes, encoding: str | None = None, *, options: CodecOptions | None = None
) -> str:
    require_bytes_like(data, "data")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)
    return decode_text(decompress_bytes(data, options=opts), enc)


def decompress_text_to_string(
    text: str, encoding: str | None = None, *, options: CodecOptions | None = None
) -> str:
    require_str(text, "text")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)
    return decode_text(decompress_text(text, enc, options=opts), enc)
