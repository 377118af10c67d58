"""Self-describing text envelope for compressed text.

Layout (before base64):
  int32 little endian, signed: byte length of the encoded original text
  gzip member of the encoded original text

The whole buffer travels as standard padded base64. The text encoding is not
stored: producer and consumer must agree on it.

The length prefix lets the decoder size its output buffer once and reject short
or truncated payloads before decoding text. ``""`` is the envelope of ``""``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import struct

from gzcodec.codec import compress_bytes, decode_text, encode_text
from gzcodec.core.buffer_pool import BufferPool, pool_for
from gzcodec.core.gzip_filter import Inflater
from gzcodec.errors import CorruptData, InvalidArgument, Malformed, require_bytes_like, require_str
from gzcodec.options import CodecOptions, resolve_options

logger = logging.getLogger(__name__)

PREFIX = struct.Struct("<i")
PREFIX_LEN = PREFIX.size  # 4
MAX_ORIGINAL_LENGTH = 2**31 - 1
MAX_DEFLATE_RATIO = 1032


def pack_envelope(
    original_length: int,
    compressed: bytes,
    *,
    pool: BufferPool | None = None,
    options: CodecOptions | None = None,
) -> bytes:
    """Return ``int32le(original_length) + compressed`` (raw, not base64)."""
    require_bytes_like(compressed, "compressed")
    if not (0 <= original_length <= MAX_ORIGINAL_LENGTH):
        raise InvalidArgument(
            "original_length", f"original_length: out of int32 range: {original_length}"
        )
    opts = resolve_options(options)
    size = PREFIX_LEN + len(compressed)
    with pool_for(size, pool, opts.pool_threshold).borrow(
        size, clear=opts.clear_on_return
    ) as buf:
        PREFIX.pack_into(buf, 0, original_length)
        buf[PREFIX_LEN:size] = compressed
        return bytes(buf)


def unpack_envelope(raw: bytes, *, min_length: int = 4) -> tuple[int, bytes]:
    """Split a raw envelope into (declared_length, gzip payload)."""
    require_bytes_like(raw, "raw")
    if len(raw) < PREFIX_LEN:
        raise Malformed("raw")
    (declared,) = PREFIX.unpack_from(raw, 0)
    if declared < min_length:
        raise Malformed("raw")
    return declared, bytes(raw[PREFIX_LEN:])


def compress_to_envelope(
    text: str,
    encoding: str | None = None,
    *,
    options: CodecOptions | None = None,
    pool: BufferPool | None = None,
) -> str:
    require_str(text, "text")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)

    data = encode_text(text, enc)
    if not data:
        return ""
    if len(data) > MAX_ORIGINAL_LENGTH:
        raise InvalidArgument("text", "text: encoded length exceeds int32 range")

    raw = pack_envelope(len(data), compress_bytes(data, options=opts), pool=pool, options=opts)
    out = base64.b64encode(raw).decode("ascii")
    logger.debug("envelope: %d -> %d bytes (%d chars)", len(data), len(raw), len(out))
    return out


def decompress_envelope(
    envelope: str,
    encoding: str | None = None,
    *,
    options: CodecOptions | None = None,
    pool: BufferPool | None = None,
) -> str:
    require_str(envelope, "envelope")
    opts = resolve_options(options)
    enc = opts.resolve_encoding(encoding)

    if not envelope:
        return ""

    try:
        raw = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptData(f"envelope: invalid base64: {e}") from e

    declared, payload = unpack_envelope(raw, min_length=opts.min_envelope_length)

    if declared and not payload:
        raise CorruptData("envelope: missing gzip payload")

    # Deflate expands at most ~1032:1: the buffer never outgrows what the payload can produce.
    capacity = min(declared, len(payload) * MAX_DEFLATE_RATIO)
    inflater = Inflater()
    with pool_for(capacity, pool, opts.pool_threshold).borrow(
        capacity, clear=opts.clear_on_return
    ) as buf:
        n = inflater.feed_into(payload, buf)
        if n < declared:
            tail = inflater.finish()
            k = min(len(tail), capacity - n)
            buf[n : n + k] = tail[:k]
            n += k
        text = decode_text(buf[:n], enc)
    logger.debug("envelope: declared %d, produced %d bytes", declared, n)
    return text
