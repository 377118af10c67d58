from __future__ import annotations

import io

import pytest

from gzcodec import codec, envelope
from gzcodec.errors import GzCodecError, InvalidArgument


class _Spy(io.BytesIO):
    """Records whether any I/O happened."""

    touched = False

    def read(self, *a):  # type: ignore[override]
        self.touched = True
        return super().read(*a)

    def write(self, b):  # type: ignore[override]
        self.touched = True
        return super().write(b)


@pytest.mark.parametrize(
    "fn",
    [
        codec.compress_bytes,
        codec.decompress_bytes,
        codec.compress_text,
        codec.decompress_text,
        codec.compress_bytes_to_string,
        codec.decompress_bytes_to_string,
        codec.decompress_text_to_string,
        envelope.compress_to_envelope,
        envelope.decompress_envelope,
    ],
)
def test_none_is_rejected(fn) -> None:
    with pytest.raises(InvalidArgument):
        fn(None)


@pytest.mark.parametrize(
    "fn, arg",
    [
        (codec.compress_bytes, "text, not bytes"),
        (codec.decompress_bytes, 123),
        (codec.compress_text, b"bytes, not text"),
        (envelope.decompress_envelope, b"QUJD"),
    ],
)
def test_wrong_type_is_rejected(fn, arg) -> None:
    with pytest.raises(InvalidArgument):
        fn(arg)


@pytest.mark.parametrize("fn", [codec.compress_stream, codec.decompress_stream])
def test_stream_arguments_checked_before_io(fn) -> None:
    with pytest.raises(InvalidArgument):
        fn(None, io.BytesIO())

    src = _Spy(b"\x1f\x8b data")
    with pytest.raises(InvalidArgument):
        fn(src, object())
    assert not src.touched

    dst = _Spy()
    with pytest.raises(InvalidArgument):
        fn(object(), dst)
    assert not dst.touched


@pytest.mark.parametrize("fn", [codec.compress_stream, codec.decompress_stream])
def test_none_destination_is_rejected(fn) -> None:
    src = _Spy(b"\x1f\x8b data")
    with pytest.raises(InvalidArgument) as ei:
        fn(src, None)
    assert ei.value.name == "destination"
    assert not src.touched


@pytest.mark.parametrize(
    "fn", [codec.compress_stream_to_buffer, codec.decompress_stream_to_buffer]
)
def test_to_buffer_rejects_missing_source(fn) -> None:
    with pytest.raises(InvalidArgument):
        fn(None)
    with pytest.raises(InvalidArgument):
        fn(object())


def test_invalid_argument_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        codec.compress_bytes(None)  # type: ignore[arg-type]
    err = InvalidArgument("data")
    assert isinstance(err, GzCodecError)
    assert err.name == "data"
    assert "data" in str(err)
